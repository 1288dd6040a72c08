"""
Pytest configuration and fixtures for notifier tests.
"""
import os

import httpx
import pytest

os.environ.setdefault("DISCORD_TOKEN", "discord-test-token-0123456789")
os.environ.setdefault("CHANNEL_ID", "111111111111111111")
os.environ.setdefault("CLIENT_ID", "222222222222222222")
os.environ.setdefault("GUILD_ID", "333333333333333333")
os.environ.setdefault("DIVERSION_BEARER_TOKEN", "diversion-test-token-9876543210")
os.environ.setdefault("DIVERSION_REPO_NAME", "dv.repo.test")

from diversion_notifier.config.settings import Settings
from diversion_notifier.connectors.diversion import DiversionConnector


API_URL = "https://api.diversion.dev/v1/repos/dv.repo.test/commits"


class FakeDispatcher:
    """Records every message instead of posting it"""

    def __init__(self, error: Exception = None):
        self.sent = []
        self.error = error

    async def send(self, text: str) -> None:
        if self.error:
            raise self.error
        self.sent.append(text)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        DISCORD_TOKEN="discord-test-token-0123456789",
        CHANNEL_ID=111111111111111111,
        CLIENT_ID=222222222222222222,
        GUILD_ID=333333333333333333,
        DIVERSION_BEARER_TOKEN="diversion-test-token-9876543210",
        DIVERSION_REPO_NAME="dv.repo.test",
    )


@pytest.fixture
def make_connector(settings):
    """Build a Diversion connector whose requests are answered by ``handler``"""
    def factory(handler):
        return DiversionConnector(
            settings.get_service_config('diversion'),
            transport=httpx.MockTransport(handler),
        )
    return factory


@pytest.fixture
def json_connector(make_connector):
    """Connector that always answers with the given JSON body and status"""
    def factory(payload, status_code=200):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(status_code, json=payload)

        connector = make_connector(handler)
        connector.calls = calls
        return connector
    return factory


@pytest.fixture
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()
