"""
Tests for the health API.
"""
import pytest
from fastapi.testclient import TestClient

from diversion_notifier.api.app import create_app
from diversion_notifier.core.poller import CommitPoller, LastSeenState, PollOutcome

from .conftest import FakeDispatcher


def test_root_is_plain_text(settings):
    client = TestClient(create_app(settings))

    resp = client.get('/')

    assert resp.status_code == 200
    assert resp.text == "Discord bot is running!"
    assert resp.headers['content-type'].startswith('text/plain')


def test_health(settings):
    client = TestClient(create_app(settings))

    resp = client.get('/health')

    assert resp.status_code == 200
    body = resp.json()
    assert body['status'] == 'healthy'
    assert 'timestamp' in body


def test_unknown_path_is_404(settings):
    client = TestClient(create_app(settings))
    assert client.get('/nope').status_code == 404


def test_status_without_poller(settings):
    client = TestClient(create_app(settings))

    body = client.get('/status').json()

    assert body['last_seen_commit'] is None
    assert body['last_outcome'] is None
    assert body['jobs'] == []
    assert body['poll_interval_minutes'] == 5


@pytest.mark.asyncio
async def test_status_reports_poller_state(settings, json_connector):
    poller = CommitPoller(json_connector([{"id": "c2"}]), FakeDispatcher(), LastSeenState())
    assert await poller.poll_once() == PollOutcome.NOTIFIED

    client = TestClient(create_app(settings, poller=poller))
    body = client.get('/status').json()

    assert body['repository'] == "dv.repo.test"
    assert body['last_seen_commit'] == "c2"
    assert body['last_outcome'] == "notified"
    assert body['last_polled_at'] is not None


def test_config_masks_secrets(settings):
    client = TestClient(create_app(settings))

    config = client.get('/config').json()['config']

    assert config['DISCORD_TOKEN'] != settings.DISCORD_TOKEN
    assert config['DIVERSION_BEARER_TOKEN'].startswith('dive')
    assert 'diversion-test-token-9876543210' not in str(config)
    assert config['DIVERSION_API_URL'] == "https://api.diversion.dev/v1/repos/dv.repo.test/commits"
