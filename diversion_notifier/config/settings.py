"""
Settings management with secure credential handling
"""

from typing import Dict, Any, List, Optional, Type, TypeVar

from dotenv import load_dotenv
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from diversion_notifier.core.errors import ConfigurationError


# Load environment variables
load_dotenv()


DIVERSION_ENV_VARS = [
    'DIVERSION_BEARER_TOKEN',
    'DIVERSION_REPO_NAME',
]

REQUIRED_ENV_VARS = [
    'DISCORD_TOKEN',
    'CHANNEL_ID',
    *DIVERSION_ENV_VARS,
    'CLIENT_ID',
    'GUILD_ID',
]


SettingsT = TypeVar("SettingsT", bound="DiversionSettings")


def mask_secret(secret: str, show_chars: int = 4) -> str:
    """Mask sensitive data, showing only first and last N characters"""
    if not secret or len(secret) <= show_chars * 2:
        return "***"
    return f"{secret[:show_chars]}...{secret[-show_chars:]}"


class DiversionSettings(BaseSettings):
    """Settings needed to talk to the Diversion API"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Diversion API
    DIVERSION_BEARER_TOKEN: str = Field(..., min_length=1)
    DIVERSION_REPO_NAME: str = Field(..., min_length=1)
    DIVERSION_BASE_URL: str = "https://api.diversion.dev"
    DIVERSION_API_VERSION: str = "v1"
    DIVERSION_WORKSPACE: str = "main"
    HTTP_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)

    # General Configuration
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None
    DEBUG_MODE: bool = False

    @property
    def diversion_api_url(self) -> str:
        """Full URL of the commit listing endpoint"""
        base = self.DIVERSION_BASE_URL.rstrip('/')
        return f"{base}/{self.DIVERSION_API_VERSION}/repos/{self.DIVERSION_REPO_NAME}/commits"

    def get_service_config(self, service: str) -> Dict[str, Any]:
        """Get configuration for a specific service"""
        return self._service_configs().get(service, {})

    def _service_configs(self) -> Dict[str, Dict[str, Any]]:
        return {
            'diversion': {
                'url': self.diversion_api_url,
                'bearer_token': self.DIVERSION_BEARER_TOKEN,
                'workspace': self.DIVERSION_WORKSPACE,
                'repo_name': self.DIVERSION_REPO_NAME,
                'timeout': self.HTTP_TIMEOUT_SECONDS,
            },
        }

    def mask_secrets(self) -> Dict[str, str]:
        """Return configuration with masked secrets for logging"""
        masked = {}

        for field_name, field_value in self.model_dump().items():
            if field_value is None:
                continue

            if any(secret_word in field_name.lower()
                   for secret_word in ['token', 'key', 'secret', 'password']):
                masked[field_name] = mask_secret(str(field_value))
            else:
                masked[field_name] = str(field_value)

        masked['DIVERSION_API_URL'] = self.diversion_api_url
        return masked


class Settings(DiversionSettings):
    """Full bot settings: Diversion access plus Discord, polling and the health server"""

    # Discord
    DISCORD_TOKEN: str = Field(..., min_length=1)
    CHANNEL_ID: int
    CLIENT_ID: int
    GUILD_ID: int

    # Polling
    POLL_INTERVAL_MINUTES: int = Field(default=5, ge=1)
    POLL_ON_STARTUP: bool = False

    # Health server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    TIMEZONE: str = "UTC"

    def _service_configs(self) -> Dict[str, Dict[str, Any]]:
        configs = super()._service_configs()
        configs['discord'] = {
            'token': self.DISCORD_TOKEN,
            'channel_id': self.CHANNEL_ID,
            'client_id': self.CLIENT_ID,
            'guild_id': self.GUILD_ID,
        }
        return configs


def _is_missing(error: Dict[str, Any]) -> bool:
    # A blank value for a required variable counts as unset
    return error.get('type') == 'missing' or error.get('input') == ''


def load_settings(settings_cls: Type[SettingsT] = Settings, **overrides: Any) -> SettingsT:
    """
    Build settings from the environment, failing fast on bad configuration

    Args:
        settings_cls: ``Settings`` for the bot, ``DiversionSettings`` for
            commands that only query the Diversion API
        **overrides: values that take precedence over the environment

    Raises:
        ConfigurationError: naming every missing or invalid variable
    """
    try:
        return settings_cls(**overrides)
    except ValidationError as e:
        missing: List[str] = []
        invalid: List[str] = []
        for error in e.errors():
            if not error.get('loc'):
                continue
            name = str(error['loc'][0]).upper()
            bucket = missing if _is_missing(error) else invalid
            if name not in missing and name not in invalid:
                bucket.append(name)
        raise ConfigurationError(
            f"Missing or invalid configuration: {', '.join(missing + invalid)}",
            missing=missing,
            invalid=invalid,
        ) from e
