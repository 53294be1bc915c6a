import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from epgtimer.errors import ConfigurationError


logger = logging.getLogger(__name__)


class EMWUISettings(BaseSettings):
    """Client settings loaded from environment variables.

    Built once per command invocation and passed to the command handlers.
    """

    endpoint: str | None = None
    request_timeout_sec: float = 10.0
    channel_list_file: str = "serviceList_without_local.txt"
    log_level: str = "WARNING"

    model_config = SettingsConfigDict(
        env_prefix="EMWUI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("endpoint", mode="before")
    @classmethod
    def normalize_endpoint(cls, value):
        """Treat blank as unset and strip trailing slashes."""
        if value is None:
            return None
        if isinstance(value, str):
            value = value.strip().rstrip("/")
            return value or None
        return value

    @field_validator("endpoint", mode="after")
    @classmethod
    def validate_endpoint(cls, value: str | None) -> str | None:
        """Validate the endpoint is an HTTP/HTTPS URL."""
        if value is None:
            return value
        if not value.lower().startswith(("http://", "https://")):
            raise ValueError(f"EMWUI endpoint must be HTTP/HTTPS: {value}")
        return value

    @field_validator("request_timeout_sec")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        """Ensure the HTTP timeout is positive."""
        if value <= 0:
            raise ValueError("request_timeout_sec must be > 0")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate logging level name."""
        normalized = value.upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if normalized not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}")
        return normalized

    def require_endpoint(self) -> str:
        """Return the configured endpoint or fail before any network call."""
        if not self.endpoint:
            raise ConfigurationError(
                "EMWUI endpoint not configured (set EMWUI_ENDPOINT or use --endpoint)"
            )
        return self.endpoint


def load_settings(endpoint: str | None = None, **overrides) -> EMWUISettings:
    """
    Build settings from the environment, letting command-line values win.

    Raises:
        ConfigurationError: If a value fails validation
    """
    if endpoint:
        overrides["endpoint"] = endpoint

    try:
        settings = EMWUISettings(**overrides)
    except ValueError as exc:
        raise ConfigurationError(f"invalid configuration: {exc}") from exc

    logger.debug("Configuration loaded:")
    logger.debug(f"  Endpoint: {settings.endpoint or 'not set'}")
    logger.debug(f"  Request Timeout: {settings.request_timeout_sec}s")
    logger.debug(f"  Channel List File: {settings.channel_list_file}")
    return settings


def setup_logging(level: str = "WARNING") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
