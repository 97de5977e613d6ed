"""Settings models and configuration loading for the window alert poller."""

from functools import cached_property, lru_cache
from typing import Annotated, Any, Literal, Self

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    HttpUrl,
    SecretStr,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

UPSTREAM_URL = "https://www.data199.com/api/pv1/device/lastmeasurement"
PUSH_URL = "https://api.pushed.co/1/push"

# Readings fetched per device for the window check (newest included)
_HISTORY_SIZE = 3

# Indoor temperature rise against the newest reading that flags an open window
_WINDOW_OPEN_DELTA = 2.0


def _parse_bool(v: Any) -> bool:
    """Parse boolean from string '1'/'0' or actual bool."""
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        return v == "1"
    return bool(v)


def _upper(v: Any) -> Any:
    """Normalize level names like "debug" to "DEBUG"."""
    return v.upper() if isinstance(v, str) else v


def _validate_http_url(v: str) -> str:
    """Validate HTTP URL format."""
    HttpUrl(v)
    return v


_BoolFromStr = Annotated[bool, BeforeValidator(_parse_bool)]
_HttpUrlStr = Annotated[str, AfterValidator(_validate_http_url)]
_LogLevel = Annotated[
    Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
    BeforeValidator(_upper),
]


class DatabaseSettings(BaseSettings):
    """Database location, loadable on its own for the registry CLI."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    db_path: str = ""
    db_timeout_sec: float = Field(default=30.0, gt=0)


class UpstreamSettings(BaseModel):
    """Measurement API settings."""

    model_config = ConfigDict(frozen=True)

    url: str = UPSTREAM_URL
    phone_id: str = ""
    timeout_sec: float = 30.0


class NotificationSettings(BaseModel):
    """Push notification service settings."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    url: str = PUSH_URL
    app_key: str = ""
    app_secret: SecretStr = SecretStr("")
    timeout_sec: float = 30.0


class PollingSettings(BaseModel):
    """Polling service settings."""

    model_config = ConfigDict(frozen=True)

    frequency_sec: float = 60


class DetectionSettings(BaseModel):
    """Open-window heuristic settings."""

    model_config = ConfigDict(frozen=True)

    history_size: int = _HISTORY_SIZE
    window_open_delta: float = _WINDOW_OPEN_DELTA


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    db_path: str = ""
    db_timeout_sec: float = Field(default=30.0, gt=0)

    # Measurement API
    phone_id: str = ""
    upstream_url: _HttpUrlStr = UPSTREAM_URL
    upstream_timeout_sec: float = Field(default=30.0, gt=0)

    # Notifications
    enable_notification_service: _BoolFromStr = True
    app_key: str = ""
    app_secret: SecretStr = SecretStr("")
    push_url: _HttpUrlStr = PUSH_URL
    push_timeout_sec: float = Field(default=30.0, gt=0)

    # Scheduling and detection
    poll_frequency_sec: float = Field(default=60, gt=0)
    history_size: int = Field(default=_HISTORY_SIZE, ge=2)
    window_open_delta: float = Field(default=_WINDOW_OPEN_DELTA, gt=0)

    log_level: _LogLevel = "INFO"

    @cached_property
    def database(self) -> DatabaseSettings:
        """Get database settings as nested object."""
        return DatabaseSettings(
            db_path=self.db_path, db_timeout_sec=self.db_timeout_sec
        )

    @cached_property
    def upstream(self) -> UpstreamSettings:
        """Get measurement API settings as nested object."""
        return UpstreamSettings(
            url=self.upstream_url,
            phone_id=self.phone_id,
            timeout_sec=self.upstream_timeout_sec,
        )

    @cached_property
    def notifications(self) -> NotificationSettings:
        """Get notification settings as nested object."""
        return NotificationSettings(
            enabled=self.enable_notification_service,
            url=self.push_url,
            app_key=self.app_key,
            app_secret=self.app_secret,
            timeout_sec=self.push_timeout_sec,
        )

    @cached_property
    def polling(self) -> PollingSettings:
        """Get polling settings."""
        return PollingSettings(frequency_sec=self.poll_frequency_sec)

    @cached_property
    def detection(self) -> DetectionSettings:
        """Get open-window detection settings."""
        return DetectionSettings(
            history_size=self.history_size,
            window_open_delta=self.window_open_delta,
        )

    @model_validator(mode="after")
    def validate_settings(self) -> Self:
        """Validate that every required value is present."""
        missing: list[str] = []

        if not self.db_path:
            missing.append("DB_PATH")
        if not self.phone_id:
            missing.append("PHONE_ID")
        if self.enable_notification_service:
            if not self.app_key:
                missing.append("APP_KEY")
            if not self.app_secret.get_secret_value():
                missing.append("APP_SECRET")

        if missing:
            raise ValueError(
                "Configuration validation failed:\n  - missing "
                + "\n  - missing ".join(missing)
            )

        return self


# Settings override for testing - allows injecting custom Settings without
# modifying environment variables or clearing the lru_cache.
_settings_override: Settings | None = None


@lru_cache(maxsize=1)
def _load_settings() -> Settings:
    """Load settings from environment (cached)."""
    return Settings()


def get_settings() -> Settings:
    """Get the global settings instance.

    Returns the test override if set, otherwise loads from environment
    variables (cached after first load). For testing, use set_settings()
    from windowalert.lib.config.testing to override.
    """
    if _settings_override is not None:
        return _settings_override
    return _load_settings()


def get_database_settings() -> DatabaseSettings:
    """Get only the database settings.

    Unlike get_settings(), this does not require the upstream or push
    credentials, so registry maintenance works with just DB_PATH set.
    """
    if _settings_override is not None:
        return _settings_override.database
    return DatabaseSettings()
