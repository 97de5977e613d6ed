"""Tests for the configuration module."""

import pytest
from pydantic import ValidationError

from windowalert.lib.config import (
    PUSH_URL,
    UPSTREAM_URL,
    Settings,
    get_settings,
    set_settings,
    validate_config,
    validate_database_config,
)
from windowalert.lib.exceptions import ConfigurationError

REQUIRED = {
    "db_path": "test.sqlite3",
    "phone_id": "phone-1",
    "app_key": "key",
    "app_secret": "secret",
}


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run without a .env file or inherited configuration."""
    monkeypatch.chdir(tmp_path)
    for var in (
        "DB_PATH",
        "PHONE_ID",
        "APP_KEY",
        "APP_SECRET",
        "ENABLE_NOTIFICATION_SERVICE",
        "POLL_FREQUENCY_SEC",
        "HISTORY_SIZE",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    set_settings(None)


class TestSettings:
    """Tests for settings loading and validation."""

    def test_defaults(self):
        settings = Settings(**REQUIRED)

        assert settings.polling.frequency_sec == 60
        assert settings.detection.history_size == 3
        assert settings.detection.window_open_delta == 2.0
        assert settings.upstream.url == UPSTREAM_URL
        assert settings.notifications.url == PUSH_URL
        assert settings.notifications.enabled is True

    def test_nested_views(self):
        settings = Settings(**REQUIRED)

        assert settings.upstream.phone_id == "phone-1"
        assert settings.notifications.app_key == "key"
        assert settings.notifications.app_secret.get_secret_value() == "secret"

    def test_secret_not_leaked_in_repr(self):
        assert "secret" not in repr(Settings(**REQUIRED).app_secret)

    @pytest.mark.parametrize("field", ["db_path", "phone_id", "app_key", "app_secret"])
    def test_required_values(self, clean_env, field):
        values = {k: v for k, v in REQUIRED.items() if k != field}

        with pytest.raises(ValidationError, match=field.upper()):
            Settings(**values)

    def test_credentials_optional_when_notifications_disabled(self, clean_env):
        settings = Settings(
            db_path="test.sqlite3",
            phone_id="phone-1",
            enable_notification_service="0",
        )

        assert settings.notifications.enabled is False

    def test_all_missing_values_reported_together(self, clean_env):
        with pytest.raises(ValidationError) as exc_info:
            Settings()

        message = str(exc_info.value)
        for var in ("DB_PATH", "PHONE_ID", "APP_KEY", "APP_SECRET"):
            assert var in message

    def test_history_needs_two_readings(self):
        with pytest.raises(ValidationError):
            Settings(**REQUIRED, history_size=1)

    def test_invalid_url_rejected(self):
        with pytest.raises(ValidationError):
            Settings(**REQUIRED, push_url="not a url")

    def test_log_level_normalised(self):
        assert Settings(**REQUIRED, log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            Settings(**REQUIRED, log_level="loud")

    def test_loaded_from_environment(self, clean_env, monkeypatch):
        monkeypatch.setenv("DB_PATH", "/var/lib/windowalert.sqlite3")
        monkeypatch.setenv("PHONE_ID", "phone-9")
        monkeypatch.setenv("APP_KEY", "k")
        monkeypatch.setenv("APP_SECRET", "s")
        monkeypatch.setenv("POLL_FREQUENCY_SEC", "30")

        settings = get_settings()

        assert settings.db_path == "/var/lib/windowalert.sqlite3"
        assert settings.polling.frequency_sec == 30


class TestValidateConfig:
    """Tests for the startup check."""

    def test_returns_override(self, test_settings):
        assert validate_config() is test_settings

    def test_missing_values_raise_configuration_error(self, clean_env):
        with pytest.raises(ConfigurationError, match="PHONE_ID"):
            validate_config()

    def test_unknown_log_level_raises_configuration_error(
        self, clean_env, monkeypatch
    ):
        for name, value in REQUIRED.items():
            monkeypatch.setenv(name.upper(), value)
        monkeypatch.setenv("LOG_LEVEL", "bogus")

        with pytest.raises(ConfigurationError, match="log_level"):
            validate_config()


class TestValidateDatabaseConfig:
    """Tests for loading only the database location."""

    def test_only_db_path_needed(self, clean_env, monkeypatch):
        monkeypatch.setenv("DB_PATH", "/var/lib/windowalert.sqlite3")

        settings = validate_database_config()

        assert settings.db_path == "/var/lib/windowalert.sqlite3"
        assert settings.db_timeout_sec == 30.0

    def test_missing_db_path(self, clean_env):
        with pytest.raises(ConfigurationError, match="DB_PATH"):
            validate_database_config()

    def test_uses_override(self, test_settings):
        assert validate_database_config().db_path == test_settings.db_path
