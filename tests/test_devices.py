"""Tests for the device registry CLI."""

import pytest

from windowalert.devices import build_parser, main
from windowalert.lib.config import set_settings


class TestDevicesCli:
    """Tests for the list/add/alert commands."""

    def test_add_then_list(self, tmp_path, capsys):
        db = str(tmp_path / "registry.sqlite3")

        assert main(["--db-path", db, "add", "ext-1", "Bad", "--alert"]) == 0
        assert main(["--db-path", db, "list"]) == 0

        out = capsys.readouterr().out
        assert "Added Bad (ext-1) as #1" in out
        assert "1\text-1\tBad\talert=on" in out

    def test_toggle_alert(self, tmp_path, capsys):
        db = str(tmp_path / "registry.sqlite3")
        main(["--db-path", db, "add", "ext-1", "Bad"])

        assert main(["--db-path", db, "alert", "ext-1", "on"]) == 0
        main(["--db-path", db, "list"])

        assert "alert=on" in capsys.readouterr().out

    def test_alert_for_unknown_device(self, tmp_path, caplog):
        db = str(tmp_path / "registry.sqlite3")

        assert main(["--db-path", db, "alert", "ext-404", "off"]) == 1
        assert "No device registered as ext-404" in caplog.text

    def test_duplicate_add_fails(self, tmp_path, caplog):
        db = str(tmp_path / "registry.sqlite3")
        main(["--db-path", db, "add", "ext-1", "Bad"])

        assert main(["--db-path", db, "add", "ext-1", "Bad"]) == 1
        assert "already registered" in caplog.text

    def test_defaults_to_configured_database(self, test_settings, capsys):
        assert main(["add", "ext-1", "Flur"]) == 0

        assert "Flur" in capsys.readouterr().out

    @pytest.fixture
    def db_only_env(self, monkeypatch, tmp_path):
        """Only DB_PATH is configured; no push or upstream credentials."""
        monkeypatch.chdir(tmp_path)
        for var in ("DB_PATH", "PHONE_ID", "APP_KEY", "APP_SECRET", "LOG_LEVEL"):
            monkeypatch.delenv(var, raising=False)
        set_settings(None)

    def test_runs_with_only_db_path_configured(
        self, db_only_env, monkeypatch, tmp_path, capsys
    ):
        monkeypatch.setenv("DB_PATH", str(tmp_path / "registry.sqlite3"))

        assert main(["add", "ext-1", "Flur"]) == 0
        assert main(["list"]) == 0

        assert "1\text-1\tFlur\talert=off" in capsys.readouterr().out

    def test_missing_db_path_fails(self, db_only_env, caplog):
        assert main(["list"]) == 1
        assert "DB_PATH" in caplog.text

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])
