"""Shared pytest fixtures for the test suite."""

import logging
import sqlite3
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from windowalert.lib.config import Settings, set_settings
from windowalert.lib.models import Device, Measurement

SQL_DIR = Path(__file__).parent.parent / "windowalert" / "lib" / "sql"


@pytest.fixture(autouse=True)
def configure_caplog(caplog):
    """Ensure caplog captures logs from the windowalert namespace."""
    caplog.set_level(logging.DEBUG, logger="windowalert")


@pytest.fixture(autouse=True)
def reset_settings():
    """Reset global settings after each test to avoid cross-test pollution."""
    yield
    set_settings(None)


@pytest.fixture
def db_path(tmp_path):
    """Path of a fresh SQLite database with the full schema."""
    db_file = tmp_path / "test.sqlite3"
    conn = sqlite3.connect(str(db_file))
    conn.executescript((SQL_DIR / "init_devices_table.sql").read_text())
    conn.executescript((SQL_DIR / "init_measurements_table.sql").read_text())
    conn.executescript((SQL_DIR / "idx_measurements.sql").read_text())
    conn.close()
    return str(db_file)


@pytest.fixture(autouse=True)
def test_settings(tmp_path):
    """Install settings pointing at a temporary database."""
    settings = Settings(
        db_path=str(tmp_path / "test.sqlite3"),
        phone_id="phone-1",
        app_key="key",
        app_secret="secret",
        poll_frequency_sec=60,
    )
    set_settings(settings)
    return settings


@pytest.fixture
def devices(db_path):
    """Register three devices: two with alerts, one without."""
    rows = [
        ("ext-kitchen", "Küche", 1),
        ("ext-bedroom", "Schlafzimmer", 1),
        ("ext-cellar", "Keller", 0),
    ]
    conn = sqlite3.connect(db_path)
    conn.executemany(
        "INSERT INTO devices (device_id, name, alert) VALUES (?, ?, ?)", rows
    )
    conn.commit()
    conn.close()
    return [
        Device(id=i, external_id=ext, name=name, alert_enabled=bool(alert))
        for i, (ext, name, alert) in enumerate(rows, start=1)
    ]


@pytest.fixture
def frozen_time():
    """Return a fixed datetime for deterministic tests."""
    return datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)


def make_measurement(
    device_id=1,
    time=None,
    temperature=20.0,
    humidity=50.0,
    temperature_outside=None,
    humidity_outside=None,
):
    """Create a Measurement for testing."""
    if time is None:
        time = datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)
    return Measurement(
        device_id=device_id,
        time=time,
        temperature=temperature,
        humidity=humidity,
        temperature_outside=temperature_outside,
        humidity_outside=humidity_outside,
    )


def history(*temperatures, start=None, device_id=1):
    """Measurements newest first, one minute apart."""
    start = start or datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)
    return [
        make_measurement(
            device_id=device_id,
            time=start - timedelta(minutes=i),
            temperature=t,
        )
        for i, t in enumerate(temperatures)
    ]
