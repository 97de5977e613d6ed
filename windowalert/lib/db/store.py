"""Persistence gateway for the device registry and measurements.

The Store owns one explicit Database handle and translates sqlite failures
into the application's DatabaseError taxonomy:

- IntegrityError on insert -> ConstraintViolation
- any other sqlite3.Error -> StoreUnavailable
"""

from __future__ import annotations

import sqlite3
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import cast

from windowalert.lib.db.connection import Database, load_template
from windowalert.lib.db.types import DeviceRow, MeasurementRow
from windowalert.lib.exceptions import (
    ConstraintViolation,
    DatabaseError,
    StoreUnavailable,
)
from windowalert.lib.models import Device, Measurement
from windowalert.lib.utils import from_sqlite, to_sqlite
from windowalert.logging import get_logger

logger = get_logger("lib.db.store")

_DEVICE_COLUMNS = "id, device_id, name, alert"


def _to_device(row: DeviceRow) -> Device:
    return Device(
        id=row["id"],
        external_id=row["device_id"],
        name=row["name"],
        alert_enabled=bool(row["alert"]),
    )


def _to_measurement(row: MeasurementRow) -> Measurement:
    return Measurement(
        device_id=row["device_id"],
        time=from_sqlite(row["time"]),
        temperature=row["temperature"],
        humidity=row["humidity"],
        temperature_outside=row["temperature_outside"],
        humidity_outside=row["humidity_outside"],
    )


@asynccontextmanager
async def _store_errors(operation: str) -> AsyncIterator[None]:
    """Re-raise sqlite failures as StoreUnavailable."""
    try:
        yield
    except DatabaseError:
        raise
    except sqlite3.Error as e:
        raise StoreUnavailable(f"{operation} failed: {e}") from e


class Store:
    """Device registry lookups and measurement persistence."""

    def __init__(self, db: Database) -> None:
        self._db = db

    @classmethod
    def from_path(cls, db_path: str, timeout_sec: float = 30.0) -> Store:
        return cls(Database(db_path, timeout_sec=timeout_sec))

    async def connect(self) -> None:
        """Open the underlying connection."""
        async with _store_errors("connect"):
            await self._db.connect()

    async def close(self) -> None:
        await self._db.close()

    async def __aenter__(self) -> Store:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.close()

    async def initialize(self) -> None:
        """Create the schema if it does not exist yet."""
        async with _store_errors("initialize"):
            await self._db.execute_pragma("PRAGMA journal_mode=WAL")
            await self._db.execute_pragma("PRAGMA foreign_keys=ON")
            await self._db.executescript(load_template("init_devices_table.sql"))
            await self._db.executescript(
                load_template("init_measurements_table.sql")
            )
            await self._db.executescript(load_template("idx_measurements.sql"))

    async def list_devices(self) -> list[Device]:
        """Return every registered device."""
        async with _store_errors("list_devices"):
            rows = await self._db.fetchall(
                f"SELECT {_DEVICE_COLUMNS} FROM devices ORDER BY id"
            )
        return [_to_device(cast(DeviceRow, row)) for row in rows]

    async def exists(self, device_id: int, time: datetime) -> bool:
        """Check whether a measurement is stored for this device and time."""
        async with _store_errors("exists"):
            row = await self._db.fetchone(
                "SELECT EXISTS("
                "SELECT 1 FROM measurements WHERE device_id = ? AND time = ?"
                ") AS found",
                (device_id, to_sqlite(time)),
            )
        return bool(row and row["found"])

    async def insert(self, measurement: Measurement) -> None:
        """Insert a new measurement.

        Raises:
            ConstraintViolation: The (device_id, time) pair is already stored.
            StoreUnavailable: The database could not be written.
        """
        async with _store_errors("insert"):
            try:
                await self._db.execute(
                    "INSERT INTO measurements (device_id, time, temperature, "
                    "humidity, temperature_outside, humidity_outside) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        measurement.device_id,
                        to_sqlite(measurement.time),
                        measurement.temperature,
                        measurement.humidity,
                        measurement.temperature_outside,
                        measurement.humidity_outside,
                    ),
                )
            except sqlite3.IntegrityError as e:
                raise ConstraintViolation(
                    f"Measurement for device {measurement.device_id} at "
                    f"{to_sqlite(measurement.time)} already stored"
                ) from e

    async def recent_measurements(
        self, devices: Iterable[Device], limit: int
    ) -> dict[Device, list[Measurement]]:
        """Return up to `limit` measurements per device, newest first.

        Devices without any stored measurement are left out of the result.
        """
        by_id = {device.id: device for device in devices}
        if not by_id or limit < 1:
            return {}

        sql = load_template("recent_measurements.sql").format(
            placeholders=", ".join("?" * len(by_id))
        )
        async with _store_errors("recent_measurements"):
            rows = await self._db.fetchall(sql, (*by_id, limit))

        grouped: dict[Device, list[Measurement]] = {}
        for row in rows:
            measurement = _to_measurement(cast(MeasurementRow, row))
            grouped.setdefault(by_id[measurement.device_id], []).append(
                measurement
            )
        return grouped

    async def add_device(
        self, external_id: str, name: str, alert_enabled: bool = False
    ) -> Device:
        """Register a device. Used by the registry CLI, not by the poller."""
        async with _store_errors("add_device"):
            try:
                await self._db.execute(
                    "INSERT INTO devices (device_id, name, alert) VALUES (?, ?, ?)",
                    (external_id, name, int(alert_enabled)),
                )
            except sqlite3.IntegrityError as e:
                raise ConstraintViolation(
                    f"Device {external_id!r} is already registered"
                ) from e
            row = await self._db.fetchone(
                f"SELECT {_DEVICE_COLUMNS} FROM devices WHERE device_id = ?",
                (external_id,),
            )
        logger.info("Registered device %s (%s)", name, external_id)
        return _to_device(cast(DeviceRow, row))

    async def set_alert(self, external_id: str, alert_enabled: bool) -> bool:
        """Toggle alerts for a device. Returns False if it is not registered."""
        async with _store_errors("set_alert"):
            updated = await self._db.execute(
                "UPDATE devices SET alert = ? WHERE device_id = ?",
                (int(alert_enabled), external_id),
            )
        return updated > 0
