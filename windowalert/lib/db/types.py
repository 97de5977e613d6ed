"""Type definitions for database operations."""

from typing import Any, TypedDict

type SQLParams = tuple[Any, ...] | dict[str, Any]
"""SQL parameter types: positional tuple or named dict for query binding."""


class DeviceRow(TypedDict):
    """Device registry row from the database."""

    id: int
    device_id: str
    name: str
    alert: int


class MeasurementRow(TypedDict):
    """Measurement row from the database."""

    device_id: int
    time: str
    temperature: float
    humidity: float
    temperature_outside: float | None
    humidity_outside: float | None
