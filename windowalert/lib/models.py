"""Domain models for registered devices and their measurements."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Device:
    """A sensor registered in the device registry."""

    id: int
    external_id: str
    name: str
    alert_enabled: bool


@dataclass(frozen=True, slots=True)
class Measurement:
    """One stored reading. Unique per (device_id, time)."""

    device_id: int
    time: datetime
    temperature: float
    humidity: float
    temperature_outside: float | None = None
    humidity_outside: float | None = None

    def __str__(self) -> str:
        return f"{self.temperature}c/{self.humidity}% at {self.time:%Y-%m-%d %H:%M:%S}"
