"""Match upstream readings to registered devices and persist new ones.

For every upstream entry: resolve the device, skip readings that are
already stored, insert the rest, and flag alert-enabled devices with a new
reading for a window check. Nothing in here aborts the tick; problems with
one entry are logged and the next entry is processed.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from windowalert.lib.db import Store
from windowalert.lib.exceptions import DatabaseError, UnmatchedDeviceWarning
from windowalert.lib.models import Device, Measurement
from windowalert.lib.upstream import DeviceEntry
from windowalert.lib.utils import from_epoch
from windowalert.logging import get_logger

logger = get_logger("poller.ingest")


@dataclass(slots=True)
class IngestResult:
    """What happened to the entries of one upstream response."""

    inserted: list[Measurement] = field(default_factory=list)
    duplicates: int = 0
    unmatched: list[UnmatchedDeviceWarning] = field(default_factory=list)
    failed: list[Device] = field(default_factory=list)
    to_evaluate: list[Device] = field(default_factory=list)


def build_measurement(device: Device, entry: DeviceEntry) -> Measurement:
    """Build a storable measurement from an upstream entry."""
    snapshot = entry.measurement
    return Measurement(
        device_id=device.id,
        time=from_epoch(snapshot.timestamp),
        temperature=snapshot.temperature,
        humidity=snapshot.humidity,
        temperature_outside=snapshot.temperature_outside,
        humidity_outside=snapshot.humidity_outside,
    )


async def ingest(
    store: Store,
    devices: Iterable[Device],
    entries: Sequence[DeviceEntry],
) -> IngestResult:
    """Persist the new readings among `entries`."""
    by_external_id = {device.external_id: device for device in devices}
    result = IngestResult()

    for entry in entries:
        device = by_external_id.get(entry.external_id)
        if device is None:
            warning = UnmatchedDeviceWarning(entry.external_id)
            logger.warning("%s, skipping", warning)
            result.unmatched.append(warning)
            continue

        try:
            measurement = build_measurement(device, entry)
        except (ValueError, OverflowError, OSError) as e:
            logger.error(
                "%s: unusable timestamp %s: %s",
                device.name,
                entry.measurement.timestamp,
                e,
            )
            result.failed.append(device)
            continue

        try:
            if await store.exists(device.id, measurement.time):
                logger.debug("%s: reading %s already stored", device.name, measurement)
                result.duplicates += 1
                continue
            await store.insert(measurement)
        except DatabaseError as e:
            logger.error("%s: could not store reading: %s", device.name, e)
            result.failed.append(device)
            continue

        logger.info("%s: stored %s", device.name, measurement)
        result.inserted.append(measurement)
        if device.alert_enabled and device not in result.to_evaluate:
            result.to_evaluate.append(device)

    return result
