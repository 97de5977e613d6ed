"""Poll the measurement API, persist new readings and alert on open windows.

Each tick rebuilds its working set from the database:

    list devices -> fetch latest readings -> ingest (dedupe + persist)
    -> recent history of alert-enabled devices with new data
    -> open-window check -> push notification

Per-device problems are logged and skipped. Failing to list devices, fetch
or read history aborts the tick; the next tick is the retry.
"""

import sys
from typing import override

from windowalert.lib.config import Settings, validate_config
from windowalert.lib.db import Store
from windowalert.lib.detection import detect_open_window
from windowalert.lib.exceptions import (
    ConfigurationError,
    NotificationError,
    StoreUnavailable,
    UpstreamFailure,
)
from windowalert.lib.models import Device, Measurement
from windowalert.lib.notifications import AbstractNotifier, get_notifier
from windowalert.lib.polling import PollingService
from windowalert.lib.upstream import Fetcher
from windowalert.logging import configure, get_logger, set_level
from windowalert.poller.ingest import ingest

logger = get_logger("poller.service")


class WindowAlertService(PollingService):
    """Polling service for the open-window alert pipeline."""

    def __init__(
        self,
        store: Store,
        fetcher: Fetcher,
        notifier: AbstractNotifier,
        *,
        history_size: int,
        window_open_delta: float,
        frequency_sec: float | None = None,
    ) -> None:
        super().__init__(name="window-alert", frequency_sec=frequency_sec)
        self._store = store
        self._fetcher = fetcher
        self._notifier = notifier
        self._history_size = history_size
        self._window_open_delta = window_open_delta
        self._schema_ready = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "WindowAlertService":
        return cls(
            Store.from_path(settings.db_path, timeout_sec=settings.db_timeout_sec),
            Fetcher(settings.upstream),
            get_notifier(settings.notifications),
            history_size=settings.detection.history_size,
            window_open_delta=settings.detection.window_open_delta,
            frequency_sec=settings.polling.frequency_sec,
        )

    async def _ensure_store(self) -> None:
        """Connect and create the schema, once."""
        await self._store.connect()
        if not self._schema_ready:
            await self._store.initialize()
            self._schema_ready = True

    @override
    async def initialize(self) -> None:
        """Open the database and create the schema if it is reachable."""
        try:
            await self._ensure_store()
        except StoreUnavailable as e:
            logger.error("Database unavailable at startup, retrying each tick: %s", e)

    @override
    async def cleanup(self) -> None:
        """Close the database connection."""
        await self._store.close()

    @override
    async def tick(self) -> None:
        """Run one poll -> persist -> detect -> notify pass."""
        await self._ensure_store()
        devices = await self._store.list_devices()
        if not devices:
            logger.info("No devices registered, nothing to poll")
            return

        try:
            entries = await self._fetcher.fetch_latest(
                [device.external_id for device in devices]
            )
        except UpstreamFailure as e:
            logger.info("Skipping tick: %s", e)
            return

        result = await ingest(self._store, devices, entries)
        logger.info(
            "Ingested %d new, %d duplicate, %d unmatched, %d failed",
            len(result.inserted),
            result.duplicates,
            len(result.unmatched),
            len(result.failed),
        )
        if not result.to_evaluate:
            return

        history = await self._store.recent_measurements(
            result.to_evaluate, self._history_size
        )
        for device, measurements in history.items():
            await self._check_device(device, measurements)

    async def _check_device(
        self, device: Device, measurements: list[Measurement]
    ) -> None:
        detection = detect_open_window(measurements, self._window_open_delta)
        if not detection.is_open:
            return

        logger.warning(
            "Window open in %s: %s vs %s (+%.1f)",
            device.name,
            detection.latest,
            detection.reference,
            detection.delta,
        )
        try:
            await self._notifier.notify(device.name)
        except NotificationError as e:
            logger.error("Failed to notify for %s: %s", device.name, e)


def main() -> None:
    """Main entry point for the polling service."""
    configure()
    try:
        settings = validate_config()
    except ConfigurationError as e:
        logger.critical("%s", e)
        sys.exit(1)
    set_level(settings.log_level)
    WindowAlertService.from_settings(settings).run()


if __name__ == "__main__":
    main()
