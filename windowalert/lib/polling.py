"""Generic async polling service abstraction.

Provides a reusable base class for services that run one tick per fixed
interval and stop cooperatively on SIGINT/SIGTERM.

State machine::

    WAITING --timer fires--> RUNNING --tick complete--> WAITING
    WAITING --cancel--> STOPPED

A cancellation arriving while RUNNING is held until the tick finishes and
honoured as soon as the next WAITING period begins. STOPPED is terminal.
"""
import asyncio
import signal
from abc import ABC, abstractmethod
from enum import StrEnum

from windowalert.lib.config import get_settings
from windowalert.logging import get_logger


class SchedulerState(StrEnum):
    WAITING = "waiting"
    RUNNING = "running"
    STOPPED = "stopped"


class PollingService(ABC):
    """Abstract base class for interval-driven polling services.

    Implements the common polling loop pattern with:
    - Configurable polling frequency, the first tick firing immediately
    - Graceful shutdown at the wait boundary, never mid-tick
    - Error recovery: a failing tick is logged and the next one runs on time
    """

    def __init__(
        self,
        name: str,
        frequency_sec: float | None = None,
    ) -> None:
        """Initialize the polling service.

        Args:
            name: Service name for logging.
            frequency_sec: Polling frequency in seconds.
        """
        self.name = name
        self.frequency_sec = (
            frequency_sec
            if frequency_sec is not None
            else get_settings().polling.frequency_sec
        )
        self._state = SchedulerState.WAITING
        self._stop_requested = asyncio.Event()
        self._logger = get_logger(f"polling.{name}")

    @property
    def state(self) -> SchedulerState:
        return self._state

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize any resources needed before polling starts."""

    @abstractmethod
    async def cleanup(self) -> None:
        """Clean up resources before exit."""

    @abstractmethod
    async def tick(self) -> None:
        """Run one complete pipeline execution."""

    def on_tick_error(self, error: Exception) -> None:
        """Handle an error that aborted a tick.

        Override to customize error handling. Default logs the error.
        """
        self._logger.error("%s tick failed: %s", self.name, error)

    def request_stop(self) -> None:
        """Ask the loop to stop at the next wait boundary.

        Idempotent; repeated requests collapse into one.
        """
        if not self._stop_requested.is_set():
            self._logger.info("Stop requested while %s", self._state)
        self._stop_requested.set()

    def _handle_shutdown(self, signum: int) -> None:
        """Handle shutdown signals gracefully."""
        signal_name = signal.Signals(signum).name
        self._logger.info("Received %s, initiating graceful shutdown...", signal_name)
        self.request_stop()

    def _setup_signal_handlers(self) -> None:
        """Register signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._handle_shutdown, sig)

    async def _wait(self, delay: float) -> bool:
        """Wait for the timer. Returns True if a stop was requested instead."""
        if self._stop_requested.is_set():
            return True
        try:
            await asyncio.wait_for(self._stop_requested.wait(), timeout=delay)
        except TimeoutError:
            return False
        return True

    async def _run_tick(self) -> None:
        try:
            await self.tick()
        except Exception as e:
            self.on_tick_error(e)

    async def _run_loop(self) -> None:
        """Run the async polling loop with precise timing."""
        if self._state is SchedulerState.STOPPED:
            raise RuntimeError(f"{self.name} polling service already stopped")

        await self.initialize()
        self._logger.info(
            "%s polling service started (every %ss)", self.name, self.frequency_sec
        )

        loop = asyncio.get_running_loop()
        delay = 0.0

        try:
            while True:
                self._state = SchedulerState.WAITING
                if await self._wait(delay):
                    break

                self._state = SchedulerState.RUNNING
                cycle_start = loop.time()
                await self._run_tick()

                # Sleep only the remaining time to maintain consistent intervals
                elapsed = loop.time() - cycle_start
                delay = max(0.0, self.frequency_sec - elapsed)
        finally:
            self._state = SchedulerState.STOPPED
            self._logger.info("Cleaning up resources...")
            await self.cleanup()
            self._logger.info("%s shutdown complete", self.name)

    async def _main(self) -> None:
        self._setup_signal_handlers()
        await self._run_loop()

    def run(self) -> None:
        """Run the polling loop.

        This is the main entry point. It:
        1. Sets up signal handlers for graceful shutdown
        2. Calls initialize()
        3. Runs one tick per interval until a stop is requested
        4. Calls cleanup() on exit
        """
        asyncio.run(self._main())
