"""Periodic Sync Scheduler - Run a sweep at a fixed rate.

One background task runs ``SweepOrchestrator.sweep()`` every
``interval_seconds``, measured from the start of each tick; the first
tick runs immediately. A sweep that overruns the interval delays the
next tick instead of overlapping it.

Manual triggers bypass the tick lock: they await a full sweep of their
own and may run alongside a scheduled one.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from ci_status_db.config import get_settings
from ci_status_db.logging import get_logger

from .enums import SweepTrigger
from .results import SweepResult, TriggerResult

if TYPE_CHECKING:
    from .orchestrator import SweepOrchestrator

logger = get_logger(__name__)


class PeriodicSyncScheduler:
    """Drives scheduled sweeps and answers manual triggers.

    Usage:
        scheduler = PeriodicSyncScheduler(orchestrator)
        await scheduler.start()
        ...
        result = await scheduler.trigger()  # manual sweep, own counters
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        orchestrator: SweepOrchestrator,
        *,
        interval_seconds: float | None = None,
        enabled: bool | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            orchestrator: Runs the actual sweeps
            interval_seconds: Seconds between tick starts.
                              Defaults to settings.scheduler.interval_seconds.
            enabled: Run scheduled ticks. Defaults to settings.scheduler.enabled.
                     Manual triggers run either way.
        """
        settings = get_settings().scheduler
        self._orchestrator = orchestrator
        self._interval = interval_seconds or settings.interval_seconds
        self._enabled = settings.enabled if enabled is None else enabled

        self._tick_lock = asyncio.Lock()
        self._running = False
        self._task: asyncio.Task[None] | None = None

        self._ticks = 0
        self._last_result: SweepResult | None = None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Start the background tick loop (no-op if already running)."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(
            "Sync scheduler started (interval={}s, enabled={})",
            self._interval,
            self._enabled,
        )

    async def stop(self) -> None:
        """Stop the tick loop, cancelling a sweep in progress."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Sync scheduler stopped after {} ticks", self._ticks)

    async def run_forever(self) -> None:
        """Run the tick loop until cancelled."""
        await self.start()
        try:
            if self._task:
                await self._task
        finally:
            await self.stop()

    @property
    def is_running(self) -> bool:
        """Whether the tick loop is running."""
        return self._running

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def ticks(self) -> int:
        """Number of scheduled ticks that ran a sweep."""
        return self._ticks

    @property
    def last_result(self) -> SweepResult | None:
        """Result of the most recent scheduled sweep."""
        return self._last_result

    # -------------------------------------------------------------------------
    # Ticks
    # -------------------------------------------------------------------------

    async def tick(self) -> SweepResult | None:
        """Run one scheduled tick.

        Ticks are serialized: a tick that starts while another is still
        sweeping waits for it. Errors are logged, never raised.

        Returns:
            The sweep result, or None if disabled or the sweep blew up
        """
        if not self._enabled:
            logger.debug("Scheduler is disabled, skipping GitHub sync")
            return None

        async with self._tick_lock:
            try:
                result = await self._orchestrator.sweep(SweepTrigger.SCHEDULED)
            except Exception:
                logger.exception("Critical error during scheduled GitHub sync")
                return None

            self._ticks += 1
            self._last_result = result
            return result

    async def _run_loop(self) -> None:
        loop = asyncio.get_running_loop()
        while self._running:
            started = loop.time()
            await self.tick()
            delay = self._interval - (loop.time() - started)
            if delay > 0:
                await asyncio.sleep(delay)
            else:
                logger.warning(
                    "Sweep took longer than the {}s interval; next tick starts now",
                    self._interval,
                )

    # -------------------------------------------------------------------------
    # Manual Trigger
    # -------------------------------------------------------------------------

    async def trigger(self) -> TriggerResult:
        """Run a full sweep now and wait for it.

        Uses the same logic as a scheduled tick but with its own
        SweepResult, and does not wait for the tick lock.
        """
        logger.info("Manual GitHub sync triggered")
        try:
            sweep = await self._orchestrator.sweep(SweepTrigger.MANUAL)
        except Exception as e:
            logger.exception("Manual GitHub sync failed")
            return TriggerResult(success=False, message=f"Failed to trigger sync: {e}")
        return TriggerResult.from_sweep(sweep)
