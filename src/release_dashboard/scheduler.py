"""Periodic ingestion scheduling on the application's event loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from starlette.concurrency import run_in_threadpool

from .ingestor import Ingestor
from .models import IngestionReport

logger = logging.getLogger(__name__)

RunSync = Callable[..., Awaitable[Any]]


class IngestionScheduler:
    """Owns the cancellable periodic task that drives ingestion runs.

    The first tick fires immediately on ``start()``, then one tick every
    interval regardless of how long runs take. A tick that arrives while a
    run is still in progress is skipped. Runs execute in the threadpool so
    blocking HTTP calls, page pacing and file writes stay off the event loop.
    """

    def __init__(
        self,
        ingestor: Ingestor,
        interval_minutes: float,
        run_sync: RunSync = run_in_threadpool,
    ) -> None:
        self._ingestor = ingestor
        self._interval_seconds = interval_minutes * 60
        self._run_sync = run_sync
        self._task: Optional[asyncio.Task] = None
        self._current_run: Optional[asyncio.Task] = None
        self.last_report: Optional[IngestionReport] = None
        self.skipped_ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def busy(self) -> bool:
        return self._current_run is not None and not self._current_run.done()

    async def start(self) -> None:
        if self.running:
            return
        logger.info(
            "Starting ingestion scheduler every %s seconds",
            self._interval_seconds,
            extra={"interval_seconds": self._interval_seconds},
        )
        self._task = asyncio.create_task(self._loop(), name="release-ingestion-scheduler")

    async def _loop(self) -> None:
        while True:
            self.trigger()
            await asyncio.sleep(self._interval_seconds)

    def trigger(self) -> bool:
        """Start an ingestion run unless one is already in progress.

        Returns:
            ``True`` if a run was started, ``False`` if the tick was skipped.
        """
        if self.busy:
            self.skipped_ticks += 1
            logger.warning(
                "Ingestion run still in progress; skipping tick (%d skipped so far)",
                self.skipped_ticks,
                extra={"skipped_ticks": self.skipped_ticks},
            )
            return False

        self._current_run = asyncio.create_task(self._run_once(), name="release-ingestion-run")
        return True

    async def _run_once(self) -> Optional[IngestionReport]:
        try:
            report = await self._run_sync(self._ingestor.run)
        except Exception:
            # The loop must keep ticking; the next run retries.
            logger.exception("Ingestion run failed unexpectedly")
            return None

        self.last_report = report
        return report

    async def stop(self, timeout: float = 10.0) -> None:
        """Cancel the periodic task and wait briefly for an in-flight run."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self.busy:
            try:
                await asyncio.wait_for(asyncio.shield(self._current_run), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    "Ingestion run did not finish within %s seconds of shutdown",
                    timeout,
                    extra={"timeout_seconds": timeout},
                )

        logger.info("Ingestion scheduler stopped")
