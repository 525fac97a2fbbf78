"""Interval-driven background task runner."""

import asyncio
from typing import Any, Awaitable, Callable, Optional

import structlog

logger = structlog.get_logger(__name__)


class BackgroundPoller:
    """Run an async job every ``interval_seconds`` until stopped."""

    def __init__(
        self,
        name: str,
        job: Callable[[], Awaitable[Any]],
        interval_seconds: float,
    ) -> None:
        self._name = name
        self._job = job
        self._interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the loop in a background task."""
        if self.is_running:
            logger.info("poller_already_running", poller=self._name)
            return

        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop(), name=self._name)
        logger.info(
            "poller_started",
            poller=self._name,
            interval_seconds=self._interval_seconds,
        )

    async def stop(self) -> None:
        """Signal the loop to stop and wait for the task to finish."""
        if not self._task:
            return
        self._stop_event.set()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            logger.info("poller_cancelled", poller=self._name)
        finally:
            self._task = None

    async def run_once(self) -> Any:
        """Run the job a single time, logging instead of raising on failure."""
        try:
            return await self._job()
        except Exception:
            logger.exception("poller_job_failed", poller=self._name)
            return None

    async def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            await self.run_once()

            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=self._interval_seconds,
                )
            except asyncio.TimeoutError:
                continue
