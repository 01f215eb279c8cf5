"""Periodic timers driving the refresh cycle and token rotation."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import contextlib
import logging

from .const import (
    MESSAGES_INTERVAL,
    POLL_INTERVAL,
    REFRESH_INTERVAL,
    SHUTDOWN_TIMEOUT,
)
from .home_sync import HomeSync
from .session import SessionManager

_LOGGER = logging.getLogger(__name__)


class Scheduler:
    """Run HomeSync on the polling interval and SessionManager.refresh on the refresh interval.

    A polling tick that fires while the previous cycle is still running is
    skipped, not queued.
    """

    def __init__(
        self,
        home_sync: HomeSync,
        session: SessionManager,
        poll_interval: float = POLL_INTERVAL,
        refresh_interval: float = REFRESH_INTERVAL,
        messages_interval: float | None = MESSAGES_INTERVAL,
        shutdown_timeout: float = SHUTDOWN_TIMEOUT,
    ) -> None:
        self._home_sync = home_sync
        self._session = session
        self.poll_interval = poll_interval
        self.refresh_interval = refresh_interval
        self.messages_interval = messages_interval
        self.shutdown_timeout = shutdown_timeout
        self._timers: list[asyncio.Task[None]] = []
        self._cycle_task: asyncio.Task[bool] | None = None
        self.skipped_ticks = 0

    @property
    def running(self) -> bool:
        """True while the timers are active."""
        return any(not task.done() for task in self._timers)

    @property
    def cycle_in_flight(self) -> bool:
        """True while a refresh cycle is running."""
        return self._cycle_task is not None and not self._cycle_task.done()

    def start(self) -> None:
        """Start all timers."""
        if self.running:
            return
        self._home_sync.resume()
        self._timers = [
            asyncio.create_task(
                self._every(self.poll_interval, self._poll), name="atmosync-poll"
            ),
            asyncio.create_task(
                self._every(self.refresh_interval, self._session.refresh),
                name="atmosync-refresh",
            ),
        ]
        if self.messages_interval:
            self._timers.append(
                asyncio.create_task(
                    self._every(
                        self.messages_interval, self._home_sync.async_update_messages
                    ),
                    name="atmosync-messages",
                )
            )
        _LOGGER.info(
            "Scheduler started (poll %ss, refresh %ss)",
            self.poll_interval,
            self.refresh_interval,
        )

    def tick(self) -> bool:
        """Start a refresh cycle unless one is already running."""
        if self.cycle_in_flight:
            self.skipped_ticks += 1
            _LOGGER.info("Previous refresh still running, skipping this tick")
            return False
        self._cycle_task = asyncio.create_task(
            self._home_sync.async_run_cycle(), name="atmosync-cycle"
        )
        return True

    async def wait_for_cycle(self) -> None:
        """Wait until the running cycle, if any, has finished."""
        if self._cycle_task is not None:
            await asyncio.shield(self._cycle_task)

    async def async_stop(self) -> None:
        """Cancel all timers and let a cycle in flight finish.

        The cycle is awaited for at most ``shutdown_timeout`` seconds. It is
        never cancelled, and its results are dropped.
        """
        self._home_sync.shutdown()
        timers, self._timers = self._timers, []
        for task in timers:
            task.cancel()
        for task in timers:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self.cycle_in_flight:
            _, pending = await asyncio.wait(
                {self._cycle_task}, timeout=self.shutdown_timeout
            )
            if pending:
                _LOGGER.warning(
                    "Refresh still running after %ss, leaving it behind",
                    self.shutdown_timeout,
                )
        _LOGGER.info("Scheduler stopped")

    async def _poll(self) -> None:
        if self._home_sync.home_id is None:
            # No home selected yet (first run or failed bootstrap)
            if not self._session.token:
                return
            if not await self._home_sync.async_update_homes_data():
                return
        self.tick()

    async def _every(
        self, interval: float, job: Callable[[], Awaitable[object]]
    ) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await job()
            except asyncio.CancelledError:
                raise
            except Exception:  # noqa: BLE001
                _LOGGER.exception("Scheduled job %s failed", job)
