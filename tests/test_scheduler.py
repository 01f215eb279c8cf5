"""Test the scheduler timers."""

import asyncio
from unittest.mock import AsyncMock, Mock

from atmosync.scheduler import Scheduler


class SlowHomeSync:
    """HomeSync stand-in whose cycles block until released."""

    def __init__(self, duration: float | None = None) -> None:
        self.duration = duration
        self.release = asyncio.Event()
        self.started = 0
        self.active = 0
        self.max_active = 0
        self.home_id: str | None = "home-1"
        self.async_update_messages = AsyncMock(return_value=True)
        self.shutdown = Mock()
        self.resume = Mock()
        self.async_update_homes_data = AsyncMock(side_effect=self._select_home)

    async def _select_home(self) -> bool:
        self.home_id = "home-1"
        return True

    async def async_run_cycle(self) -> bool:
        self.started += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.duration is None:
                await self.release.wait()
            else:
                await asyncio.sleep(self.duration)
        finally:
            self.active -= 1
        return True


def _session() -> Mock:
    session = Mock()
    session.refresh = AsyncMock()
    return session


async def test_tick_skipped_while_cycle_running() -> None:
    """Test a tick during a running cycle is dropped, not queued."""
    home_sync = SlowHomeSync()
    scheduler = Scheduler(home_sync, _session())

    assert scheduler.tick() is True
    await asyncio.sleep(0)
    assert scheduler.cycle_in_flight
    assert scheduler.tick() is False
    assert scheduler.tick() is False

    home_sync.release.set()
    await scheduler.wait_for_cycle()

    assert home_sync.started == 1
    assert scheduler.skipped_ticks == 2
    assert scheduler.tick() is True
    await scheduler.wait_for_cycle()
    assert home_sync.started == 2


async def test_overrunning_cycles_never_overlap() -> None:
    """Test cycles longer than the poll interval do not run concurrently."""
    home_sync = SlowHomeSync(duration=0.05)
    scheduler = Scheduler(
        home_sync, _session(), poll_interval=0.01, refresh_interval=60, messages_interval=None
    )

    scheduler.start()
    await asyncio.sleep(0.2)
    await scheduler.async_stop()
    await scheduler.wait_for_cycle()

    assert home_sync.started >= 2
    assert home_sync.max_active == 1
    assert scheduler.skipped_ticks > 0


async def test_refresh_and_messages_timers() -> None:
    """Test the refresh and message jobs run on their intervals."""
    home_sync = SlowHomeSync(duration=0)
    session = _session()
    scheduler = Scheduler(
        home_sync, session, poll_interval=60, refresh_interval=0.01, messages_interval=0.01
    )

    scheduler.start()
    await asyncio.sleep(0.06)
    await scheduler.async_stop()

    assert session.refresh.await_count >= 2
    assert home_sync.async_update_messages.await_count >= 2
    assert home_sync.started == 0


async def test_failing_job_keeps_timer_alive() -> None:
    """Test an exception in a job does not stop later ticks."""
    session = _session()
    session.refresh.side_effect = RuntimeError("boom")
    scheduler = Scheduler(
        SlowHomeSync(duration=0), session, poll_interval=60, refresh_interval=0.01, messages_interval=None
    )

    scheduler.start()
    await asyncio.sleep(0.06)
    assert scheduler.running
    await scheduler.async_stop()

    assert session.refresh.await_count >= 2


async def test_stop_cancels_timers_and_shuts_down_home_sync() -> None:
    """Test stop cancels every timer as a unit."""
    home_sync = SlowHomeSync(duration=0)
    session = _session()
    scheduler = Scheduler(home_sync, session, poll_interval=0.01, refresh_interval=0.01)

    scheduler.start()
    scheduler.start()
    assert scheduler.running
    await scheduler.async_stop()
    calls = session.refresh.await_count
    await asyncio.sleep(0.05)

    assert not scheduler.running
    assert session.refresh.await_count == calls
    home_sync.shutdown.assert_called_once()


async def test_stop_waits_for_running_cycle() -> None:
    """Test a cycle in flight at shutdown is drained, not cancelled."""
    home_sync = SlowHomeSync()
    scheduler = Scheduler(home_sync, _session())
    scheduler.start()
    scheduler.tick()
    await asyncio.sleep(0)

    stopping = asyncio.create_task(scheduler.async_stop())
    await asyncio.sleep(0.02)
    assert not stopping.done()
    assert scheduler.cycle_in_flight

    home_sync.release.set()
    await stopping
    assert not scheduler.cycle_in_flight
    assert home_sync.active == 0
    home_sync.shutdown.assert_called_once()


async def test_stop_gives_up_waiting_after_timeout() -> None:
    """Test a stuck cycle delays stop by at most the shutdown timeout."""
    home_sync = SlowHomeSync()
    scheduler = Scheduler(home_sync, _session(), shutdown_timeout=0.01)
    scheduler.start()
    scheduler.tick()
    await asyncio.sleep(0)

    await scheduler.async_stop()

    assert scheduler.cycle_in_flight
    home_sync.release.set()
    await scheduler.wait_for_cycle()
    assert home_sync.started == 1


async def test_restart_resumes_home_sync() -> None:
    """Test starting again after stop publishes cycle results again."""
    home_sync = SlowHomeSync(duration=0)
    scheduler = Scheduler(home_sync, _session())

    scheduler.start()
    await scheduler.async_stop()
    scheduler.start()
    await scheduler.async_stop()

    assert home_sync.resume.call_count == 2
    assert home_sync.shutdown.call_count == 2


async def test_poll_selects_home_before_first_cycle() -> None:
    """Test a poll without a home fetches homes data once a token exists."""
    home_sync = SlowHomeSync(duration=0)
    home_sync.home_id = None
    session = _session()
    session.token = None
    scheduler = Scheduler(
        home_sync, session, poll_interval=0.01, refresh_interval=60, messages_interval=None
    )

    scheduler.start()
    await asyncio.sleep(0.035)
    assert home_sync.async_update_homes_data.await_count == 0
    assert home_sync.started == 0

    session.token = "granted"
    await asyncio.sleep(0.05)
    await scheduler.async_stop()

    home_sync.async_update_homes_data.assert_awaited_once()
    assert home_sync.home_id == "home-1"
    assert home_sync.started >= 1


async def test_poll_waits_while_homes_data_fails() -> None:
    """Test no cycle runs while the home cannot be selected."""
    home_sync = SlowHomeSync(duration=0)
    home_sync.home_id = None
    home_sync.async_update_homes_data = AsyncMock(return_value=False)
    scheduler = Scheduler(
        home_sync, _session(), poll_interval=0.01, refresh_interval=60, messages_interval=None
    )

    scheduler.start()
    await asyncio.sleep(0.05)
    await scheduler.async_stop()

    assert home_sync.async_update_homes_data.await_count >= 2
    assert home_sync.started == 0
