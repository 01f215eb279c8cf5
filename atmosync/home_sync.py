"""Home level refresh cycle."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence
from enum import Enum
import logging
from time import monotonic
from typing import Any

from .client import AtmoClient
from .const import EXPECTED_MODULE_FLOOR, SLOW_CYCLE_SECONDS
from .device_sync import DeviceSync
from .exceptions import (
    AtmoAuthorizationError,
    AtmoConnectionError,
    AtmoDataError,
    AtmoError,
)
from .models import (
    HomeSnapshot,
    LogMessage,
    ModuleStatus,
    Origin,
    Severity,
    SlotRule,
    parse_timestamp,
)
from .session import SessionManager
from .store import StateStore

_LOGGER = logging.getLogger(__name__)


class SyncState(Enum):
    """Phases of a refresh cycle."""

    IDLE = "idle"
    FETCHING_SNAPSHOT = "fetching_snapshot"
    FAILED = "failed"
    CLASSIFYING = "classifying"
    DISPATCHING = "dispatching"
    RECONCILING = "reconciling"


def classify(
    modules: Iterable[ModuleStatus], rules: Sequence[SlotRule]
) -> list[tuple[SlotRule, ModuleStatus]]:
    """Assign modules to slots.

    Every rule is checked against every module, so a module matching a type
    rule and an id rule fills both slots.
    """
    return [
        (rule, module)
        for module in modules
        for rule in rules
        if rule.matches(module)
    ]


class HomeSync:
    """Run refresh cycles: snapshot, classify, fan out, reconcile.

    This is the only writer of module slots and of the home snapshot.
    """

    def __init__(
        self,
        client: AtmoClient,
        session: SessionManager,
        store: StateStore,
        device_sync: DeviceSync,
        rules: Sequence[SlotRule],
        expected_module_floor: int = EXPECTED_MODULE_FLOOR,
        slow_cycle_seconds: float = SLOW_CYCLE_SECONDS,
    ) -> None:
        self._client = client
        self._session = session
        self._store = store
        self._device_sync = device_sync
        self.rules = list(rules)
        self.expected_module_floor = expected_module_floor
        self.slow_cycle_seconds = slow_cycle_seconds
        self.home_id: str | None = None
        self.state = SyncState.IDLE
        self._closed = False

    @property
    def closed(self) -> bool:
        """True between shutdown() and resume()."""
        return self._closed

    def shutdown(self) -> None:
        """Discard the results of any cycle still in flight."""
        self._closed = True

    def resume(self) -> None:
        """Publish cycle results again after shutdown()."""
        self._closed = False

    async def async_update_homes_data(self) -> bool:
        """Fetch the homes of the account and select the first one."""
        try:
            data = await self._client.get_homes_data(self._session.token)
        except AtmoAuthorizationError:
            self._session.request_reauthorization()
            return False
        except AtmoConnectionError as err:
            self._store.add_message(_api_error_text(err), Severity.ERROR)
            return False
        except AtmoError as err:
            self._store.add_message(f"Error fetching data: {err}", Severity.ERROR)
            return False

        try:
            home = data["body"]["homes"][0]
            home_id = home["id"]
        except (KeyError, IndexError, TypeError):
            self._store.add_message("Invalid homes data structure received", Severity.ERROR)
            return False

        if self._closed:
            return False
        self.home_id = home_id
        self._store.set_homes_data(home)
        _LOGGER.info("Using home %s", home_id)
        return True

    async def async_run_cycle(self) -> bool:
        """Run one refresh cycle. Returns True when a snapshot was published."""
        if not self.home_id:
            _LOGGER.debug("No home id yet, skipping refresh")
            return False

        start = monotonic()
        try:
            return await self._run_cycle(self.home_id, start)
        except Exception as err:  # noqa: BLE001
            _LOGGER.exception("Unexpected error during refresh")
            self._store.add_message(f"Error fetching data: {err}", Severity.ERROR)
            return False
        finally:
            self.state = SyncState.IDLE

    async def _run_cycle(self, home_id: str, start: float) -> bool:
        self.state = SyncState.FETCHING_SNAPSHOT
        snapshot = await self._fetch_snapshot(home_id)
        if snapshot is None or self._closed:
            self.state = SyncState.FAILED
            return False

        self.state = SyncState.CLASSIFYING
        module_count = len(snapshot.modules)
        if module_count < self.expected_module_floor:
            self._store.add_message(
                f"Unexpected module count: {module_count} modules found",
                Severity.WARNING,
            )
        self._store.set_home_status(snapshot)
        assignments = classify(snapshot.modules, self.rules)

        self.state = SyncState.DISPATCHING
        results = await asyncio.gather(
            *(
                self._device_sync.sync_one(module, rule.metrics)
                for rule, module in assignments
            ),
            return_exceptions=True,
        )

        self.state = SyncState.RECONCILING
        updates: dict[str, ModuleStatus] = {}
        for (rule, module), result in zip(assignments, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                self._store.add_message(
                    f"Error updating module {module.id}: {result}", Severity.ERROR
                )
            elif result is not None and result.measures:
                updates[rule.slot] = result
            else:
                self._store.add_message(
                    f"No measures received for {rule.slot} {module.id}",
                    Severity.WARNING,
                )

        if self._closed:
            _LOGGER.debug("Shut down during refresh, dropping %s updates", len(updates))
            return False
        for slot, module in updates.items():
            self._store.set_module(slot, module)

        duration = monotonic() - start
        if duration > self.slow_cycle_seconds:
            self._store.add_message(
                f"Slow update in {duration:.2f}s with {len(updates)} modules",
                Severity.INFO,
            )
        return True

    async def _fetch_snapshot(self, home_id: str) -> HomeSnapshot | None:
        try:
            data = await self._client.get_home_status(self._session.token, home_id)
        except AtmoAuthorizationError:
            self._session.request_reauthorization()
            return None
        except AtmoConnectionError as err:
            if err.status is not None:
                text = f"homestatus: {err.status} {err.reason or ''}".rstrip()
            else:
                text = f"homestatus: {err}"
            self._store.add_message(text, Severity.ERROR)
            return None
        except AtmoDataError:
            data = None

        try:
            home = data["body"]["home"]
            if not isinstance(home["modules"], list):
                raise TypeError("modules is not a list")
            home.setdefault("id", home_id)
            return HomeSnapshot.from_raw(home)
        except (KeyError, TypeError, AttributeError):
            self._store.add_message(
                "Invalid home status structure received", Severity.ERROR
            )
            return None

    async def async_update_messages(self) -> bool:
        """Replace the server entries of the log with the backend's messages."""
        try:
            data = await self._client.get_messages(self._session.token)
        except AtmoAuthorizationError:
            self._session.request_reauthorization()
            return False
        except AtmoError as err:
            _LOGGER.error("Failed to fetch server messages: %s", err)
            return False

        if not isinstance(data, list):
            _LOGGER.error("Unexpected server messages payload: %s", data)
            return False
        if self._closed:
            return False
        self._store.replace_server_messages(_server_messages(data))
        return True


def _server_messages(entries: list[Any]) -> list[LogMessage]:
    messages = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        try:
            timestamp = parse_timestamp(entry.get("timestamp")).isoformat()
        except (TypeError, ValueError, OverflowError, OSError):
            _LOGGER.debug("Skipping server message without timestamp: %s", entry)
            continue
        messages.append(
            LogMessage(
                text=str(entry.get("message", "")),
                severity=Severity.from_raw(entry.get("severity")),
                timestamp=timestamp,
                origin=Origin.SERVER,
            )
        )
    return messages


def _api_error_text(err: AtmoConnectionError) -> str:
    payload = err.payload
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        return (
            f"Netatmo API Error ({error.get('code', 'unknown')}): "
            f"{error.get('message', 'Unknown error')}"
        )
    if err.status is not None:
        return f"Netatmo API Error: {err.status} {err.reason or ''}".rstrip()
    return f"Error fetching data: {err}"
