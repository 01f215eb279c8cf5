"""In-memory application state shared by the sync components."""

from __future__ import annotations

from collections.abc import Callable, Iterable
import logging
from typing import Any

from .const import (
    MAX_LOG_MESSAGES,
    SLOT_BEDROOM,
    SLOT_HOME_OFFICE,
    SLOT_MAIN_STATION,
    SLOT_OUTDOOR,
    SLOT_POOL_HOUSE,
    SLOT_RAIN,
    SLOT_THERMOSTAT,
)
from .models import HomeSnapshot, LogMessage, ModuleStatus, Origin, Severity

_LOGGER = logging.getLogger(__name__)

SLOT_HOME_STATUS = "home_status"
SLOT_HOMES_DATA = "homes_data"
SLOT_LOG = "log"

_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class StateStore:
    """Latest known value of every slot plus a bounded operational log.

    Setters replace whole values; getters hand out the committed value or a
    copy of it, so a reader never sees a half written record.
    """

    def __init__(self, max_messages: int = MAX_LOG_MESSAGES) -> None:
        self._max_messages = max_messages
        self._home_status: HomeSnapshot | None = None
        self._homes_data: dict[str, Any] | None = None
        self._modules: dict[str, ModuleStatus] = {}
        self._messages: tuple[LogMessage, ...] = ()
        self._listeners: list[Callable[[str], None]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        """True once close() was called; commits are ignored until reopen()."""
        return self._closed

    def close(self) -> None:
        """Stop accepting commits. Log entries still reach the python logger."""
        self._closed = True

    def reopen(self) -> None:
        """Accept commits again after close()."""
        self._closed = False

    def add_listener(self, callback: Callable[[str], None]) -> Callable[[], None]:
        """Register a callback invoked with the slot name after each commit."""
        self._listeners.append(callback)

        def remove_listener() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove_listener

    def _accepting(self) -> bool:
        if self._closed:
            _LOGGER.debug("State store closed, dropping update")
            return False
        return True

    def _notify(self, slot: str) -> None:
        for callback in list(self._listeners):
            try:
                callback(slot)
            except Exception:  # noqa: BLE001
                _LOGGER.exception("StateStore listener failed for %s", slot)

    @property
    def home_status(self) -> HomeSnapshot | None:
        """Latest home status snapshot."""
        return self._home_status

    def set_home_status(self, snapshot: HomeSnapshot) -> None:
        """Publish a new home status snapshot."""
        if not self._accepting():
            return
        self._home_status = snapshot
        self._notify(SLOT_HOME_STATUS)

    @property
    def homes_data(self) -> dict[str, Any] | None:
        """First home of the homesdata response."""
        return dict(self._homes_data) if self._homes_data is not None else None

    def set_homes_data(self, home: dict[str, Any]) -> None:
        """Publish the home descriptor."""
        if not self._accepting():
            return
        self._homes_data = dict(home)
        self._notify(SLOT_HOMES_DATA)

    def module(self, slot: str) -> ModuleStatus | None:
        """Latest published module for a slot."""
        return self._modules.get(slot)

    def set_module(self, slot: str, module: ModuleStatus) -> None:
        """Publish a module for a slot."""
        if not self._accepting():
            return
        self._modules = {**self._modules, slot: module}
        self._notify(slot)

    def modules(self) -> dict[str, ModuleStatus]:
        """Copy of every published module keyed by slot."""
        return dict(self._modules)

    @property
    def main_station(self) -> ModuleStatus | None:
        return self.module(SLOT_MAIN_STATION)

    def set_main_station(self, module: ModuleStatus) -> None:
        self.set_module(SLOT_MAIN_STATION, module)

    @property
    def thermostat(self) -> ModuleStatus | None:
        return self.module(SLOT_THERMOSTAT)

    def set_thermostat(self, module: ModuleStatus) -> None:
        self.set_module(SLOT_THERMOSTAT, module)

    @property
    def rain(self) -> ModuleStatus | None:
        return self.module(SLOT_RAIN)

    def set_rain(self, module: ModuleStatus) -> None:
        self.set_module(SLOT_RAIN, module)

    @property
    def outdoor(self) -> ModuleStatus | None:
        return self.module(SLOT_OUTDOOR)

    def set_outdoor(self, module: ModuleStatus) -> None:
        self.set_module(SLOT_OUTDOOR, module)

    @property
    def pool_house(self) -> ModuleStatus | None:
        return self.module(SLOT_POOL_HOUSE)

    def set_pool_house(self, module: ModuleStatus) -> None:
        self.set_module(SLOT_POOL_HOUSE, module)

    @property
    def home_office(self) -> ModuleStatus | None:
        return self.module(SLOT_HOME_OFFICE)

    def set_home_office(self, module: ModuleStatus) -> None:
        self.set_module(SLOT_HOME_OFFICE, module)

    @property
    def bedroom(self) -> ModuleStatus | None:
        return self.module(SLOT_BEDROOM)

    def set_bedroom(self, module: ModuleStatus) -> None:
        self.set_module(SLOT_BEDROOM, module)

    def messages(self) -> tuple[LogMessage, ...]:
        """Log entries, oldest first."""
        return self._messages

    def add_message(
        self,
        text: str,
        severity: Severity | str = Severity.INFO,
        origin: Origin = Origin.CLIENT,
    ) -> LogMessage:
        """Append a message to the log and mirror it to the python logger."""
        message = LogMessage(text=text, severity=Severity(severity), origin=origin)
        _LOGGER.log(_LOG_LEVELS[message.severity], "%s", text)
        self._commit_messages((*self._messages, message))
        return message

    def replace_server_messages(self, entries: Iterable[LogMessage]) -> None:
        """Swap every server entry for ``entries`` and keep client entries."""
        client = [msg for msg in self._messages if msg.origin is not Origin.SERVER]
        server = [
            msg if msg.origin is Origin.SERVER else _as_server(msg) for msg in entries
        ]
        self._commit_messages((*client, *server))

    def _commit_messages(self, messages: Iterable[LogMessage]) -> None:
        if not self._accepting():
            return
        ordered = sorted(messages, key=lambda msg: msg.sort_key)
        self._messages = tuple(ordered[-self._max_messages :])
        self._notify(SLOT_LOG)


def _as_server(message: LogMessage) -> LogMessage:
    return LogMessage(
        text=message.text,
        severity=message.severity,
        timestamp=message.timestamp,
        origin=Origin.SERVER,
    )
