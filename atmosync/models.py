"""Data models for atmosync library."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .const import TYPE_MAIN_STATION, TYPE_RAIN_GAUGE, TYPE_THERMOSTAT

_FRACTION = re.compile(r"(\.\d{6})\d+")


class ModuleType(Enum):
    """Known device classes."""

    MAIN_STATION = TYPE_MAIN_STATION
    THERMOSTAT = TYPE_THERMOSTAT
    RAIN_GAUGE = TYPE_RAIN_GAUGE
    OTHER = "other"

    @classmethod
    def from_raw(cls, raw_type: Any) -> ModuleType:
        """Map a provider type code to a ModuleType."""
        for member in cls:
            if member.value == raw_type and member is not cls.OTHER:
                return member
        return cls.OTHER


class Severity(str, Enum):
    """Log message severity."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @classmethod
    def from_raw(cls, raw: Any) -> Severity:
        """Parse a severity, tolerating upper case server values."""
        try:
            return cls(str(raw).lower())
        except ValueError:
            return cls.INFO


class Origin(str, Enum):
    """Where a log message was produced."""

    CLIENT = "client"
    SERVER = "server"


@dataclass
class Credential:
    """Device identity and the current bearer token."""

    device_identity: str
    bearer_token: str | None = None
    issued_at: datetime | None = None


@dataclass(frozen=True)
class MeasurementPoint:
    """Measurements at a single timestamp."""

    timestamp: int
    metric_values: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ModuleStatus:
    """Status of one module as reported by the home status endpoint."""

    id: str | None
    type: ModuleType = ModuleType.OTHER
    raw_type: str | None = None
    bridge_id: str | None = None
    telemetry_fields: dict[str, float | bool] = field(default_factory=dict)
    measures: tuple[MeasurementPoint, ...] | None = None

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> ModuleStatus:
        """Build a module from a homestatus module entry."""
        telemetry = {
            key: value
            for key, value in raw.items()
            if isinstance(value, (int, float, bool))
        }
        raw_type = raw.get("type")
        return cls(
            id=raw.get("id") or None,
            type=ModuleType.from_raw(raw_type),
            raw_type=raw_type,
            bridge_id=raw.get("bridge") or None,
            telemetry_fields=telemetry,
        )

    @property
    def device_id(self) -> str | None:
        """Id of the device the measure request is addressed to."""
        return self.bridge_id or self.id

    def with_measures(self, measures: list[MeasurementPoint]) -> ModuleStatus:
        """Return a copy carrying the given measures."""
        return replace(self, measures=tuple(measures))


@dataclass(frozen=True)
class Room:
    """A room of the home."""

    id: str | None
    name: str | None = None

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> Room:
        """Build a room from a homestatus room entry."""
        return cls(id=raw.get("id"), name=raw.get("name"))


@dataclass(frozen=True)
class HomeSnapshot:
    """Home status as returned by one homestatus call."""

    home_id: str | None
    rooms: tuple[Room, ...] = ()
    modules: tuple[ModuleStatus, ...] = ()

    @classmethod
    def from_raw(cls, home: dict[str, Any]) -> HomeSnapshot:
        """Build a snapshot from the ``body.home`` object."""
        return cls(
            home_id=home.get("id"),
            rooms=tuple(
                Room.from_raw(room)
                for room in home.get("rooms") or []
                if isinstance(room, dict)
            ),
            modules=tuple(
                ModuleStatus.from_raw(module)
                for module in home["modules"]
                if isinstance(module, dict)
            ),
        )


@dataclass(frozen=True)
class LogMessage:
    """An entry of the operational log."""

    text: str
    severity: Severity = Severity.INFO
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    origin: Origin = Origin.CLIENT

    @property
    def sort_key(self) -> datetime:
        """Timestamp as an aware datetime for ordering."""
        return parse_timestamp(self.timestamp)


@dataclass(frozen=True)
class SlotRule:
    """One row of the module classification table."""

    slot: str
    metrics: tuple[str, ...]
    module_type: str | None = None
    module_id: str | None = None

    def matches(self, module: ModuleStatus) -> bool:
        """Check whether the rule applies to the module."""
        if self.module_type is not None and module.raw_type == self.module_type:
            return True
        return self.module_id is not None and module.id == self.module_id


@dataclass(frozen=True)
class ReauthorizationRequested:
    """Signal for the navigation shell to restart provider authorization."""

    device_identity: str
    url: str


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string, epoch number or datetime into an aware datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        text = _FRACTION.sub(r"\1", text)
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
