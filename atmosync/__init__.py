"""Session and telemetry synchronization for weather-station dashboards."""

__version__ = "0.1.0"

from .app import AtmoSync
from .client import AtmoClient
from .config import AtmoConfig, load_config
from .device_sync import DeviceSync
from .exceptions import (
    AtmoAuthenticationError,
    AtmoAuthorizationError,
    AtmoConfigError,
    AtmoConnectionError,
    AtmoDataError,
    AtmoError,
    AtmoValidationError,
)
from .home_sync import HomeSync, SyncState, classify
from .models import (
    Credential,
    HomeSnapshot,
    LogMessage,
    MeasurementPoint,
    ModuleStatus,
    ModuleType,
    Origin,
    ReauthorizationRequested,
    Room,
    Severity,
    SlotRule,
)
from .normalizer import normalize
from .scheduler import Scheduler
from .session import SessionManager
from .store import StateStore
from .timeformat import relative_time

__all__ = [
    "AtmoAuthenticationError",
    "AtmoAuthorizationError",
    "AtmoClient",
    "AtmoConfig",
    "AtmoConfigError",
    "AtmoConnectionError",
    "AtmoDataError",
    "AtmoError",
    "AtmoSync",
    "AtmoValidationError",
    "Credential",
    "DeviceSync",
    "HomeSnapshot",
    "HomeSync",
    "LogMessage",
    "MeasurementPoint",
    "ModuleStatus",
    "ModuleType",
    "Origin",
    "ReauthorizationRequested",
    "Room",
    "Scheduler",
    "SessionManager",
    "Severity",
    "SlotRule",
    "StateStore",
    "SyncState",
    "classify",
    "load_config",
    "normalize",
    "relative_time",
]
