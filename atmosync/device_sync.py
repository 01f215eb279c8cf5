"""Per-module measurement synchronization."""

from __future__ import annotations

from collections.abc import Sequence
import logging

from .client import AtmoClient
from .const import MEASURE_SCALE
from .exceptions import AtmoAuthorizationError, AtmoConnectionError, AtmoDataError
from .models import ModuleStatus, Severity
from .normalizer import normalize
from .session import SessionManager
from .store import StateStore

_LOGGER = logging.getLogger(__name__)


class DeviceSync:
    """Fetch the measure series of a single module.

    Returns a new record instead of writing to the store; only the log is
    touched here.
    """

    def __init__(
        self,
        client: AtmoClient,
        session: SessionManager,
        store: StateStore,
        scale: str = MEASURE_SCALE,
    ) -> None:
        self._client = client
        self._session = session
        self._store = store
        self.scale = scale

    async def sync_one(
        self, module: ModuleStatus | None, requested_metrics: Sequence[str]
    ) -> ModuleStatus | None:
        """Return ``module`` with its measures, or None when nothing was fetched."""
        if module is None or not module.id:
            self._store.add_message("Module not available", Severity.WARNING)
            return None

        metrics = list(requested_metrics)
        try:
            data = await self._client.get_measure(
                self._session.token,
                module.device_id,
                module.id,
                metrics,
                scale=self.scale,
            )
        except AtmoAuthorizationError:
            self._session.request_reauthorization()
            return None
        except AtmoConnectionError as err:
            if err.status is not None:
                self._store.add_message(
                    f"getMeasure: {err.status} {err.reason or ''}".rstrip(),
                    Severity.ERROR,
                )
            else:
                self._store.add_message(f"getMeasure: {err}", Severity.ERROR)
            return None
        except AtmoDataError as err:
            _LOGGER.debug("Unparseable measure response for %s: %s", module.id, err)
            data = None

        body = data.get("body") if isinstance(data, dict) else None
        if not isinstance(body, list):
            self._store.add_message(
                f"Invalid response format for module {module.id}", Severity.ERROR
            )
            return None

        measures = normalize(body, metrics)
        _LOGGER.debug("Processed %s measures for module %s", len(measures), module.id)
        return module.with_measures(measures)
