"""Wire the sync components together."""

from __future__ import annotations

import logging

import aiohttp

from .client import AtmoClient
from .config import AtmoConfig
from .device_sync import DeviceSync
from .home_sync import HomeSync
from .scheduler import Scheduler
from .session import IdentityBackend, SessionManager
from .storage import IdentityStore, MemoryIdentityStore
from .store import StateStore

_LOGGER = logging.getLogger(__name__)


class AtmoSync:
    """Session and telemetry synchronization for the weather dashboard."""

    def __init__(
        self,
        config: AtmoConfig | None = None,
        websession: aiohttp.ClientSession | None = None,
        identity_store: IdentityBackend | None = None,
    ) -> None:
        """Initialize the components.

        Args:
            config: Runtime settings, defaults when omitted
            websession: Optional aiohttp ClientSession shared with the caller
            identity_store: Optional identity backend. Defaults to the sqlite
                database named in the config, or memory when there is none.
        """
        self.config = config or AtmoConfig()
        if identity_store is None:
            if self.config.identity_db:
                identity_store = IdentityStore(self.config.identity_db)
            else:
                identity_store = MemoryIdentityStore()

        self.store = StateStore(max_messages=self.config.max_messages)
        self.client = AtmoClient(self.config.base_url, websession)
        self.session = SessionManager(self.client, identity_store, self.store)
        self.device_sync = DeviceSync(
            self.client, self.session, self.store, scale=self.config.measure_scale
        )
        self.home_sync = HomeSync(
            self.client,
            self.session,
            self.store,
            self.device_sync,
            self.config.slot_rules,
            expected_module_floor=self.config.expected_module_floor,
            slow_cycle_seconds=self.config.slow_cycle_seconds,
        )
        self.scheduler = Scheduler(
            self.home_sync,
            self.session,
            poll_interval=self.config.poll_interval,
            refresh_interval=self.config.refresh_interval,
            messages_interval=self.config.messages_interval,
            shutdown_timeout=self.config.shutdown_timeout,
        )

    async def bootstrap(self) -> bool:
        """Log in, select the home and start the first refresh.

        Returns True when a session was established. A first run only
        registers a new identity and waits for provider authorization.
        """
        identity = self.session.device_identity
        if not identity:
            identity = self.session.ensure_identity()
            _LOGGER.info("No device identity yet, registered %s", identity)
            await self.session.signup(identity)
            return False

        self.session.ensure_identity()
        credential = await self.session.login(identity)
        if credential is None:
            return False

        await self.session.whoami()
        if await self.home_sync.async_update_homes_data():
            self.scheduler.tick()
        return True

    async def start(self) -> bool:
        """Bootstrap the session and start the timers."""
        self.store.reopen()
        self.home_sync.resume()
        established = await self.bootstrap()
        self.scheduler.start()
        return established

    async def stop(self) -> None:
        """Stop the timers and close the connection.

        The store is closed first, so nothing a draining cycle reports is
        published.
        """
        self.store.close()
        await self.scheduler.async_stop()
        await self.client.close_connection()

    async def __aenter__(self) -> AtmoSync:
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.stop()
