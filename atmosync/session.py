"""Session handling: device identity, bearer token and reauthorization."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
import logging
from typing import Any, Protocol
from urllib.parse import urlencode
import uuid

from .client import AtmoClient
from .const import ENDPOINT_AUTHORIZE
from .exceptions import AtmoAuthenticationError, AtmoError
from .models import Credential, ReauthorizationRequested, Severity
from .store import StateStore

_LOGGER = logging.getLogger(__name__)

ReauthorizationListener = Callable[[ReauthorizationRequested], None]


class IdentityBackend(Protocol):
    """Durable storage for the device identity."""

    def load(self) -> str | None: ...

    def save(self, identity: str) -> None: ...


class SessionManager:
    """Own the device identity and the bearer token.

    The token is only written here. Other components read ``token`` right
    before each request since it may rotate between two awaits.
    """

    def __init__(
        self,
        client: AtmoClient,
        identity_store: IdentityBackend,
        store: StateStore,
    ) -> None:
        self._client = client
        self._identity_store = identity_store
        self._store = store
        self._credential: Credential | None = None
        self._listeners: list[ReauthorizationListener] = []

    @property
    def credential(self) -> Credential | None:
        """Current credential, if a session was established."""
        return self._credential

    @property
    def token(self) -> str | None:
        """Current bearer token."""
        return self._credential.bearer_token if self._credential else None

    @property
    def device_identity(self) -> str | None:
        """Persisted device identity, without creating one."""
        if self._credential is not None:
            return self._credential.device_identity
        return self._identity_store.load()

    def ensure_identity(self) -> str:
        """Return the persisted identity, creating and persisting one if absent."""
        identity = self._identity_store.load()
        if not identity:
            identity = str(uuid.uuid4())
            self._identity_store.save(identity)
            _LOGGER.info("Created device identity %s", identity)
        if self._credential is None or self._credential.device_identity != identity:
            self._credential = Credential(device_identity=identity)
        return identity

    def add_reauthorization_listener(
        self, callback: ReauthorizationListener
    ) -> Callable[[], None]:
        """Subscribe to reauthorization requests. Returns an unsubscribe callable."""
        self._listeners.append(callback)

        def remove_listener() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove_listener

    async def login(self, identity: str) -> Credential | None:
        """Exchange the identity for a bearer token.

        An unknown identity is registered on the fly; in that case the
        provider must be authorized first, so no token is returned.
        """
        try:
            data = await self._client.login(identity)
        except AtmoAuthenticationError as err:
            if err.status == 404:
                _LOGGER.info("Identity %s not registered, signing up", identity)
                await self.signup(identity)
                return None
            self._store.add_message(
                f"Unexpected response status for login: {err.status}", Severity.ERROR
            )
            return None
        except AtmoError as err:
            self._store.add_message(f"Login failed: {err}", Severity.ERROR)
            return None

        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            self._store.add_message("No token received from server", Severity.ERROR)
            return None

        self._credential = Credential(
            device_identity=identity,
            bearer_token=token,
            issued_at=datetime.now(timezone.utc),
        )
        _LOGGER.info("Logged in as %s", identity)
        return self._credential

    async def signup(self, identity: str) -> Any:
        """Register the identity and request provider authorization."""
        try:
            user = await self._client.signup(identity)
        except AtmoAuthenticationError as err:
            self._store.add_message(
                f"Invalid status code at signup: {err.status}", Severity.ERROR
            )
            return None
        except AtmoError as err:
            self._store.add_message(f"Signup failed: {err}", Severity.ERROR)
            return None

        _LOGGER.info("Signup OK for %s", identity)
        if user:
            self._emit(identity)
        return user

    async def refresh(self) -> None:
        """Rotate the bearer token. Never raises; the old token stays on failure."""
        identity = self.device_identity
        if not identity:
            _LOGGER.debug("No device identity yet, skipping token refresh")
            return
        try:
            credential = await self.login(identity)
        except Exception:  # noqa: BLE001
            _LOGGER.exception("Error refreshing bearer token")
            credential = None
        if credential is None:
            _LOGGER.warning("Bearer token refresh failed, keeping previous token")
            return
        _LOGGER.info("Bearer token refreshed successfully")

    async def whoami(self) -> Any:
        """Probe the session. The result is only logged."""
        try:
            data = await self._client.whoami(self.token)
        except AtmoError as err:
            _LOGGER.warning("whoami failed: %s", err)
            return None
        _LOGGER.info("whoami: %s", data)
        return data

    def request_reauthorization(self) -> None:
        """Drop the token and ask the navigation shell to reauthorize."""
        if self._credential is not None:
            self._credential.bearer_token = None
        self._store.add_message(
            "Netatmo authorization expired. Re-authorizing...", Severity.WARNING
        )
        identity = self.device_identity
        if not identity:
            self._store.add_message(
                "No device identity found. Please sign up again.", Severity.ERROR
            )
            return
        self._emit(identity)

    def _emit(self, identity: str) -> None:
        event = ReauthorizationRequested(
            device_identity=identity,
            url=f"{ENDPOINT_AUTHORIZE}?{urlencode({'id': identity})}",
        )
        _LOGGER.info("Requesting reauthorization at %s", event.url)
        for callback in list(self._listeners):
            try:
                callback(event)
            except Exception:  # noqa: BLE001
                _LOGGER.exception("Reauthorization listener failed")
