"""HTTP client for the dashboard backend."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from .const import (
    CONNECT_TIMEOUT,
    DEFAULT_BASE_URL,
    ENDPOINT_GETMEASURE,
    ENDPOINT_HOMESDATA,
    ENDPOINT_HOMESTATUS,
    ENDPOINT_LOGIN,
    ENDPOINT_MESSAGES,
    ENDPOINT_SIGNUP,
    ENDPOINT_WHOAMI,
    MEASURE_SCALE,
    REQUEST_TIMEOUT,
)
from .exceptions import (
    AtmoAuthenticationError,
    AtmoAuthorizationError,
    AtmoConnectionError,
    AtmoDataError,
    AtmoValidationError,
)

_LOGGER = logging.getLogger(__name__)


class AtmoClient:
    """Thin async wrapper around the backend REST surface.

    Bearer calls take the token as an argument so callers always send the
    token that is current at the time of the request.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        websession: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Base URL of the backend, with or without scheme
            websession: Optional aiohttp ClientSession. If not provided, one will be created.
        """
        if not base_url.startswith("http"):
            base_url = f"http://{base_url}"
        self.base_url = base_url.rstrip("/")
        self._websession = websession
        self._own_session = websession is None
        self._timeout = aiohttp.ClientTimeout(
            total=REQUEST_TIMEOUT, connect=CONNECT_TIMEOUT
        )

    async def close_connection(self) -> None:
        """Close the connection and clean up resources."""
        if self._own_session and self._websession:
            await self._websession.close()
            self._websession = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure a websession exists."""
        if self._websession is None:
            self._websession = aiohttp.ClientSession()
            self._own_session = True
        return self._websession

    async def __aenter__(self) -> AtmoClient:
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close_connection()

    async def login(self, identity: str) -> dict[str, Any]:
        """Exchange the device identity for a bearer token.

        Raises:
            AtmoAuthenticationError: On any status other than 200 (404 means
                the identity is not registered)
        """
        return await self._auth_post(ENDPOINT_LOGIN, {"username": identity})

    async def signup(self, identity: str) -> Any:
        """Register the device identity."""
        return await self._auth_post(
            ENDPOINT_SIGNUP, {"username": identity, "password": ""}
        )

    async def whoami(self, token: str | None) -> Any:
        """Fetch the session owner."""
        return await self._get(ENDPOINT_WHOAMI, token)

    async def get_homes_data(self, token: str | None) -> Any:
        """Fetch the homes of the account."""
        return await self._get(ENDPOINT_HOMESDATA, token)

    async def get_home_status(self, token: str | None, home_id: str) -> Any:
        """Fetch the status snapshot of a home."""
        return await self._get(ENDPOINT_HOMESTATUS, token, {"home_id": home_id})

    async def get_measure(
        self,
        token: str | None,
        device_id: str | None,
        module_id: str | None,
        metrics: list[str],
        scale: str = MEASURE_SCALE,
    ) -> Any:
        """Fetch bucketed measures of a module.

        The metric order is kept as given; values come back in the same order.
        """
        if not module_id:
            raise AtmoValidationError("Module id is required")
        params = {
            "device_id": device_id or module_id,
            "module_id": module_id,
            "scale": scale,
            "type": ",".join(metrics),
        }
        return await self._get(ENDPOINT_GETMEASURE, token, params)

    async def get_messages(self, token: str | None) -> Any:
        """Fetch server side log messages."""
        return await self._get(ENDPOINT_MESSAGES, token)

    async def _auth_post(self, endpoint: str, payload: dict[str, Any]) -> Any:
        websession = await self._ensure_session()
        url = f"{self.base_url}{endpoint}"
        try:
            async with websession.post(
                url, json=payload, timeout=self._timeout
            ) as response:
                if response.status != 200:
                    raise AtmoAuthenticationError(
                        f"{endpoint}: {response.status} {response.reason}",
                        status=response.status,
                    )
                data = await response.json(content_type=None)
        except AtmoAuthenticationError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise AtmoConnectionError(f"Failed to reach {endpoint}: {err}") from err
        except ValueError as err:
            raise AtmoDataError(f"Failed to parse {endpoint} response: {err}") from err
        _LOGGER.debug("%s response: %s", endpoint, data)
        return data

    async def _get(
        self,
        endpoint: str,
        token: str | None,
        params: dict[str, str] | None = None,
    ) -> Any:
        websession = await self._ensure_session()
        url = f"{self.base_url}{endpoint}"
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            async with websession.get(
                url, params=params, headers=headers, timeout=self._timeout
            ) as response:
                if response.status in (401, 403):
                    raise AtmoAuthorizationError(
                        f"{endpoint}: authorization expired", status=response.status
                    )
                if response.status != 200:
                    raise AtmoConnectionError(
                        f"{endpoint}: {response.status} {response.reason}",
                        status=response.status,
                        reason=response.reason,
                        payload=await _error_payload(response),
                    )
                data = await response.json(content_type=None)
        except (AtmoAuthorizationError, AtmoConnectionError):
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise AtmoConnectionError(f"Failed to reach {endpoint}: {err}") from err
        except ValueError as err:
            raise AtmoDataError(f"Failed to parse {endpoint} response: {err}") from err
        _LOGGER.debug("%s response: %s", endpoint, data)
        return data


async def _error_payload(response: aiohttp.ClientResponse) -> Any:
    """Return the JSON error body of a failed response, if it has one."""
    try:
        return await response.json(content_type=None)
    except (aiohttp.ClientError, ValueError):
        return None
