"""Exceptions for the atmosync library."""

from __future__ import annotations

from typing import Any


class AtmoError(Exception):
    """Base exception for atmosync errors."""


class AtmoAuthenticationError(AtmoError):
    """Login or signup was rejected by the backend."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class AtmoAuthorizationError(AtmoError):
    """Provider authorization expired (401/403 on a bearer call)."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class AtmoConnectionError(AtmoError):
    """Transport failure or unexpected HTTP status."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        reason: str | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.reason = reason
        self.payload = payload


class AtmoDataError(AtmoError):
    """Response body could not be parsed or had an unexpected shape."""


class AtmoValidationError(AtmoError):
    """A request could not be built from the given input."""


class AtmoConfigError(AtmoError):
    """Configuration file is invalid."""
