"""Error taxonomy for the admin control plane.

Every FoundryError knows the HTTP status it maps to; the application
registers a single handler that renders them.  ParseError is not a
FoundryError on purpose: an unreadable build log fails the request hard.
"""

from __future__ import annotations

from typing import Any


class FoundryError(Exception):
    """Base class for errors that translate into an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(FoundryError):
    """A mandatory field is missing from a request.

    Carries the offending request payload so it can be echoed back.
    """

    status_code = 400

    def __init__(self, message: str, payload: Any = None) -> None:
        super().__init__(message)
        self.payload = payload


class AuthorizationError(FoundryError):
    """Caller lacks admin privilege."""

    status_code = 401


class NotFoundError(FoundryError):
    status_code = 404


class UnmappedRouteError(FoundryError):
    """No handler is mapped to the requested path and verb."""

    status_code = 404


class MalformedRequestError(FoundryError):
    status_code = 400


class HistoryStoreError(FoundryError):
    """The deployment history could not be read or written."""

    status_code = 400


class ParseError(Exception):
    """Build console output does not contain the expected facts."""
