"""Identity provider and the admin authorization gate.

The identity provider turns an ``Authorization`` header into a User.  It
never rejects: unknown or missing credentials yield the anonymous user,
and the gate decides what that user may do.
"""

from __future__ import annotations

import base64
import binascii
import hmac
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping, Optional

from loguru import logger

from foundry.errors import AuthorizationError


@dataclass(frozen=True)
class User:
    """Caller identity."""
    username: str
    is_admin: bool = False


ANONYMOUS = User(username="anonymous")


def decode_basic_credentials(header: Optional[str]) -> tuple[str, str]:
    """Split an HTTP Basic ``Authorization`` header into (username, password).

    The password is everything after the first ``:``.

    Raises:
        ValueError: If the header is missing, not Basic, not valid base64,
            or has no ``:`` separator.
    """
    if not header:
        raise ValueError("Authorization header is missing")
    scheme, _, encoded = header.partition(" ")
    if scheme.lower() != "basic" or not encoded:
        raise ValueError("Authorization header is not HTTP Basic")
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ValueError(f"Malformed Basic credentials: {e}") from e
    username, sep, password = decoded.partition(":")
    if not sep:
        raise ValueError("Malformed Basic credentials: missing ':'")
    return username, password


class IdentityProvider(ABC):
    """Resolves the caller behind a request."""

    @abstractmethod
    def authenticate(self, authorization: Optional[str]) -> User:
        """Return the caller for an ``Authorization`` header value."""


class StaticIdentityProvider(IdentityProvider):
    """Identity provider over a fixed account table.

    Args:
        users: username -> password.
        admin_users: usernames granted admin privilege.
    """

    def __init__(self, users: Mapping[str, str], admin_users: list[str] | set[str] = ()) -> None:
        self._users = dict(users)
        self._admins = set(admin_users)

    def authenticate(self, authorization: Optional[str]) -> User:
        try:
            username, password = decode_basic_credentials(authorization)
        except ValueError:
            return ANONYMOUS

        expected = self._users.get(username)
        if expected is None or not hmac.compare_digest(expected.encode(), password.encode()):
            logger.debug(f"Rejected credentials for {username!r}")
            return ANONYMOUS
        return User(username=username, is_admin=username in self._admins)


def authorize(user: User) -> bool:
    """True if ``user`` may use the admin operations."""
    return user.is_admin


def ensure_admin(user: User) -> User:
    """Pass admins through; raise AuthorizationError for everyone else."""
    if not authorize(user):
        logger.warning(f"Admin access denied for {user.username}")
        raise AuthorizationError(
            f"The user: {user.username} does not have admin permissions."
        )
    return user
