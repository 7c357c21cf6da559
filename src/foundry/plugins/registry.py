"""Plugin registry contract.

The registry owns plugin metadata records.  The admin plane only needs a
narrow slice of it: list every record, flip the enabled flag, and delete
one version.  ``change_state`` deliberately returns nothing; callers that
need the post-state must read it back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from foundry.models import ApplicationMetadata

if TYPE_CHECKING:
    from foundry.auth import User


class PluginRegistry(ABC):
    """Store of plugin metadata records keyed by combined plugin key."""

    @abstractmethod
    async def list_metadata(self) -> list[ApplicationMetadata]:
        """Return every plugin record, in no particular order."""

    @abstractmethod
    async def register(self, metadata: ApplicationMetadata) -> None:
        """Insert or replace a record."""

    @abstractmethod
    async def change_state(self, metadata: ApplicationMetadata, user: User) -> None:
        """Toggle the enabled flag of the record ``metadata`` refers to."""

    @abstractmethod
    async def delete(self, plugin_id: int, version: float, user: User) -> bool:
        """Delete one plugin version. Returns True if a record was removed."""
