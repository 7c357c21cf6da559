"""Plugin lifecycle control: listing, enable/disable, version deletion.

State changes follow an optimistic read / apply / re-read sequence:

    read record by (id, version) -> compare enabled -> change_state()
    -> read record again and report that

Nothing is locked.  Two concurrent calls for the same plugin version can
both observe the old state and both toggle it; whichever write lands last
wins and the re-read reports it.  The loser gets no conflict signal.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from loguru import logger

from foundry.errors import NotFoundError
from foundry.models import ApplicationMetadata, PluginInfo, PluginSummary
from foundry.plugins.identifier import PluginIdentifier, decode
from foundry.plugins.registry import PluginRegistry

if TYPE_CHECKING:
    from foundry.auth import User


def summarize(metadata: ApplicationMetadata) -> PluginSummary:
    """Pair a registry record with its decoded identifier."""
    ident = decode(metadata.id)
    return PluginSummary(
        plugin_info=PluginInfo(id=ident.id, name=ident.name, version=ident.version_label),
        meta_data=metadata,
    )


def plugin_order(summary: PluginSummary) -> tuple[int, str]:
    """Sort key for listings: ascending id, then version compared as text.

    Text comparison means ``"10.0"`` sorts before ``"2.0"``.  Admin clients
    rely on this order, so it is kept.
    """
    return summary.plugin_info.id, summary.plugin_info.version


class PluginLifecycleController:
    """Applies admin operations to the plugin registry."""

    def __init__(self, registry: PluginRegistry) -> None:
        self._registry = registry

    async def list_plugins(self) -> list[PluginSummary]:
        records = await self._registry.list_metadata()
        return sorted((summarize(m) for m in records), key=plugin_order)

    async def find(self, plugin_id: int, version: float) -> Optional[ApplicationMetadata]:
        """Return the record for ``(plugin_id, version)`` or None."""
        for metadata in await self._registry.list_metadata():
            ident: PluginIdentifier = decode(metadata.id)
            if ident.matches(plugin_id, version):
                return metadata
        return None

    async def change_state(
        self, plugin_id: int, version: float, enabled: bool, user: User,
    ) -> Optional[PluginSummary]:
        """Bring a plugin version to the desired enabled state.

        Returns:
            The refreshed summary when a transition was applied, or None
            when the plugin was already in the desired state.

        Raises:
            NotFoundError: If no record matches ``(plugin_id, version)``.
        """
        current = await self.find(plugin_id, version)
        if current is None:
            raise NotFoundError(f"Plugin {plugin_id} version {version} not found")

        if current.enabled == enabled:
            return None

        await self._registry.change_state(current, user)
        refreshed = await self.find(plugin_id, version)
        if refreshed is None:
            # Deleted between apply and re-read.
            raise NotFoundError(f"Plugin {plugin_id} version {version} not found")

        logger.info(
            f"Plugin {current.id} {'enabled' if refreshed.enabled else 'disabled'} "
            f"by {user.username}"
        )
        return summarize(refreshed)

    async def delete_version(self, plugin_id: int, version: float, user: User) -> bool:
        deleted = await self._registry.delete(plugin_id, version, user)
        if deleted:
            logger.info(f"Plugin {plugin_id} v{version} deleted by {user.username}")
        return deleted
