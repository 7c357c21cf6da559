"""Plugin identifier codec.

A plugin is stored under a single combined key of the form
``<name>-<id>-<version>``, e.g. ``billing-42-1.0``.  Decoding splits on
the last two dashes, so names may themselves contain dashes.  The id and
version channels always round-trip; the version is normalised to its
float rendering (``"1"`` -> ``1.0``) and the name is carried verbatim.
"""

from __future__ import annotations

from dataclasses import dataclass

SEPARATOR = "-"


@dataclass(frozen=True)
class PluginIdentifier:
    """Decoded form of a combined plugin key."""
    id: int
    name: str
    version: float

    @property
    def key(self) -> str:
        return encode(self.id, self.name, self.version)

    @property
    def version_label(self) -> str:
        """Version as text, the way listings sort and display it."""
        return str(self.version)

    def matches(self, plugin_id: int, version: float) -> bool:
        return self.id == plugin_id and self.version == version


def encode(plugin_id: int, name: str, version: float) -> str:
    """Build the combined key for a plugin."""
    return f"{name}{SEPARATOR}{int(plugin_id)}{SEPARATOR}{float(version)}"


def decode(key: str) -> PluginIdentifier:
    """Parse a combined key.

    Raises:
        ValueError: If the key does not have the ``name-id-version`` shape
            or the id/version parts are not numeric.
    """
    parts = key.rsplit(SEPARATOR, 2)
    if len(parts) != 3:
        raise ValueError(f"Not a plugin key: {key!r}")
    name, plugin_id, version = parts
    return PluginIdentifier(id=int(plugin_id), name=name, version=float(version))
