"""Plugin records: identifier codec, registry contract, lifecycle control."""

from foundry.plugins.identifier import PluginIdentifier, decode, encode
from foundry.plugins.lifecycle import PluginLifecycleController, plugin_order
from foundry.plugins.registry import PluginRegistry

__all__ = [
    "PluginIdentifier",
    "PluginLifecycleController",
    "PluginRegistry",
    "decode",
    "encode",
    "plugin_order",
]
