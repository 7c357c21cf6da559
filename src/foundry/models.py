"""Shared pydantic models.

Field names go over the wire in camelCase (``repoUrl``, ``pluginInfo``)
so existing admin clients keep working; Python code uses snake_case.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialised with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ApplicationMetadata(CamelModel):
    """A plugin record as held by the registry.

    ``id`` is the combined plugin key (see ``foundry.plugins.identifier``).
    """
    id: str
    enabled: bool = True
    install_date: Optional[int] = None
    last_upgrade_date: Optional[int] = None
    last_updated_by: Optional[str] = None


class StatePatch(CamelModel):
    """Partial metadata document sent with a PATCH; only ``enabled`` is used."""
    enabled: bool = False


class PluginInfo(CamelModel):
    id: int
    name: str
    version: str


class PluginSummary(CamelModel):
    """Read view pairing a decoded identifier with the registry record."""
    plugin_info: PluginInfo
    meta_data: ApplicationMetadata


class DeploymentRequest(CamelModel):
    """Body of a pipeline trigger.

    ``repo_url`` and ``plugin_id`` are mandatory but typed optional so a
    missing value can be reported with the request echoed back.
    """
    repo_url: Optional[str] = None
    plugin_id: Optional[str] = None
    branch: Optional[str] = None
    sub_dir: Optional[str] = None
    skip_tests: bool = False
    service: Optional[str] = None
    message: Optional[str] = None


class DeploymentResult(CamelModel):
    """Outcome of one pipeline run, derived from the build console output."""
    success: bool = False
    name: Optional[str] = None
    version: Optional[str] = None
    timestamp: Optional[str] = None
    logs: str = ""
    message: Optional[str] = None
    plugin_id: Optional[str] = None
    repo_url: Optional[str] = None
    branch: Optional[str] = None
    sub_dir: Optional[str] = None
    skip_tests: bool = False
    service: Optional[str] = None

    @property
    def id(self) -> str:
        """History key: ``<pluginId>_<version>_<timestamp>``."""
        return f"{self.plugin_id}_{self.version}_{self.timestamp}"
