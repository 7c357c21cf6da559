"""Deployment history: append-only log of pipeline outcomes."""

from __future__ import annotations

from loguru import logger

from foundry.errors import HistoryStoreError
from foundry.models import DeploymentResult
from foundry.store import RecordStore

DEPLOYMENT_HISTORY_TABLE = "foundry_deployment_history"


class DeploymentHistory:
    """Persists DeploymentResults keyed by ``<pluginId>_<version>_<timestamp>``.

    Records are never updated in place; appending a result whose key is
    already present silently replaces the earlier record.
    """

    def __init__(self, store: RecordStore, table: str = DEPLOYMENT_HISTORY_TABLE) -> None:
        self._store = store
        self._table = table

    async def append(self, result: DeploymentResult) -> None:
        await self._store.create_table(self._table)
        await self._store.save(self._table, result)
        logger.debug(f"Deployment history: recorded {result.id}")

    async def list(self) -> list[DeploymentResult]:
        """All records, newest first.

        "Newest" is by the raw timestamp text compared as a string, not as
        a parsed instant.

        Raises:
            HistoryStoreError: If the underlying store cannot be read.
        """
        try:
            records = await self._store.list(self._table, DeploymentResult)
        except Exception as e:
            message = f"Failed to fetch the deployment history: {e}"
            logger.error(message)
            raise HistoryStoreError(message) from e
        return sorted(records, key=lambda r: r.timestamp or "", reverse=True)
