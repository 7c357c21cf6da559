"""SQL-backed implementations of the engine's storage contracts."""

from __future__ import annotations

import time

from loguru import logger
from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from foundry.auth import User
from foundry.models import ApplicationMetadata
from foundry.plugins.identifier import decode
from foundry.plugins.registry import PluginRegistry
from foundry.store import RecordStore, RecordT
from foundry_api.models import PluginRecord, RecordTable, StoredRecord


class SqlRecordStore(RecordStore):
    """Record store over the ``records`` table.

    Listing a table that was never created raises LookupError.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._sessions = session_factory

    async def create_table(self, table: str) -> None:
        async with self._sessions() as session:
            if await session.get(RecordTable, table) is None:
                session.add(RecordTable(name=table))
                await session.commit()
                logger.info(f"Record store: created table {table}")

    async def save(self, table: str, record: BaseModel) -> None:
        async with self._sessions() as session:
            await session.merge(StoredRecord(
                table_name=table,
                key=record.id,
                payload=record.model_dump_json(by_alias=True),
            ))
            await session.commit()

    async def list(self, table: str, record_type: type[RecordT]) -> list[RecordT]:
        async with self._sessions() as session:
            if await session.get(RecordTable, table) is None:
                raise LookupError(f"Table {table} does not exist")
            result = await session.execute(
                select(StoredRecord.payload)
                .where(StoredRecord.table_name == table)
                .order_by(StoredRecord.key)
            )
            return [record_type.model_validate_json(row[0]) for row in result.all()]


def _to_metadata(row: PluginRecord) -> ApplicationMetadata:
    return ApplicationMetadata(
        id=row.key,
        enabled=row.enabled,
        install_date=row.install_date,
        last_upgrade_date=row.last_upgrade_date,
        last_updated_by=row.last_updated_by,
    )


class DatabasePluginRegistry(PluginRegistry):
    """Plugin registry stored in the ``plugin_metadata`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._sessions = session_factory

    async def list_metadata(self) -> list[ApplicationMetadata]:
        async with self._sessions() as session:
            result = await session.execute(select(PluginRecord))
            return [_to_metadata(row) for row in result.scalars().all()]

    async def register(self, metadata: ApplicationMetadata) -> None:
        decode(metadata.id)  # rejects keys that are not name-id-version
        now = int(time.time() * 1000)
        async with self._sessions() as session:
            await session.merge(PluginRecord(
                key=metadata.id,
                enabled=metadata.enabled,
                install_date=metadata.install_date or now,
                last_upgrade_date=metadata.last_upgrade_date or now,
                last_updated_by=metadata.last_updated_by,
            ))
            await session.commit()

    async def change_state(self, metadata: ApplicationMetadata, user: User) -> None:
        async with self._sessions() as session:
            row = await session.get(PluginRecord, metadata.id)
            if row is None:
                return
            row.enabled = not row.enabled
            row.last_updated_by = user.username
            await session.commit()

    async def delete(self, plugin_id: int, version: float, user: User) -> bool:
        async with self._sessions() as session:
            result = await session.execute(select(PluginRecord.key))
            keys = [k for k in result.scalars().all() if decode(k).matches(plugin_id, version)]
            if not keys:
                return False
            await session.execute(delete(PluginRecord).where(PluginRecord.key.in_(keys)))
            await session.commit()
        logger.info(f"Registry: removed {', '.join(keys)} for {user.username}")
        return True
