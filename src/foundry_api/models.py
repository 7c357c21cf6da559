"""SQLAlchemy models for Plugin Foundry."""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Boolean, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from foundry_api.database import Base


class PluginRecord(Base):
    """Plugin metadata held by the registry."""

    __tablename__ = "plugin_metadata"

    key: Mapped[str] = mapped_column(String(300), primary_key=True)  # name-id-version
    enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    install_date: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    last_upgrade_date: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    last_updated_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)


class StoredRecord(Base):
    """Generic key-value row backing the record store; one table name per group."""

    __tablename__ = "records"

    table_name: Mapped[str] = mapped_column(String(100), primary_key=True)
    key: Mapped[str] = mapped_column(String(500), primary_key=True)
    payload: Mapped[str] = mapped_column(Text)
    saved_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


class RecordTable(Base):
    """Registry of table names created in the record store."""

    __tablename__ = "record_tables"

    name: Mapped[str] = mapped_column(String(100), primary_key=True)
