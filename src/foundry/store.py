"""Record store contract.

A key-ordered persistent store that holds pydantic records grouped by
table name.  Each record is saved under its ``id`` attribute; saving an
existing key replaces the stored record.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TypeVar

from pydantic import BaseModel

RecordT = TypeVar("RecordT", bound=BaseModel)


class RecordStore(ABC):

    @abstractmethod
    async def create_table(self, table: str) -> None:
        """Make sure ``table`` exists. Idempotent."""

    @abstractmethod
    async def save(self, table: str, record: BaseModel) -> None:
        """Insert or replace ``record`` under ``record.id``."""

    @abstractmethod
    async def list(self, table: str, record_type: type[RecordT]) -> list[RecordT]:
        """Load every record in ``table`` as ``record_type``, in key order."""
