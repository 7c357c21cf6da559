"""Shared fixtures for Plugin Foundry tests."""

from __future__ import annotations

import pytest

from tests.fakes import InMemoryRegistry, MemoryRecordStore, metadata


@pytest.fixture
def registry() -> InMemoryRegistry:
    return InMemoryRegistry([
        metadata(1, "billing", 1.0, enabled=True),
        metadata(1, "billing", 2.0, enabled=False),
        metadata(2, "reports", 1.0, enabled=True),
    ])


@pytest.fixture
def record_store() -> MemoryRecordStore:
    return MemoryRecordStore()
