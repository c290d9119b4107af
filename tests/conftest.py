"""Shared fixtures."""

from datetime import datetime, timezone

import pytest

from keyforge.history import HistoryStore
from keyforge.storage import Storage

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def storage(tmp_path) -> Storage:
    return Storage(str(tmp_path / "history.json"))


@pytest.fixture
def store(storage: Storage) -> HistoryStore:
    return HistoryStore(storage, clock=lambda: NOW)
