"""Shared test fixtures for VitalTrack tests."""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DB_PATH", ":memory:")
    monkeypatch.setenv("AUDIT_ENABLED", "true")
    monkeypatch.setenv("VITALTRACK_ALLOW_INSECURE_BIND", "false")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from vitaltrack.core.storage.collection_store import CollectionStore  # noqa: E402
from vitaltrack.core.storage.key_value import InMemoryKeyValueStore  # noqa: E402

FIXED_TODAY = date(2024, 1, 1)


class Clock:
    """Settable ``today`` provider for record stores."""

    def __init__(self, today: date = FIXED_TODAY) -> None:
        self.today = today

    def __call__(self) -> date:
        return self.today


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def health_db():
    """Create an in-memory HealthDatabase for testing."""
    from vitaltrack.core.storage.database import HealthDatabase

    db = HealthDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def collections(kv_store: InMemoryKeyValueStore) -> CollectionStore:
    return CollectionStore(kv_store)


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def directory(collections):
    """UserDirectory over the in-memory medium."""
    from vitaltrack.domains.health.stores.user_directory import UserDirectory

    return UserDirectory(collections)


@pytest.fixture
def records(collections, clock):
    """HealthRecordStore over the in-memory medium with a settable date."""
    from vitaltrack.domains.health.stores.health_records import HealthRecordStore

    return HealthRecordStore(collections, today=clock)


@pytest.fixture
def audit_logger(health_db):
    """Create an AuditLogger backed by in-memory SQLite."""
    from vitaltrack.core.audit.logger import AuditLogger

    return AuditLogger(health_db)
