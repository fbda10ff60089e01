"""Fixtures for F1 tests - Subject store, projector and persistence."""

import pytest

from tracker.core.attendance import AttendanceData, Subject, SubjectStore
from tracker.core.persistence import AttendancePersistence
from tracker.core.storage import MemoryKeyValueStore


class RecordingPersistence:
    """Persistence fake that remembers every call."""

    def __init__(self, initial: AttendanceData | None = None):
        self.data = initial
        self.saves: list[AttendanceData] = []
        self.clears = 0

    def load(self):
        return self.data

    def save(self, data):
        self.saves.append(data)
        self.data = data

    def clear(self):
        self.clears += 1
        self.data = None


@pytest.fixture
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def persistence(kv) -> AttendancePersistence:
    return AttendancePersistence(kv)


@pytest.fixture
def store(persistence) -> SubjectStore:
    return SubjectStore(persistence, clock=lambda: "2026-01-15T09:00:00+00:00")


@pytest.fixture
def recording() -> RecordingPersistence:
    return RecordingPersistence()


@pytest.fixture
def make_subject():
    """Build a Subject with sensible defaults."""

    def _make(present: int = 0, total: int = 0, target: int = 75, **kwargs) -> Subject:
        return Subject(
            id=kwargs.get("id", "sub01"),
            name=kwargs.get("name", "Mathematics"),
            target=target,
            present=present,
            total=total,
            created_at=kwargs.get("created_at", "2026-01-15T09:00:00+00:00"),
        )

    return _make
