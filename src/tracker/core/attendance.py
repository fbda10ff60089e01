"""Subject store module.

Responsibilities:
- Own the ordered collection of tracked subjects
- Apply mark-present / mark-absent / edit / delete / reset mutations
- Enforce counter invariants (0 <= present <= total, target in 1..100)
- Snapshot the full state through the injected persistence adapter
  after every mutation

Invalid input and unknown ids never raise: they are logged and the
operation becomes a no-op.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Iterable

import structlog

from tracker.config.app_config import DEFAULT_TARGET
from tracker.utils.validators import (
    is_valid_counts,
    is_valid_target,
    normalize_subject_name,
)

if TYPE_CHECKING:
    from tracker.core.persistence import PersistenceAdapter

logger = structlog.get_logger(__name__)

SUBJECT_ID_PREFIX = "sub"

# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass(frozen=True)
class Subject:
    """A tracked course with its attendance counters."""

    id: str
    name: str
    target: int
    present: int = 0
    total: int = 0
    created_at: str = ""

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "target": self.target,
            "present": self.present,
            "total": self.total,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class AttendanceData:
    """Persisted envelope: subjects in insertion order."""

    subjects: tuple[Subject, ...] = ()
    # Highest id sequence ever issued
    last_id_seq: int = 0


@dataclass(frozen=True)
class SubjectUpdate:
    """Fields to merge into a subject. None means "leave as is"."""

    name: str | None = None
    target: int | None = None
    present: int | None = None
    total: int | None = None

    def is_empty(self) -> bool:
        return (
            self.name is None
            and self.target is None
            and self.present is None
            and self.total is None
        )


# =============================================================================
# ID GENERATION
# =============================================================================


class SubjectIdGenerator:
    """Monotonic subject ids: sub01, sub02, ...

    The counter never goes backwards, so ids stay unique for the lifetime
    of the generator even after deletes or a full reset.
    """

    def __init__(self, prefix: str = SUBJECT_ID_PREFIX):
        self._prefix = prefix
        self._last = 0
        self._lock = threading.Lock()

    def seed(self, existing_ids: Iterable[str]) -> None:
        """Advance the counter past any ids already in use."""
        with self._lock:
            for subject_id in existing_ids:
                if not subject_id.startswith(self._prefix):
                    continue
                try:
                    num = int(subject_id[len(self._prefix):])
                except ValueError:
                    continue
                self._last = max(self._last, num)

    def advance(self, seq: int) -> None:
        with self._lock:
            self._last = max(self._last, seq)

    @property
    def last(self) -> int:
        return self._last

    def __call__(self) -> str:
        with self._lock:
            self._last += 1
            return f"{self._prefix}{self._last:02d}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# SUBJECT STORE
# =============================================================================


class SubjectStore:
    """Owns all Subject records.

    Usage:
        store = SubjectStore(AttendancePersistence(FileKeyValueStore(data_dir)))
        subject = store.add_subject("Physics", 80)
        store.mark_present(subject.id)
    """

    def __init__(
        self,
        persistence: PersistenceAdapter,
        *,
        id_factory: Callable[[], str] | None = None,
        clock: Callable[[], str] | None = None,
    ):
        self._persistence = persistence
        self._clock = clock or _now_iso
        self._lock = threading.RLock()
        self._subjects: list[Subject] = []

        if id_factory is None:
            self._id_generator: SubjectIdGenerator | None = SubjectIdGenerator()
            self._id_factory: Callable[[], str] = self._id_generator
        else:
            self._id_generator = None
            self._id_factory = id_factory

        self.reload()

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def subjects(self) -> tuple[Subject, ...]:
        """Snapshot of all subjects in insertion order."""
        with self._lock:
            return tuple(self._subjects)

    def get_subject(self, subject_id: str) -> Subject | None:
        with self._lock:
            index = self._index_of(subject_id)
            if index is None:
                return None
            return self._subjects[index]

    def snapshot(self) -> AttendanceData:
        with self._lock:
            last_id_seq = self._id_generator.last if self._id_generator else 0
            return AttendanceData(subjects=tuple(self._subjects), last_id_seq=last_id_seq)

    def __len__(self) -> int:
        with self._lock:
            return len(self._subjects)

    def reload(self) -> None:
        """Replace in-memory state with whatever the adapter holds."""
        data = self._persistence.load()
        with self._lock:
            self._subjects = list(data.subjects) if data else []
            if self._id_generator is not None:
                self._id_generator.seed(s.id for s in self._subjects)
                if data:
                    self._id_generator.advance(data.last_id_seq)
        logger.debug("subjects_loaded", count=len(self._subjects))

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_subject(self, name: str, target: int = DEFAULT_TARGET) -> Subject | None:
        """Create a subject with zeroed counters.

        Returns:
            The new Subject, or None when name is blank or target invalid.
        """
        clean_name = normalize_subject_name(name)
        if clean_name is None:
            logger.warning("subject_rejected", reason="empty_name")
            return None
        if not is_valid_target(target):
            logger.warning("subject_rejected", reason="invalid_target", target=target)
            return None

        with self._lock:
            subject = Subject(
                id=self._next_id(),
                name=clean_name,
                target=target,
                present=0,
                total=0,
                created_at=self._clock(),
            )
            self._subjects.append(subject)
            self._persist()

        logger.info("subject_added", subject_id=subject.id, target=target)
        return subject

    def delete_subject(self, subject_id: str) -> bool:
        """Remove a subject. Returns True if it existed."""
        with self._lock:
            index = self._index_of(subject_id)
            if index is not None:
                self._subjects.pop(index)
            self._persist()

        if index is None:
            logger.debug("subject_not_found", op="delete", subject_id=subject_id)
            return False
        logger.info("subject_deleted", subject_id=subject_id)
        return True

    def update_subject(self, subject_id: str, update: SubjectUpdate) -> Subject | None:
        """Merge the provided fields into a subject.

        The whole update is rejected when any provided field is invalid,
        so a subject is never left half-edited.

        Returns:
            The updated Subject, or None when the id is unknown or the
            update was rejected.
        """
        with self._lock:
            index = self._index_of(subject_id)
            if index is None:
                logger.debug("subject_not_found", op="update", subject_id=subject_id)
                return None

            current = self._subjects[index]
            changes: dict[str, object] = {}

            if update.name is not None:
                clean_name = normalize_subject_name(update.name)
                if clean_name is None:
                    logger.warning(
                        "subject_update_rejected", subject_id=subject_id, reason="empty_name"
                    )
                    return None
                changes["name"] = clean_name

            if update.target is not None:
                if not is_valid_target(update.target):
                    logger.warning(
                        "subject_update_rejected",
                        subject_id=subject_id,
                        reason="invalid_target",
                        target=update.target,
                    )
                    return None
                changes["target"] = update.target

            present = current.present if update.present is None else update.present
            total = current.total if update.total is None else update.total
            if not is_valid_counts(present, total):
                logger.warning(
                    "subject_update_rejected",
                    subject_id=subject_id,
                    reason="invalid_counts",
                    present=present,
                    total=total,
                )
                return None
            if update.present is not None:
                changes["present"] = present
            if update.total is not None:
                changes["total"] = total

            updated = replace(current, **changes)
            self._subjects[index] = updated
            self._persist()

        logger.info("subject_updated", subject_id=subject_id, fields=sorted(changes))
        return updated

    def mark_present(self, subject_id: str) -> bool:
        """Record an attended class: present and total both grow by one."""
        return self._bump(subject_id, present=1, total=1, op="present")

    def mark_absent(self, subject_id: str) -> bool:
        """Record a missed class: only total grows by one."""
        return self._bump(subject_id, present=0, total=1, op="absent")

    def reset_all_data(self) -> None:
        """Drop every subject and erase the persisted state."""
        with self._lock:
            count = len(self._subjects)
            self._subjects = []
            self._persistence.clear()
        logger.info("attendance_reset", removed=count)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _bump(self, subject_id: str, *, present: int, total: int, op: str) -> bool:
        with self._lock:
            index = self._index_of(subject_id)
            if index is not None:
                current = self._subjects[index]
                self._subjects[index] = replace(
                    current,
                    present=current.present + present,
                    total=current.total + total,
                )
            self._persist()

        if index is None:
            logger.debug("subject_not_found", op=op, subject_id=subject_id)
            return False
        logger.debug("attendance_marked", op=op, subject_id=subject_id)
        return True

    def _next_id(self) -> str:
        return self._id_factory()

    def _index_of(self, subject_id: str) -> int | None:
        for i, subject in enumerate(self._subjects):
            if subject.id == subject_id:
                return i
        return None

    def _persist(self) -> None:
        self._persistence.save(self.snapshot())
