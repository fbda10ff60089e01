"""Attendance state persistence.

Serializes the subject collection as JSON into a key-value slot:

    {
      "$schema": "attendance_v1",
      "subjects": [{"id": ..., "name": ..., "target": ..., "present": ...,
                    "total": ..., "created_at": ...}],
      "last_id_seq": 3
    }

Payloads written by the browser widget ({"subjects": [...]} with camelCase
"createdAt" and no "$schema") are still accepted on load.

A corrupted slot never propagates: load() logs and returns None.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol

import structlog

from tracker.config.app_config import (
    ATTENDANCE_STORAGE_KEY,
    load_app_config,
    resolve_data_dir,
)
from tracker.core.attendance import AttendanceData, Subject, SubjectStore
from tracker.core.storage import FileKeyValueStore, KeyValueStore
from tracker.utils.validators import (
    is_valid_counts,
    is_valid_target,
    normalize_subject_name,
)

logger = structlog.get_logger(__name__)

ATTENDANCE_SCHEMA = "attendance_v1"


class InvalidStateError(ValueError):
    """Stored payload does not describe a valid subject collection."""


class PersistenceAdapter(Protocol):
    def load(self) -> AttendanceData | None:
        ...

    def save(self, data: AttendanceData) -> None:
        ...

    def clear(self) -> None:
        ...


# =============================================================================
# SERIALIZATION
# =============================================================================


def attendance_to_dict(data: AttendanceData) -> dict[str, Any]:
    """Convert to dictionary for JSON serialization."""
    return {
        "$schema": ATTENDANCE_SCHEMA,
        "subjects": [s.to_dict() for s in data.subjects],
        "last_id_seq": data.last_id_seq,
    }


def _subject_from_dict(raw: Any) -> Subject:
    if not isinstance(raw, dict):
        raise InvalidStateError(f"subject entry is not an object: {raw!r}")

    subject_id = raw["id"]
    if not isinstance(subject_id, str) or not subject_id:
        raise InvalidStateError(f"invalid subject id: {subject_id!r}")

    name = normalize_subject_name(raw["name"])
    if name is None:
        raise InvalidStateError(f"subject {subject_id} has an empty name")

    target = raw["target"]
    if not is_valid_target(target):
        raise InvalidStateError(f"subject {subject_id} has invalid target {target!r}")

    present = raw.get("present", 0)
    total = raw.get("total", 0)
    if not is_valid_counts(present, total):
        raise InvalidStateError(
            f"subject {subject_id} has invalid counters present={present!r} total={total!r}"
        )

    created_at = raw.get("created_at", raw.get("createdAt", ""))

    return Subject(
        id=subject_id,
        name=name,
        target=target,
        present=present,
        total=total,
        created_at=str(created_at or ""),
    )


def attendance_from_dict(data: Any) -> AttendanceData:
    """Rebuild AttendanceData from a decoded payload.

    Raises:
        InvalidStateError: If the payload is not a valid subject collection
        KeyError: If a subject entry lacks a required field
    """
    if not isinstance(data, dict):
        raise InvalidStateError("payload is not an object")

    schema = data.get("$schema")
    if schema is None:
        logger.info("legacy_attendance_payload")
    elif schema != ATTENDANCE_SCHEMA:
        raise InvalidStateError(f"expected schema {ATTENDANCE_SCHEMA}, got {schema!r}")

    raw_subjects = data.get("subjects") or []
    if not isinstance(raw_subjects, list):
        raise InvalidStateError("subjects is not a list")

    subjects = tuple(_subject_from_dict(raw) for raw in raw_subjects)

    seen: set[str] = set()
    for subject in subjects:
        if subject.id in seen:
            raise InvalidStateError(f"duplicate subject id {subject.id}")
        seen.add(subject.id)

    last_id_seq = data.get("last_id_seq", 0)
    if isinstance(last_id_seq, bool) or not isinstance(last_id_seq, int) or last_id_seq < 0:
        raise InvalidStateError(f"invalid last_id_seq {last_id_seq!r}")

    return AttendanceData(subjects=subjects, last_id_seq=last_id_seq)


# =============================================================================
# ADAPTER
# =============================================================================


class AttendancePersistence:
    """Persistence adapter over a single key-value slot."""

    def __init__(self, store: KeyValueStore, key: str = ATTENDANCE_STORAGE_KEY):
        self._store = store
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> AttendanceData | None:
        """Load the subject collection, or None if absent or corrupted."""
        try:
            raw = self._store.get(self._key)
        except (OSError, UnicodeDecodeError) as e:
            logger.error("attendance_state_load_failed", key=self._key, error=str(e))
            return None

        if raw is None:
            return None

        try:
            return attendance_from_dict(json.loads(raw))
        except (json.JSONDecodeError, KeyError, InvalidStateError) as e:
            logger.error("attendance_state_load_failed", key=self._key, error=str(e))
            return None

    def save(self, data: AttendanceData) -> None:
        """Write the full subject collection."""
        payload = json.dumps(attendance_to_dict(data), indent=2, ensure_ascii=False)
        self._store.set(self._key, payload)
        logger.info("attendance_state_saved", key=self._key, subjects=len(data.subjects))

    def clear(self) -> None:
        """Erase the stored collection."""
        self._store.delete(self._key)


def open_subject_store(data_dir: Path | None = None) -> SubjectStore:
    """Build a file-backed SubjectStore.

    Args:
        data_dir: Base data directory. Defaults to TRACKER_DATA_DIR or config

    Returns:
        SubjectStore loaded from {data_dir}/state/
    """
    if data_dir is None:
        data_dir = resolve_data_dir()
    key = load_app_config().storage.attendance_key
    return SubjectStore(AttendancePersistence(FileKeyValueStore(data_dir), key=key))
