"""Notes library module.

Responsibilities:
- Keep uploaded study files organised as academic year -> semester -> files
- Add, delete and search files, count the whole library
- Persist the tree as JSON under the "student_notes" key-value slot

Output structure (JSON):
- notes_v1 schema with an academic_years array
- File content stored inline as a base64 data URL
"""

from __future__ import annotations

import base64
import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

import structlog

from tracker.config.app_config import (
    NOTES_STORAGE_KEY,
    load_app_config,
    resolve_data_dir,
)
from tracker.core.storage import FileKeyValueStore, KeyValueStore

logger = structlog.get_logger(__name__)

NOTES_SCHEMA = "notes_v1"

# Upload whitelist: extension -> mime type
ACCEPTED_TYPES: dict[str, str] = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".ppt": "application/vnd.ms-powerpoint",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    ".txt": "text/plain",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
}

SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]

# =============================================================================
# DATA CLASSES
# =============================================================================


class FileFilter(str, Enum):
    """File kinds offered by the notes browser."""

    ALL = "all"
    PDF = "pdf"
    DOCX = "docx"
    PPT = "ppt"
    TXT = "txt"
    IMAGE = "image"


@dataclass
class UploadedFile:
    """A study file kept in the library."""

    id: str
    name: str
    size: int
    type: str
    upload_date: str
    content: str  # data URL

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "size": self.size,
            "type": self.type,
            "upload_date": self.upload_date,
            "content": self.content,
        }


@dataclass
class Semester:
    id: str
    name: str
    files: list[UploadedFile] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "files": [f.to_dict() for f in self.files],
        }


@dataclass
class AcademicYear:
    id: str
    name: str
    semesters: list[Semester] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "semesters": [s.to_dict() for s in self.semesters],
        }


@dataclass(frozen=True)
class NoteMatch:
    """A search hit with its location in the tree."""

    year: AcademicYear
    semester: Semester
    file: UploadedFile


class UnsupportedFileTypeError(Exception):
    """Raised when a file extension is not in the upload whitelist."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(
            f"Unsupported file type '{path.suffix or path.name}'. "
            f"Accepted: {', '.join(sorted(ACCEPTED_TYPES))}"
        )


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def default_academic_years() -> list[AcademicYear]:
    """Four years with two semesters each, all empty."""
    ordinals = ["First", "Second", "Third", "Fourth", "Fifth", "Sixth", "Seventh", "Eighth"]
    year_slugs = ["first", "second", "third", "fourth"]

    years = []
    for y, slug in enumerate(year_slugs):
        semesters = [
            Semester(id=f"semester-{n}", name=f"{ordinals[n - 1]} Semester")
            for n in (2 * y + 1, 2 * y + 2)
        ]
        years.append(
            AcademicYear(id=f"{slug}-year", name=f"{ordinals[y]} Year", semesters=semesters)
        )
    return years


def format_file_size(size: int) -> str:
    """Human readable size: 0 Bytes, 512 Bytes, 1.5 KB, 2 MB."""
    if size <= 0:
        return "0 Bytes"

    unit = 0
    while unit < len(SIZE_UNITS) - 1 and size >= 1024 ** (unit + 1):
        unit += 1

    value = round(size / 1024**unit, 2)
    return f"{value:g} {SIZE_UNITS[unit]}"


def matches_filter(file: UploadedFile, file_filter: FileFilter) -> bool:
    """Match a file against a browser filter by its mime type."""
    mime = file.type.lower()
    if file_filter is FileFilter.ALL:
        return True
    if file_filter is FileFilter.PDF:
        return "pdf" in mime
    if file_filter is FileFilter.DOCX:
        # "officedocument" appears in pptx mime types too
        return "msword" in mime or "wordprocessingml" in mime
    if file_filter is FileFilter.PPT:
        return "presentation" in mime or "powerpoint" in mime
    if file_filter is FileFilter.TXT:
        return "text" in mime
    if file_filter is FileFilter.IMAGE:
        return "image" in mime
    return False


def generate_file_id() -> str:
    return uuid.uuid4().hex[:12]


def build_uploaded_file(name: str, data: bytes, mime_type: str | None = None) -> UploadedFile:
    """Wrap raw bytes as an UploadedFile with a data URL body.

    Raises:
        UnsupportedFileTypeError: If the extension is not accepted
    """
    suffix = Path(name).suffix.lower()
    if suffix not in ACCEPTED_TYPES:
        raise UnsupportedFileTypeError(Path(name))

    mime = mime_type or ACCEPTED_TYPES[suffix]
    encoded = base64.b64encode(data).decode("ascii")
    return UploadedFile(
        id=generate_file_id(),
        name=Path(name).name,
        size=len(data),
        type=mime,
        upload_date=datetime.now(timezone.utc).isoformat(),
        content=f"data:{mime};base64,{encoded}",
    )


def load_uploaded_file(path: Path) -> UploadedFile:
    """Read a file from disk into an UploadedFile.

    Raises:
        UnsupportedFileTypeError: If the extension is not accepted
        OSError: If the file cannot be read
    """
    if path.suffix.lower() not in ACCEPTED_TYPES:
        raise UnsupportedFileTypeError(path)
    return build_uploaded_file(path.name, path.read_bytes())


def decode_file_content(file: UploadedFile) -> bytes:
    """Return the raw bytes behind a file's data URL."""
    _, _, encoded = file.content.partition(";base64,")
    return base64.b64decode(encoded)


# =============================================================================
# PERSISTENCE
# =============================================================================


def _file_from_dict(raw: dict[str, Any]) -> UploadedFile:
    return UploadedFile(
        id=str(raw["id"]),
        name=str(raw["name"]),
        size=int(raw.get("size", 0)),
        type=str(raw.get("type", "")),
        upload_date=str(raw.get("upload_date", raw.get("uploadDate", ""))),
        content=str(raw.get("content", "")),
    )


def _years_from_list(raw_years: list[dict[str, Any]]) -> list[AcademicYear]:
    return [
        AcademicYear(
            id=str(y["id"]),
            name=str(y["name"]),
            semesters=[
                Semester(
                    id=str(s["id"]),
                    name=str(s["name"]),
                    files=[_file_from_dict(f) for f in s.get("files", [])],
                )
                for s in y.get("semesters", [])
            ],
        )
        for y in raw_years
    ]


class NotesPersistence:
    """Stores the notes tree in a key-value slot."""

    def __init__(self, store: KeyValueStore, key: str = NOTES_STORAGE_KEY):
        self._store = store
        self._key = key

    def load(self) -> list[AcademicYear] | None:
        """Load the notes tree, or None if absent or corrupted."""
        try:
            raw = self._store.get(self._key)
        except (OSError, UnicodeDecodeError) as e:
            logger.error("notes_state_load_failed", key=self._key, error=str(e))
            return None

        if raw is None:
            return None

        try:
            data = json.loads(raw)
            # Browser payloads are a bare array of years
            if isinstance(data, list):
                logger.info("legacy_notes_payload")
                return _years_from_list(data)

            if data.get("$schema") != NOTES_SCHEMA:
                logger.warning(
                    "notes_state_invalid_schema",
                    expected=NOTES_SCHEMA,
                    got=data.get("$schema"),
                )
                return None

            return _years_from_list(data.get("academic_years", []))

        except (json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error("notes_state_load_failed", key=self._key, error=str(e))
            return None

    def save(self, years: list[AcademicYear]) -> None:
        payload = {
            "$schema": NOTES_SCHEMA,
            "academic_years": [y.to_dict() for y in years],
        }
        self._store.set(self._key, json.dumps(payload, indent=2, ensure_ascii=False))
        logger.info("notes_state_saved", key=self._key)


# =============================================================================
# LIBRARY
# =============================================================================


class NotesLibrary:
    """Year/semester/file tree backed by NotesPersistence."""

    def __init__(self, persistence: NotesPersistence):
        self._persistence = persistence
        self._years = persistence.load() or default_academic_years()

    @property
    def academic_years(self) -> list[AcademicYear]:
        return list(self._years)

    def get_semester(self, year_id: str, semester_id: str) -> Semester | None:
        for year in self._years:
            if year.id != year_id:
                continue
            for semester in year.semesters:
                if semester.id == semester_id:
                    return semester
        return None

    def get_file(self, year_id: str, semester_id: str, file_id: str) -> UploadedFile | None:
        semester = self.get_semester(year_id, semester_id)
        if semester is None:
            return None
        for file in semester.files:
            if file.id == file_id:
                return file
        return None

    def add_file(self, year_id: str, semester_id: str, file: UploadedFile) -> bool:
        """Append a file to a semester. Returns False if the semester is unknown."""
        semester = self.get_semester(year_id, semester_id)
        if semester is None:
            logger.warning("semester_not_found", year_id=year_id, semester_id=semester_id)
            return False

        semester.files.append(file)
        self._persistence.save(self._years)
        logger.info("note_file_added", file_id=file.id, semester_id=semester_id, size=file.size)
        return True

    def delete_file(self, year_id: str, semester_id: str, file_id: str) -> bool:
        """Remove a file. Returns False if it was not found."""
        semester = self.get_semester(year_id, semester_id)
        if semester is None:
            return False

        remaining = [f for f in semester.files if f.id != file_id]
        if len(remaining) == len(semester.files):
            return False

        semester.files = remaining
        self._persistence.save(self._years)
        logger.info("note_file_deleted", file_id=file_id, semester_id=semester_id)
        return True

    def total_files(self) -> int:
        return sum(len(s.files) for y in self._years for s in y.semesters)

    def search_files(self, query: str) -> list[NoteMatch]:
        """Case-insensitive substring match on file names."""
        needle = query.lower()
        return [
            NoteMatch(year=year, semester=semester, file=file)
            for year in self._years
            for semester in year.semesters
            for file in semester.files
            if needle in file.name.lower()
        ]


def open_notes_library(data_dir: Path | None = None) -> NotesLibrary:
    """Build a file-backed NotesLibrary.

    Args:
        data_dir: Base data directory. Defaults to TRACKER_DATA_DIR or config
    """
    if data_dir is None:
        data_dir = resolve_data_dir()
    key = load_app_config().storage.notes_key
    return NotesLibrary(NotesPersistence(FileKeyValueStore(data_dir), key=key))
