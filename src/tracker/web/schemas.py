"""Pydantic schemas for Web API.

Serialization models for Subject, Summary, Notes and Health.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


# =============================================================================
# SUBJECT SCHEMAS
# =============================================================================


class SubjectCreate(BaseModel):
    """Request body for creating a subject."""

    name: str = Field(..., min_length=1, max_length=100)
    target: int | None = Field(default=None, ge=1, le=100)


class SubjectPatch(BaseModel):
    """Request body for editing a subject. Omitted fields stay unchanged."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    target: int | None = Field(default=None, ge=1, le=100)
    present: int | None = Field(default=None, ge=0)
    total: int | None = Field(default=None, ge=0)


class SubjectResponse(BaseModel):
    """A subject with its projection."""

    id: str
    name: str
    target: int
    present: int
    total: int
    created_at: str
    percentage: float
    status: str  # on_track | warning | critical
    safe_absences: int
    required_attendance: int


class SubjectListResponse(BaseModel):
    """Response for list of subjects."""

    subjects: list[SubjectResponse]
    count: int


class SummaryResponse(BaseModel):
    """Dashboard totals."""

    total_subjects: int
    total_classes: int
    average_attendance: float


# =============================================================================
# NOTES SCHEMAS
# =============================================================================


class NoteFileCreate(BaseModel):
    """Request body for uploading a file (content base64 encoded)."""

    name: str = Field(..., min_length=1, max_length=255)
    content_base64: str
    type: str | None = None


class NoteFileResponse(BaseModel):
    """File metadata (content is not echoed back)."""

    id: str
    name: str
    size: int
    size_label: str
    type: str
    upload_date: str


class SemesterResponse(BaseModel):
    id: str
    name: str
    files: list[NoteFileResponse]


class AcademicYearResponse(BaseModel):
    id: str
    name: str
    semesters: list[SemesterResponse]


class NotesLibraryResponse(BaseModel):
    """The whole notes tree."""

    academic_years: list[AcademicYearResponse]
    total_files: int


class NoteMatchResponse(BaseModel):
    year_id: str
    year_name: str
    semester_id: str
    semester_name: str
    file: NoteFileResponse


class NoteSearchResponse(BaseModel):
    matches: list[NoteMatchResponse]
    count: int


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
