"""Subject endpoints."""

from fastapi import APIRouter, HTTPException, status

from tracker.config.app_config import load_app_config
from tracker.core.attendance import Subject, SubjectStore, SubjectUpdate
from tracker.core.persistence import open_subject_store
from tracker.core.projector import project, summarize
from tracker.web.schemas import (
    SubjectCreate,
    SubjectListResponse,
    SubjectPatch,
    SubjectResponse,
    SummaryResponse,
)

router = APIRouter(prefix="/api", tags=["subjects"])


def _get_store() -> SubjectStore:
    """Load the subject store from disk."""
    return open_subject_store()


def _to_response(subject: Subject) -> SubjectResponse:
    return SubjectResponse(**project(subject).to_dict())


def _not_found(subject_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Subject '{subject_id}' not found",
    )


@router.get("/subjects", response_model=SubjectListResponse)
async def list_subjects() -> SubjectListResponse:
    """List all subjects with their projections."""
    store = _get_store()
    subjects = [_to_response(s) for s in store.subjects]
    return SubjectListResponse(subjects=subjects, count=len(subjects))


@router.post(
    "/subjects", response_model=SubjectResponse, status_code=status.HTTP_201_CREATED
)
async def create_subject(subject_data: SubjectCreate) -> SubjectResponse:
    """Create a new subject."""
    target = subject_data.target
    if target is None:
        target = load_app_config().attendance.default_target

    store = _get_store()
    subject = store.add_subject(subject_data.name, target)
    if subject is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Subject name cannot be blank",
        )
    return _to_response(subject)


@router.delete("/subjects", status_code=status.HTTP_204_NO_CONTENT)
async def reset_subjects() -> None:
    """Delete every subject and erase saved attendance."""
    _get_store().reset_all_data()


@router.get("/subjects/{subject_id}", response_model=SubjectResponse)
async def get_subject(subject_id: str) -> SubjectResponse:
    """Get a specific subject by ID."""
    subject = _get_store().get_subject(subject_id)
    if subject is None:
        raise _not_found(subject_id)
    return _to_response(subject)


@router.patch("/subjects/{subject_id}", response_model=SubjectResponse)
async def update_subject(subject_id: str, patch: SubjectPatch) -> SubjectResponse:
    """Edit name, target or raw counters of a subject."""
    store = _get_store()
    if store.get_subject(subject_id) is None:
        raise _not_found(subject_id)

    updated = store.update_subject(
        subject_id,
        SubjectUpdate(
            name=patch.name,
            target=patch.target,
            present=patch.present,
            total=patch.total,
        ),
    )
    if updated is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid update: name must not be blank and present cannot exceed total",
        )
    return _to_response(updated)


@router.delete("/subjects/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subject(subject_id: str) -> None:
    """Delete a subject by ID."""
    if not _get_store().delete_subject(subject_id):
        raise _not_found(subject_id)


@router.post("/subjects/{subject_id}/present", response_model=SubjectResponse)
async def mark_present(subject_id: str) -> SubjectResponse:
    """Record an attended class."""
    store = _get_store()
    if not store.mark_present(subject_id):
        raise _not_found(subject_id)
    return _to_response(store.get_subject(subject_id))


@router.post("/subjects/{subject_id}/absent", response_model=SubjectResponse)
async def mark_absent(subject_id: str) -> SubjectResponse:
    """Record a missed class."""
    store = _get_store()
    if not store.mark_absent(subject_id):
        raise _not_found(subject_id)
    return _to_response(store.get_subject(subject_id))


@router.get("/summary", response_model=SummaryResponse)
async def get_summary() -> SummaryResponse:
    """Dashboard totals across all subjects."""
    totals = summarize(_get_store().subjects)
    return SummaryResponse(
        total_subjects=totals.total_subjects,
        total_classes=totals.total_classes,
        average_attendance=totals.average_attendance,
    )
