"""Notes library endpoints."""

import base64
import binascii
from urllib.parse import quote

from fastapi import APIRouter, HTTPException, Query, Response, status

from tracker.core.notes import (
    FileFilter,
    NotesLibrary,
    UnsupportedFileTypeError,
    UploadedFile,
    build_uploaded_file,
    decode_file_content,
    format_file_size,
    matches_filter,
    open_notes_library,
)
from tracker.web.schemas import (
    AcademicYearResponse,
    NoteFileCreate,
    NoteFileResponse,
    NoteMatchResponse,
    NoteSearchResponse,
    NotesLibraryResponse,
    SemesterResponse,
)

router = APIRouter(prefix="/api/notes", tags=["notes"])


def _get_library() -> NotesLibrary:
    """Load the notes library from disk."""
    return open_notes_library()


def _file_response(file: UploadedFile) -> NoteFileResponse:
    return NoteFileResponse(
        id=file.id,
        name=file.name,
        size=file.size,
        size_label=format_file_size(file.size),
        type=file.type,
        upload_date=file.upload_date,
    )


@router.get("", response_model=NotesLibraryResponse)
async def get_library(
    file_filter: FileFilter = Query(FileFilter.ALL, alias="filter"),
) -> NotesLibraryResponse:
    """The notes tree, optionally narrowed to one kind of file."""
    library = _get_library()
    years = [
        AcademicYearResponse(
            id=year.id,
            name=year.name,
            semesters=[
                SemesterResponse(
                    id=semester.id,
                    name=semester.name,
                    files=[
                        _file_response(f)
                        for f in semester.files
                        if matches_filter(f, file_filter)
                    ],
                )
                for semester in year.semesters
            ],
        )
        for year in library.academic_years
    ]
    return NotesLibraryResponse(academic_years=years, total_files=library.total_files())


@router.get("/search", response_model=NoteSearchResponse)
async def search_notes(q: str = Query(..., min_length=1)) -> NoteSearchResponse:
    """Find files by name."""
    matches = [
        NoteMatchResponse(
            year_id=m.year.id,
            year_name=m.year.name,
            semester_id=m.semester.id,
            semester_name=m.semester.name,
            file=_file_response(m.file),
        )
        for m in _get_library().search_files(q)
    ]
    return NoteSearchResponse(matches=matches, count=len(matches))


@router.post(
    "/{year_id}/{semester_id}/files",
    response_model=NoteFileResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_file(
    year_id: str, semester_id: str, file_data: NoteFileCreate
) -> NoteFileResponse:
    """Upload a file into a semester."""
    try:
        raw = base64.b64decode(file_data.content_base64, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="content_base64 is not valid base64",
        )

    try:
        uploaded = build_uploaded_file(file_data.name, raw, file_data.type)
    except UnsupportedFileTypeError as e:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=str(e),
        )

    if not _get_library().add_file(year_id, semester_id, uploaded):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Semester '{year_id}/{semester_id}' not found",
        )
    return _file_response(uploaded)


@router.delete(
    "/{year_id}/{semester_id}/files/{file_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_file(year_id: str, semester_id: str, file_id: str) -> None:
    """Remove a file from a semester."""
    if not _get_library().delete_file(year_id, semester_id, file_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"File '{file_id}' not found",
        )


@router.get("/{year_id}/{semester_id}/files/{file_id}")
async def download_file(year_id: str, semester_id: str, file_id: str) -> Response:
    """Raw bytes of a stored file, served with its stored mime type."""
    stored = _get_library().get_file(year_id, semester_id, file_id)
    if stored is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"File '{file_id}' not found",
        )

    try:
        data = decode_file_content(stored)
    except (binascii.Error, ValueError):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Stored content of '{file_id}' is corrupted",
        )

    return Response(
        content=data,
        media_type=stored.type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(stored.name)}"},
    )
