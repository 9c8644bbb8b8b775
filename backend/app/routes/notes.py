"""
Accounting Notes Backend — Notes Route Handlers
=================================================

What:  GET /api/notes, GET /api/notes/{paper}/{chapterId},
       POST /api/notes, DELETE /api/notes/{id}.
How:   Extracts path/form data, validates it into typed schemas, delegates
       to NoteService, returns JSON.
Who:   Called by the study-notes frontend.

POST contract (multipart/form-data):
    title, authorName, paper, chapterId   text fields, all required
    images                                 1..10 file parts, ≤ 10 MiB each
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Path, UploadFile
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_base_url, get_note_service
from app.exceptions import ValidationError
from app.schemas.note import MAX_CHAPTER_ID, ErrorResponse, MessageResponse, NoteCreate, NoteResponse
from app.services.file_service import FileService
from app.services.note_service import NoteService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Notes"])

# Python field → form field, for error messages
FORM_FIELD_NAMES = {
    "title": "title",
    "author_name": "authorName",
    "paper": "paper",
    "chapter_id": "chapterId",
}


def parse_note_form(
    title: Optional[str],
    author_name: Optional[str],
    paper: Optional[str],
    chapter_id: Optional[str],
) -> NoteCreate:
    """
    Validate the raw form strings into a NoteCreate.

    Raises:
        ValidationError: a field is missing or blank, or chapterId is not an
                         integer between 0 and MAX_CHAPTER_ID
    """
    raw = {
        "title": title,
        "author_name": author_name,
        "paper": paper,
        "chapter_id": chapter_id,
    }
    try:
        return NoteCreate.model_validate({k: v for k, v in raw.items() if v is not None})
    except PydanticValidationError as e:
        fields, problems = [], []
        for error in e.errors():
            name = str(error["loc"][0]) if error["loc"] else "body"
            name = FORM_FIELD_NAMES.get(name, name)
            fields.append(name)
            problems.append(f"{name}: {error['msg']}")
        raise ValidationError(
            message="Invalid note: " + "; ".join(problems),
            field=fields[0],
            context={"errors": problems},
        )


async def read_uploads(
    images: Optional[List[UploadFile]],
    file_service: FileService,
) -> List[tuple]:
    """
    Read multipart file parts into (filename, content) pairs, skipping empty placeholders.

    A part whose reported size is already above the cap is rejected before
    its content is read.

    Raises:
        PayloadTooLargeError: a part exceeds the per-file size cap
    """
    uploads = []
    for upload in images or []:
        if upload.size is not None:
            file_service.validate_size(upload.size, upload.filename)
        content = await upload.read()
        if not upload.filename and not content:
            continue
        uploads.append((upload.filename or "", content))
    return uploads



@router.get(
    "/notes",
    response_model=List[NoteResponse],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List all notes, newest first",
)
async def list_notes(
    db: AsyncSession = Depends(get_db_session),
    note_service: NoteService = Depends(get_note_service),
    base_url: str = Depends(get_base_url),
) -> List[NoteResponse]:
    logger.info("Fetching all notes")
    return await note_service.list_notes(db, base_url)


@router.get(
    "/notes/{paper}/{chapterId}",
    response_model=List[NoteResponse],
    responses={
        400: {"description": "chapterId is not an integer", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="List the notes of one chapter of a paper",
)
async def list_chapter_notes(
    paper: str,
    chapter_id: int = Path(
        alias="chapterId",
        ge=0,
        le=MAX_CHAPTER_ID,
        description="Chapter number within the paper",
    ),
    db: AsyncSession = Depends(get_db_session),
    note_service: NoteService = Depends(get_note_service),
    base_url: str = Depends(get_base_url),
) -> List[NoteResponse]:
    logger.info("Fetching notes for %s, chapter %d", paper, chapter_id)
    return await note_service.list_chapter_notes(db, paper, chapter_id, base_url)


@router.post(
    "/notes",
    status_code=201,
    response_model=NoteResponse,
    responses={
        201: {"description": "Note created", "model": NoteResponse},
        400: {"description": "Missing field or no images", "model": ErrorResponse},
        413: {"description": "Image larger than the size cap", "model": ErrorResponse},
    },
    summary="Create a note with uploaded images",
)
async def create_note(
    title: Optional[str] = Form(default=None),
    author_name: Optional[str] = Form(default=None, alias="authorName"),
    paper: Optional[str] = Form(default=None),
    chapter_id: Optional[str] = Form(default=None, alias="chapterId"),
    images: Optional[List[UploadFile]] = File(
        default=None,
        description="Note images, 1 to 10 files of at most 10MB each",
    ),
    db: AsyncSession = Depends(get_db_session),
    note_service: NoteService = Depends(get_note_service),
    base_url: str = Depends(get_base_url),
) -> NoteResponse:
    """
    Create a note.

    Error responses (handled by global exception handlers):
        HTTP 400: missing/blank field, non-integer chapterId, no images, >10 images
        HTTP 413: an image exceeds the size cap
        HTTP 500: storage or database failure
    """
    try:
        payload = parse_note_form(title, author_name, paper, chapter_id)
        uploads = await read_uploads(images, note_service.file_service)

        logger.info(
            "Creating note: title=%r author=%r paper=%r chapter=%d files=%d",
            payload.title,
            payload.author_name,
            payload.paper,
            payload.chapter_id,
            len(uploads),
        )

        return await note_service.create_note(db, payload, uploads, base_url)
    finally:
        for upload in images or []:
            await upload.close()


@router.delete(
    "/notes/{note_id}",
    response_model=MessageResponse,
    responses={
        404: {"description": "Note not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Delete a note and its images",
)
async def delete_note(
    note_id: str,
    db: AsyncSession = Depends(get_db_session),
    note_service: NoteService = Depends(get_note_service),
) -> MessageResponse:
    logger.info("Deleting note %s", note_id)
    await note_service.delete_note(db, note_id)
    return MessageResponse(message="Note deleted successfully")
