"""
Accounting Notes Backend — Note Service (Business Logic Orchestrator)
=======================================================================

What:  Coordinates FileService and NoteRepository for every note operation
       and shapes the JSON the API returns.
Who:   Called by the notes route handlers.

Create Flow (POST /api/notes):
    ┌───────────┐    ┌──────────────┐    ┌──────────────┐    ┌───────────┐
    │  Typed    │───▶│  Validate    │───▶│  Store files │───▶│  Insert   │
    │  form     │    │  batch       │    │  (FileServ)  │    │  (Repo)   │
    └───────────┘    └──────────────┘    └──────────────┘    └───────────┘

    Validation happens before any write. If the insert fails, the files
    stored for this request are removed best-effort and the error propagates.

Delete Flow (DELETE /api/notes/{id}):
    find → remove each referenced file (missing files ignored) → delete row
    A failure midway is not rolled back.

Image URLs:
    Notes store "/uploads/<name>". Responses prefix those with the scheme and
    host of the current request; values that already are absolute URLs pass
    through unchanged.
"""

import logging
from datetime import datetime, timezone
from typing import List, Sequence, Tuple
from urllib.parse import urlsplit

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.note import Note
from app.repositories.note_repository import NoteRepository
from app.schemas.note import NoteCreate, NoteResponse
from app.services.file_service import PUBLIC_PREFIX, FileService

logger = logging.getLogger(__name__)

Upload = Tuple[str, bytes]


def absolute_image_url(image: str, base_url: str) -> str:
    """Prefix a stored image path with base_url unless it already is an absolute URL."""
    if urlsplit(image).scheme in ("http", "https"):
        return image
    if not image.startswith("/"):
        image = f"/{image}"
    return f"{base_url.rstrip('/')}{image}"


def as_utc(moment: datetime) -> datetime:
    """SQLite hands timestamps back naive; they were stored as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def to_response(note: Note, base_url: str) -> NoteResponse:
    return NoteResponse(
        id=note.id,
        title=note.title,
        author_name=note.author_name,
        paper=note.paper,
        chapter_id=note.chapter_id,
        images=[absolute_image_url(image, base_url) for image in note.images or []],
        created_at=as_utc(note.created_at),
    )


class NoteService:
    """
    Business logic layer for note operations.

    Stateless apart from its FileService; the database session is passed
    in per call.
    """

    def __init__(self, file_service: FileService):
        self.file_service = file_service

    async def list_notes(self, db: AsyncSession, base_url: str) -> List[NoteResponse]:
        notes = await NoteRepository(db).list_all()
        logger.info("Found %d notes", len(notes))
        return [to_response(note, base_url) for note in notes]

    async def list_chapter_notes(
        self,
        db: AsyncSession,
        paper: str,
        chapter_id: int,
        base_url: str,
    ) -> List[NoteResponse]:
        notes = await NoteRepository(db).list_by_paper_and_chapter(paper, chapter_id)
        logger.info("Found %d notes for %s, chapter %d", len(notes), paper, chapter_id)
        return [to_response(note, base_url) for note in notes]

    async def create_note(
        self,
        db: AsyncSession,
        payload: NoteCreate,
        uploads: Sequence[Upload],
        base_url: str,
    ) -> NoteResponse:
        """
        Store the uploaded images and persist the note.

        Args:
            db: Async database session
            payload: Validated text fields
            uploads: (original filename, content) pairs in upload order
            base_url: scheme://host of the current request

        Raises:
            ValidationError: no images or too many images
            PayloadTooLargeError: an image exceeds the size cap
            FileStorageError: an image could not be written
            DatabaseError: the insert failed
        """
        self.file_service.validate_uploads(uploads)

        images = await self.file_service.store_all(uploads)
        logger.info("Stored %d images for new note '%s'", len(images), payload.title)

        try:
            note = await NoteRepository(db).insert(
                title=payload.title,
                author_name=payload.author_name,
                paper=payload.paper,
                chapter_id=payload.chapter_id,
                images=images,
            )
        except Exception:
            await self.file_service.discard(images)
            raise

        return to_response(note, base_url)

    async def delete_note(self, db: AsyncSession, note_id: str) -> None:
        """
        Delete a note and every image it references.

        Raises:
            NotFoundError: no note has this id
            FileStorageError: an image could not be removed
            DatabaseError: the delete failed
        """
        repository = NoteRepository(db)
        note = await repository.find_by_id(note_id)

        for image in note.images or []:
            # Absolute URLs into our own /uploads count too; anything else is not ours
            path = urlsplit(image).path
            if not path.startswith(f"{PUBLIC_PREFIX}/"):
                logger.debug("Skipping non-local image reference: %s", image)
                continue
            await self.file_service.remove(path)

        await repository.delete_by_id(note.id)
        logger.info("Note %s deleted with %d images", note.id, len(note.images or []))
