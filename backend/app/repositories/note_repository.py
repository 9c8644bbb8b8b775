"""
Accounting Notes Backend — Note Repository
============================================

What:  Persistence operations for Note records.
How:   Wraps an AsyncSession; every write commits its single row, so each
       operation is atomic on its own. Nothing spans a file write and a
       database write.
Who:   Used by NoteService.

Operations:
    insert(...)                         → Note (id + created_at assigned)
    list_all()                          → [Note] newest first
    list_by_paper_and_chapter(p, c)     → [Note] newest first, exact match
    find_by_id(id)                      → Note | NotFoundError
    delete_by_id(id)                    → None | NotFoundError
"""

import logging
import uuid
from typing import List, Optional, Sequence, Union

from sqlalchemy import delete, desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, NotFoundError, ValidationError
from app.models.note import Note

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "author_name", "paper", "chapter_id")
NOTE_NOT_FOUND = "Note not found"


def parse_note_id(note_id: Union[str, uuid.UUID]) -> Optional[uuid.UUID]:
    """Return the UUID for a path value, or None when it is not one."""
    if isinstance(note_id, uuid.UUID):
        return note_id
    try:
        return uuid.UUID(str(note_id))
    except ValueError:
        return None


class NoteRepository:
    """Note persistence bound to one request's session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert(
        self,
        title: Optional[str],
        author_name: Optional[str],
        paper: Optional[str],
        chapter_id: Optional[int],
        images: Sequence[str] = (),
    ) -> Note:
        """
        Persist a new note.

        Raises:
            ValidationError: a required field is missing or blank
            DatabaseError: the insert failed
        """
        values = {
            "title": title,
            "author_name": author_name,
            "paper": paper,
            "chapter_id": chapter_id,
        }
        missing = [
            name for name in REQUIRED_FIELDS
            if values[name] is None or (isinstance(values[name], str) and not values[name].strip())
        ]
        if missing:
            raise ValidationError(
                message=f"Note validation failed: {', '.join(missing)} required",
                field=missing[0],
                context={"missing": missing},
            )

        note = Note(**values, images=list(images))
        self.session.add(note)
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to insert note: %s", str(e))
            raise DatabaseError(
                message="Could not save the note. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Note inserted: %s (%s, chapter %d)", note.id, note.paper, note.chapter_id)
        return note

    async def _fetch(self, query) -> List[Note]:
        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve notes. Please try again.",
                context={"error_type": type(e).__name__},
            )
        return list(result.scalars().all())

    async def list_all(self) -> List[Note]:
        return await self._fetch(select(Note).order_by(desc(Note.created_at)))

    async def list_by_paper_and_chapter(self, paper: str, chapter_id: int) -> List[Note]:
        query = (
            select(Note)
            .where(Note.paper == paper, Note.chapter_id == chapter_id)
            .order_by(desc(Note.created_at))
        )
        return await self._fetch(query)

    async def find_by_id(self, note_id: Union[str, uuid.UUID]) -> Note:
        """
        Raises:
            NotFoundError: no note has this id (malformed ids included)
            DatabaseError: the lookup failed
        """
        parsed = parse_note_id(note_id)
        if parsed is None:
            raise NotFoundError(resource="note", resource_id=str(note_id), message=NOTE_NOT_FOUND)

        try:
            note = await self.session.get(Note, parsed)
        except SQLAlchemyError as e:
            logger.error("Database error fetching note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the note. Please try again.",
                context={"note_id": str(note_id)},
            )

        if note is None:
            raise NotFoundError(resource="note", resource_id=str(note_id), message=NOTE_NOT_FOUND)
        return note

    async def delete_by_id(self, note_id: Union[str, uuid.UUID]) -> None:
        """
        Raises:
            NotFoundError: no note has this id
            DatabaseError: the delete failed
        """
        parsed = parse_note_id(note_id)
        if parsed is None:
            raise NotFoundError(resource="note", resource_id=str(note_id), message=NOTE_NOT_FOUND)

        try:
            result = await self.session.execute(delete(Note).where(Note.id == parsed))
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Database error deleting note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not delete the note. Please try again.",
                context={"note_id": str(note_id)},
            )

        if result.rowcount == 0:
            raise NotFoundError(resource="note", resource_id=str(note_id), message=NOTE_NOT_FOUND)
        logger.info("Note deleted: %s", parsed)
