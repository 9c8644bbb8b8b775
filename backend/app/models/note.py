"""
Accounting Notes Backend — Note SQLAlchemy Model
==================================================

What:  ORM model representing the `notes` table.
How:   Inherits from the shared DeclarativeBase; Alembic and the startup
       `create_all` both read this.
Who:   Used by NoteRepository for persistence and by Alembic for schema management.

Table Design:
    - UUID primary key generated in Python on insert
    - images: JSON array of storage paths ("/uploads/<name>") or absolute URLs,
      order preserved as uploaded
    - created_at: UTC with timezone; the only sort key (newest first)
    - chapter_id is a plain integer. The chapter catalog is static data and
      is not cross-validated against it.

Indexes:
    idx_notes_created_at          → GET /api/notes
    idx_notes_paper_chapter       → GET /api/notes/{paper}/{chapterId}
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import JSON, DateTime, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A study note shared by a student.

    Lifecycle:
        1. Created by POST /api/notes after its images are stored
        2. Read by the list endpoints
        3. Deleted by DELETE /api/notes/{id}, together with its image files
    There is no update path; notes are immutable after creation.
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    author_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # e.g. "1st Paper", "2nd Paper"
    paper: Mapped[str] = mapped_column(String(50), nullable=False)

    chapter_id: Mapped[int] = mapped_column(Integer, nullable=False)

    images: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    __table_args__ = (
        Index("idx_notes_created_at", created_at.desc()),
        Index("idx_notes_paper_chapter", paper, chapter_id),
    )

    def __repr__(self) -> str:
        return (
            f"<Note(id={self.id}, paper='{self.paper}', chapter_id={self.chapter_id}, "
            f"images={len(self.images or [])})>"
        )
