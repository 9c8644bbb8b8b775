"""
Accounting Notes Backend — Pydantic Request/Response Schemas
==============================================================

What:  Pydantic models defining the API contract between clients and backend.
How:   FastAPI uses these models to validate request input, serialize
       responses, and generate the OpenAPI documentation.

JSON field names are camelCase (authorName, chapterId, createdAt) to stay
compatible with existing clients; Python attributes stay snake_case.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Largest value the 32-bit chapter_id column holds
MAX_CHAPTER_ID = 2**31 - 1


class CamelModel(BaseModel):
    """Base for schemas exposed with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteCreate(CamelModel):
    """
    Typed form of the POST /api/notes text fields.

    The multipart form delivers every field as a string; this model strips
    whitespace, rejects blanks, and coerces chapterId to an integer.
    """

    title: str = Field(min_length=1, max_length=255)
    author_name: str = Field(min_length=1, max_length=255)
    paper: str = Field(min_length=1, max_length=50)
    chapter_id: int = Field(ge=0, le=MAX_CHAPTER_ID)

    @field_validator("title", "author_name", "paper", mode="before")
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(CamelModel):
    """
    What:  Full representation of a note.
    Who:   Returned by the list endpoints (as array items) and by POST /api/notes.

    images holds absolute URLs built from the request's scheme and host.
    """

    id: uuid.UUID = Field(description="Unique note identifier (UUID)")
    title: str
    author_name: str
    paper: str
    chapter_id: int
    images: List[str] = Field(description="Absolute image URLs, in upload order")
    created_at: datetime = Field(description="When the note was created (UTC ISO 8601)")


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "Note not found",
            "request_id": "1f0c9a2b"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    storage: str = Field(description="Upload directory: writable, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
