"""
Accounting Notes Backend — Request Dependencies
=================================================

What:  FastAPI dependencies that hand route handlers the objects built by
       the app factory (services on app.state) and request-derived values.
"""

from fastapi import Request

from app.services.chapter_catalog import ChapterCatalog
from app.services.note_service import NoteService


def get_note_service(request: Request) -> NoteService:
    return request.app.state.note_service


def get_chapter_catalog(request: Request) -> ChapterCatalog:
    return request.app.state.chapter_catalog


def get_base_url(request: Request) -> str:
    """scheme://host[:port] of the current request, used to absolutize image paths."""
    return f"{request.url.scheme}://{request.url.netloc}"
