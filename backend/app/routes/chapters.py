"""
Accounting Notes Backend — Chapter Catalog Route
==================================================

What:  GET /api/chapters/{paper} returns the static chapter list of a paper.
How:   Reads from the in-memory ChapterCatalog; no database access.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends

from app.dependencies import get_chapter_catalog
from app.schemas.chapter import ChapterResponse
from app.schemas.note import ErrorResponse
from app.services.chapter_catalog import ChapterCatalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Chapters"])


@router.get(
    "/chapters/{paper}",
    response_model=List[ChapterResponse],
    responses={404: {"description": "Unknown paper (fallback disabled)", "model": ErrorResponse}},
    summary="List the chapters of a paper",
)
async def list_chapters(
    paper: str,
    catalog: ChapterCatalog = Depends(get_chapter_catalog),
) -> List[ChapterResponse]:
    chapters = catalog.get_chapters(paper)
    logger.info("Returning %d chapters for %s", len(chapters), paper)
    return [ChapterResponse.model_validate(chapter) for chapter in chapters]
