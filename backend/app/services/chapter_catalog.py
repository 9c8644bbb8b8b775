"""
Accounting Notes Backend — Chapter Catalog
============================================

What:  The fixed chapter lists of the two accounting papers.
How:   Held in memory as tuples; served read-only by GET /api/chapters/{paper}.

Selection:
    "1st Paper"  → the 10 first-paper chapters
    "2nd Paper"  → the 9 second-paper chapters
    anything else → the second-paper list while
                    settings.chapter_fallback_to_second_paper is on
                    (existing clients depend on it), NotFoundError otherwise
"""

import logging
from dataclasses import dataclass
from typing import Dict, Tuple

from app.exceptions import NotFoundError

logger = logging.getLogger(__name__)

FIRST_PAPER = "1st Paper"
SECOND_PAPER = "2nd Paper"


@dataclass(frozen=True)
class Chapter:
    id: int
    title: str
    paper: str


def _chapters(paper: str, titles: Tuple[str, ...]) -> Tuple[Chapter, ...]:
    return tuple(Chapter(id=i, title=title, paper=paper) for i, title in enumerate(titles, start=1))


FIRST_PAPER_CHAPTERS = _chapters(FIRST_PAPER, (
    "হিসাববিজ্ঞান পরিচিতি",
    "হিসাব বইসমূহ",
    "ব্যাংক সমন্বয় বিবরণী",
    "রেওয়ামিল",
    "হিসাবের নীতিমালা",
    "প্রাপ্য হিসাবসমূহের হিসাবরক্ষণ",
    "কার্যপত্র",
    "দৃশ্যমান ও অদৃশ্যমান সম্পদের হিসাবরক্ষণ",
    "আর্থিক বিবরণী",
    "একতরফা দাখিলা পদ্ধতি",
))

SECOND_PAPER_CHAPTERS = _chapters(SECOND_PAPER, (
    "অংশীদারি ব্যবসায়ের হিসাব",
    "কোম্পানি হিসাব",
    "ব্যয় হিসাববিজ্ঞান",
    "বাজেট ও বাজেট নিয়ন্ত্রণ",
    "আর্থিক বিবরণী বিশ্লেষণ",
    "অলাভজনক প্রতিষ্ঠানের হিসাব",
    "শাখা হিসাব",
    "বিভাগীয় হিসাব",
    "কম্পিউটারাইজড হিসাববিজ্ঞান",
))

CATALOG: Dict[str, Tuple[Chapter, ...]] = {
    FIRST_PAPER: FIRST_PAPER_CHAPTERS,
    SECOND_PAPER: SECOND_PAPER_CHAPTERS,
}


class ChapterCatalog:
    def __init__(self, fallback_to_second_paper: bool = True):
        self.fallback_to_second_paper = fallback_to_second_paper

    def get_chapters(self, paper: str) -> Tuple[Chapter, ...]:
        """
        Return the chapter list for a paper.

        Raises:
            NotFoundError: unknown paper and the fallback is disabled
        """
        chapters = CATALOG.get(paper)
        if chapters is not None:
            return chapters

        if self.fallback_to_second_paper:
            logger.debug("Unknown paper %r, serving %s chapters", paper, SECOND_PAPER)
            return SECOND_PAPER_CHAPTERS

        raise NotFoundError(resource="paper", resource_id=paper, message=f"Paper '{paper}' not found")
