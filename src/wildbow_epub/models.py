from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


@dataclass
class Chapter:
    title: str
    url: str
    content: str = ""  # xhtml body fragment, filled in by the extractor


class ChapterStatus(enum.Enum):
    OK = "ok"
    CONTENT_MISSING = "content_missing"
    FETCH_ERROR = "fetch_error"


@dataclass
class ChapterResult:
    index: int
    chapter: Chapter
    status: ChapterStatus
    error: Optional[Exception] = None

    @property
    def included(self) -> bool:
        """Soft failures still go into the book; fetch errors do not."""
        return self.status is not ChapterStatus.FETCH_ERROR
