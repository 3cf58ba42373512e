"""wildbow_epub public API (library-first).

Exports stable functions and classes for use by other applications. The CLI is
thin and delegates to internal modules.
"""
from __future__ import annotations

from .api import assemble_epub, build_epub_from_url, fetch_chapter, fetch_chapters, fetch_toc, write_epub
from .builder import EpubBuilder, chapter_filename, output_filename
from .emails import decode_cfemail, deobfuscate_emails
from .exceptions import (
    AssemblyError,
    ChapterContentMissing,
    ChapterFetchError,
    NetworkError,
    OutputError,
    TocMissing,
    WildbowError,
)
from .http import fetch
from .models import Chapter, ChapterResult, ChapterStatus
from .parsers import normalize_url, parse_chapter, parse_toc
from .scheduler import run_ordered

__all__ = [
    "assemble_epub",
    "build_epub_from_url",
    "fetch_chapter",
    "fetch_chapters",
    "fetch_toc",
    "write_epub",
    "EpubBuilder",
    "chapter_filename",
    "output_filename",
    "decode_cfemail",
    "deobfuscate_emails",
    "AssemblyError",
    "ChapterContentMissing",
    "ChapterFetchError",
    "NetworkError",
    "OutputError",
    "TocMissing",
    "WildbowError",
    "fetch",
    "Chapter",
    "ChapterResult",
    "ChapterStatus",
    "normalize_url",
    "parse_chapter",
    "parse_toc",
    "run_ordered",
]
