from __future__ import annotations

from typing import Optional


class WildbowError(Exception):
    """Base user-facing error for wildbow_epub.

    Use this for predictable, actionable failures (bad URL, missing TOC, etc.).
    CLI will catch this and print a concise message without a traceback.
    """


class NetworkError(WildbowError):
    """HTTP request could not be completed."""

    def __init__(self, url: str, cause: Optional[BaseException] = None):
        self.url = url
        self.cause = cause
        super().__init__(f"Request to {url} failed: {cause}")


class TocMissing(WildbowError):
    """Table of contents page has no .entry-content block."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"No table of contents found at: {url}")


class ChapterContentMissing(WildbowError):
    """Chapter page has no .entry-content block (soft failure)."""

    def __init__(self, title: str, url: str):
        self.title = title
        self.url = url
        super().__init__(f"Could not retrieve chapter {title} from: {url}.")


class ChapterFetchError(WildbowError):
    """Network-level failure on a chapter; the chapter is left out of the book."""

    def __init__(self, title: str, url: str, cause: Optional[BaseException] = None):
        self.title = title
        self.url = url
        self.cause = cause
        super().__init__(f"Failed to download chapter {title.strip()} from {url}: {cause}")


class AssemblyError(WildbowError):
    """EPUB builder rejected content or could not be generated."""


class OutputError(WildbowError):
    """Output file could not be created or written."""

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        super().__init__(f"Unable to write to file: {path} ({cause})")
