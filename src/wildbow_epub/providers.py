from __future__ import annotations

from typing import List, Protocol

from .http import DEFAULT_TIMEOUT, fetch
from .models import Chapter
from .parsers import parse_toc, toc_url


class Provider(Protocol):
    def fetch_index(self, root: str) -> str:  # returns HTML
        ...

    def fetch_chapter(self, url: str) -> str:  # returns HTML
        ...

    def parse_toc(self, root: str, index_html: str) -> List[Chapter]:
        ...


class WordPressProvider:
    """Default provider for Wildbow's WordPress serial sites."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout

    def fetch_index(self, root: str) -> str:
        return fetch(toc_url(root), timeout=self.timeout)

    def fetch_chapter(self, url: str) -> str:
        return fetch(url, timeout=self.timeout)

    def parse_toc(self, root: str, index_html: str) -> List[Chapter]:
        return parse_toc(root, index_html)
