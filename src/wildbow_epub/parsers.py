from __future__ import annotations

import xml.sax.saxutils as xsu
from typing import List, Optional

import soupsieve as sv
from bs4 import BeautifulSoup

from .emails import deobfuscate_emails
from .exceptions import ChapterContentMissing, TocMissing
from .models import Chapter, ChapterStatus
from .utils import clean_title

# Selectors target the WordPress theme used by Wildbow's serials.
ENTRY_CONTENT = sv.compile(".entry-content")
ENTRY_TITLE = sv.compile(".entry-title")
PARAGRAPH = sv.compile("p")
ANCHOR = sv.compile("a")

SEPARATOR = "<br /><hr /><br /><h1><center>🦋</center></h1>"


def _soup(html_text: str) -> BeautifulSoup:
    return BeautifulSoup(html_text, "html.parser")


def normalize_root(url: str) -> str:
    return url.strip().rstrip("/")


def toc_url(root: str) -> str:
    return f"{normalize_root(root)}/table-of-contents/"


def normalize_url(root: str, href: str) -> str:
    """Make a TOC href absolute: site-relative paths join the root, bare hosts get https."""
    if href.startswith("http"):
        return href
    if href.startswith("/"):
        return normalize_root(root) + href
    return f"https://{href}"


def parse_toc(root: str, html_text: str) -> List[Chapter]:
    """Return chapters linked from the TOC page, in document order.

    Repeated links are kept: the TOC order is authoritative.
    """
    content = ENTRY_CONTENT.select_one(_soup(html_text))
    if content is None:
        raise TocMissing(toc_url(root))
    chapters: List[Chapter] = []
    for a in ANCHOR.select(content):
        href = a.get("href")
        if href is None:
            continue
        chapters.append(Chapter(title=a.get_text(), url=normalize_url(root, href)))
    return chapters


def page_title(soup: BeautifulSoup) -> Optional[str]:
    """First non-blank text node of .entry-title, if any."""
    el = ENTRY_TITLE.select_one(soup)
    if el is None:
        return None
    first = next((s for s in el.strings if s.strip()), None)
    if first is None:
        return None
    return clean_title(str(first))


def extract_body(content) -> str:
    """Join the outer HTML of the paragraphs, minus the prev/next navigation ones."""
    paragraphs = [str(p) for p in PARAGRAPH.select(content)]
    return "".join(paragraphs[1:-1])


def wrap_chapter(title: str, body: str) -> str:
    return f"<h1>{xsu.escape(title)}</h1>{body}{SEPARATOR}"


def parse_chapter(chapter: Chapter, html_text: str) -> ChapterStatus:
    """Fill chapter.title and chapter.content from a chapter page."""
    soup = _soup(html_text)
    title = page_title(soup)
    if title is not None:
        chapter.title = title
    content = ENTRY_CONTENT.select_one(soup)
    if content is None:
        chapter.content = str(ChapterContentMissing(chapter.title, chapter.url))
        return ChapterStatus.CONTENT_MISSING
    body = deobfuscate_emails(extract_body(content))
    chapter.content = wrap_chapter(chapter.title, body)
    return ChapterStatus.OK
