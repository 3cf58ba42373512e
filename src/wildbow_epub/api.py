from __future__ import annotations

import contextlib
import datetime as _dt
import logging
import os
from typing import Callable, List, Optional, Sequence

from .builder import EpubBuilder, chapter_filename, output_filename, title_page
from .exceptions import AssemblyError, ChapterFetchError, NetworkError, OutputError, WildbowError
from .http import DEFAULT_TIMEOUT
from .models import Chapter, ChapterResult, ChapterStatus
from .parsers import normalize_root, parse_chapter
from .providers import Provider, WordPressProvider
from .scheduler import DEFAULT_WORKERS, run_ordered

logger = logging.getLogger(__name__)

AUTHOR = "Wildbow"
GENERATOR = "wildbow_epub"


class BuildEvent(dict):
    """Opaque event object for progress reporting."""
    pass


def _emit(cb: Optional[Callable[[BuildEvent], None]], ev: BuildEvent) -> None:
    if cb:
        try:
            cb(ev)
        except Exception:
            # Never let callbacks break the build
            logger.debug("event callback failed for %s", ev.get("type"), exc_info=True)


def fetch_toc(root: str, *, provider: Optional[Provider] = None) -> List[Chapter]:
    """Fetch the TOC page and return its chapters in order (content still empty)."""
    _prov = provider or WordPressProvider()
    root = normalize_root(root)
    index_html = _prov.fetch_index(root)
    return _prov.parse_toc(root, index_html)


def fetch_chapter(chapter: Chapter, *, provider: Optional[Provider] = None) -> ChapterStatus:
    """Download one chapter and fill it in.

    Network failures raise ChapterFetchError; a page without content is a
    soft failure, reported and returned as CONTENT_MISSING.
    """
    _prov = provider or WordPressProvider()
    try:
        html_text = _prov.fetch_chapter(chapter.url)
    except NetworkError as e:
        raise ChapterFetchError(chapter.title, chapter.url, e.cause) from e
    status = parse_chapter(chapter, html_text)
    if status is ChapterStatus.CONTENT_MISSING:
        logger.warning("%s", chapter.content)
    return status


def fetch_chapters(
    chapters: Sequence[Chapter],
    *,
    workers: int = DEFAULT_WORKERS,
    provider: Optional[Provider] = None,
    on_event: Optional[Callable[[BuildEvent], None]] = None,
) -> List[ChapterResult]:
    """Fetch all chapters concurrently; results keep the TOC order."""
    _prov = provider or WordPressProvider()

    def worker(idx: int, chapter: Chapter) -> ChapterResult:
        try:
            status = fetch_chapter(chapter, provider=_prov)
        except ChapterFetchError as e:
            logger.warning("%s", e)
            return ChapterResult(idx, chapter, ChapterStatus.FETCH_ERROR, e)
        return ChapterResult(idx, chapter, status)

    def on_done(idx: int, result: ChapterResult) -> None:
        if result.status is ChapterStatus.OK:
            _emit(on_event, BuildEvent(type="chapter_done", index=idx, title=result.chapter.title.strip()))
        else:
            _emit(on_event, BuildEvent(type="chapter_failed", index=idx, title=result.chapter.title.strip(),
                                       status=result.status.value))

    return run_ordered(chapters, worker, workers=workers, on_done=on_done)


def assemble_epub(root: str, results: Sequence[ChapterResult], *, today: Optional[_dt.date] = None) -> EpubBuilder:
    """Build the book: metadata, title page, inline TOC, then chapters in order."""
    root = normalize_root(root)
    today = today or _dt.date.today()
    epub = EpubBuilder()
    # TODO: take the book title from the site header instead of the URL
    (
        epub.metadata("title", root)
        .metadata("author", AUTHOR)
        .metadata("description", root)
        .metadata("generator", GENERATOR)
        .add_content("title.xhtml", title_page(root, today).encode("utf-8"), title=root, reftype="title-page")
        .inline_toc()
    )

    used = {c.name for c in epub.contents} | {"toc.xhtml"}
    for res in results:
        if not res.included:
            continue
        ch = res.chapter
        name = base = chapter_filename(ch.title)
        copy = 1
        # the TOC may list a chapter twice; keep every copy
        while name and name in used:
            copy += 1
            name = f"{base[:-len('.xhtml')]}_{copy}.xhtml"
        used.add(name)
        try:
            epub.add_content(
                name,
                ch.content.encode("utf-8"),
                title=ch.title.strip(),
                reftype="text",
            )
        except AssemblyError as e:
            logger.warning("Skipping chapter %s: %s", ch.title.strip(), e)
    return epub


def write_epub(epub: EpubBuilder, out_path: str) -> str:
    """Write the book to out_path, overwriting it. No half-written file is left behind."""
    try:
        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
        with open(out_path, "wb") as fh:
            epub.generate(fh)
    except OSError as e:
        raise OutputError(out_path, e) from e
    except AssemblyError:
        with contextlib.suppress(OSError):
            os.remove(out_path)
        raise
    return out_path


def build_epub_from_url(
    root: str,
    out_path: Optional[str] = None,
    *,
    workers: int = DEFAULT_WORKERS,
    timeout: float = DEFAULT_TIMEOUT,
    limit: Optional[int] = None,
    provider: Optional[Provider] = None,
    on_event: Optional[Callable[[BuildEvent], None]] = None,
    today: Optional[_dt.date] = None,
) -> str:
    """Download every chapter listed on the site's TOC and write one EPUB.

    Returns the path written. Per-chapter failures are logged and never abort
    the build; a missing TOC or an unwritable output file does.
    """
    root = normalize_root(root)
    if "//" not in root:
        raise WildbowError(f"Invalid site URL: {root!r}. Expected https://<host>")
    today = today or _dt.date.today()
    _prov = provider or WordPressProvider(timeout=timeout)

    chapters = fetch_toc(root, provider=_prov)
    if limit is not None:
        chapters = chapters[:max(0, limit)]
    _emit(on_event, BuildEvent(type="toc_fetched", count=len(chapters)))

    results = fetch_chapters(chapters, workers=workers, provider=_prov, on_event=on_event)
    included = sum(1 for r in results if r.included)
    _emit(on_event, BuildEvent(type="chapters_fetched", count=included, failed=len(results) - included))

    epub = assemble_epub(root, results, today=today)
    _emit(on_event, BuildEvent(type="epub_assembled"))

    out_path = out_path or output_filename(root, today)
    write_epub(epub, out_path)
    _emit(on_event, BuildEvent(type="epub_written", path=out_path))
    return out_path
