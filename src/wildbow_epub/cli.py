"""Thin CLI over wildbow_epub.api.build_epub_from_url."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .api import BuildEvent, build_epub_from_url
from .exceptions import WildbowError
from .http import DEFAULT_TIMEOUT
from .parsers import normalize_root
from .scheduler import DEFAULT_WORKERS


def setup_logging(verbose: bool = False) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("[!] %(message)s"))
    root = logging.getLogger("wildbow_epub")
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.propagate = False


def make_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="wildbow-epub",
        description="Download a Wildbow web serial and build an EPUB for offline reading",
    )
    ap.add_argument("url", help="Site root like https://www.parahumans.net")
    ap.add_argument("threads", nargs="?", type=int, default=DEFAULT_WORKERS,
                    help=f"Chapters downloaded in parallel (default: {DEFAULT_WORKERS})")
    ap.add_argument("-o", "--output", help="Output EPUB path (default: <host><date>.epub)")
    ap.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="Per-request timeout in seconds")
    ap.add_argument("--limit", type=int, default=None, help="Limit number of chapters for a quick run")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = make_parser().parse_args(argv)
    setup_logging(args.verbose)
    url = normalize_root(args.url)

    def on_event(ev: BuildEvent) -> None:
        t = ev.get("type")
        if t == "toc_fetched":
            print(" done!")
            print("Downloading chapters... this might take a while.")
        elif t == "chapter_done":
            print(f"{ev.get('title')} ✔", flush=True)
        elif t == "chapters_fetched":
            print(f"That's {ev.get('count')} chapters!")
            print("Generating epub...")
        elif t == "epub_assembled":
            print(" done!")
            print("Writing to file...")
        elif t == "epub_written":
            print(" done!")

    print(f"Creating an ebook for: {url}")
    print("Getting table of contents...")
    try:
        out_path = build_epub_from_url(
            url,
            args.output,
            workers=max(1, args.threads),
            timeout=args.timeout,
            limit=args.limit,
            on_event=on_event,
        )
    except WildbowError as e:
        print(f"[!] {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("[!] Interrupted, no file written.", file=sys.stderr)
        return 130
    print(f"Saved to: {out_path}!")
    return 0
