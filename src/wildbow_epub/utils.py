from __future__ import annotations

import datetime as _dt
import re


def clean_title(s: str) -> str:
    """Page titles use EN DASH separators; keep them ASCII for file names."""
    return s.replace("–", "-")


def collapse_whitespace(s: str, sep: str = " ") -> str:
    return re.sub(r"\s+", sep, s.strip())


def padded_day(d: _dt.date) -> str:
    """Portable strftime("%e"): day of month padded with a space."""
    return f"{d.day:2d}"


def long_date(d: _dt.date) -> str:
    # "%e %B %Y"
    return f"{padded_day(d)} {d.strftime('%B %Y')}"


def short_date(d: _dt.date) -> str:
    # "%e%b%y"
    return f"{padded_day(d)}{d.strftime('%b%y')}"
