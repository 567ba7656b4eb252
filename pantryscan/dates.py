"""Expiration date extraction from recognized label text."""

from __future__ import annotations

import re
from datetime import date

# Priority order matters: the first pattern that matches anywhere is used,
# even when a later pattern matches earlier in the text.
_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"\b\d{4}-\d{2}-\d{2}\b"),  # YYYY-MM-DD
    re.compile(r"\b\d{1,2}/\d{1,2}/\d{2,4}\b"),  # M/D/YY(YY)
    re.compile(  # Best by Month D, YYYY
        r"best\s*by[:\s-]*[A-Za-z]{3,9}\s+\d{1,2},\s*\d{2,4}", re.IGNORECASE
    ),
]

_LABEL = re.compile(r"^\s*best\s*by[:\s-]*", re.IGNORECASE)

# Fixed English month names, independent of the process locale.
_MONTH_ABBR: dict[str, int] = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}
_MONTH_FULL: dict[str, int] = {
    "january": 1, "february": 2, "march": 3, "april": 4, "may": 5,
    "june": 6, "july": 7, "august": 8, "september": 9, "october": 10,
    "november": 11, "december": 12,
}

# (layout name, full-match regex). Month groups are either digits or names.
_LAYOUTS: list[tuple[str, re.Pattern[str]]] = [
    ("yyyy-MM-dd", re.compile(r"(?P<y>\d{4})-(?P<m>\d{2})-(?P<d>\d{2})")),
    ("M/d/yy", re.compile(r"(?P<m>\d{1,2})/(?P<d>\d{1,2})/(?P<y>\d{2})")),
    ("MM/dd/yyyy", re.compile(r"(?P<m>\d{1,2})/(?P<d>\d{1,2})/(?P<y>\d{4})")),
    (
        "MMM d, yyyy",
        re.compile(r"(?P<mon>[A-Za-z]{3})\s+(?P<d>\d{1,2}),\s*(?P<y>\d{4})"),
    ),
    (
        "MMMM d, yyyy",
        re.compile(r"(?P<mon>[A-Za-z]{3,9})\s+(?P<d>\d{1,2}),\s*(?P<y>\d{4})"),
    ),
]


def expand_two_digit_year(yy: int) -> int:
    """Resolve a two-digit year with a fixed 1969-2068 window."""
    return 2000 + yy if yy < 69 else 1900 + yy


def parse_first_date(text: str) -> date | None:
    """Return the first plausible calendar date in a line of scanned text.

    Patterns are tried in priority order (ISO, slash, "best by" label). If a
    pattern matches but the substring is not a real date, the next pattern is
    tried. Returns None when nothing parses; never raises.
    """
    if not isinstance(text, str) or not text:
        return None

    for pattern in _PATTERNS:
        match = pattern.search(text)
        if match is None:
            continue
        cleaned = _LABEL.sub("", match.group(0)).strip()
        parsed = _flexible_parse(cleaned)
        if parsed is not None:
            return parsed
    return None


def _flexible_parse(s: str) -> date | None:
    for name, layout in _LAYOUTS:
        m = layout.fullmatch(s)
        if m is None:
            continue
        parts = m.groupdict()
        if "mon" in parts:
            table = _MONTH_ABBR if name == "MMM d, yyyy" else _MONTH_FULL
            month = table.get(parts["mon"].lower())
            if month is None:
                continue
        else:
            month = int(parts["m"])
        year = int(parts["y"])
        if len(parts["y"]) == 2:
            year = expand_two_digit_year(year)
        try:
            return date(year, month, int(parts["d"]))
        except ValueError:
            continue
    return None
