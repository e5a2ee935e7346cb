"""Normalization helpers for member lookup pages.

All functions accept str | None and return the appropriate type or None.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

# Tried in order; the directory publishes ISO dates, older pages used US style.
_DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%b %d, %Y",
    "%B %d, %Y",
)


# ---------------------------------------------------------------------------
# Rule 1: trim
# ---------------------------------------------------------------------------

def trim(value: str | None) -> str | None:
    """Strip leading/trailing whitespace; treat empty string as None."""
    if value is None:
        return None
    v = value.strip()
    return v if v else None


# ---------------------------------------------------------------------------
# Rule 2: normalize_space
# ---------------------------------------------------------------------------

def normalize_space(value: str | None) -> str | None:
    """Collapse internal runs of whitespace to single spaces, then trim."""
    v = trim(value)
    if v is None:
        return None
    return re.sub(r"\s+", " ", v)


# ---------------------------------------------------------------------------
# Rule 3: first_token
# ---------------------------------------------------------------------------

def first_token(value: str | None) -> str | None:
    """Return the first whitespace-delimited token.

    Ratings are published as '1500 (12)' or '1500P12 (Based on 12 games)';
    only the leading token is kept.
    """
    v = trim(value)
    if v is None:
        return None
    return v.split()[0]


# ---------------------------------------------------------------------------
# Rule 4: second_line
# ---------------------------------------------------------------------------

def second_line(value: str | None) -> str | None:
    """Return the trimmed second line of a multi-line cell, or None."""
    v = trim(value)
    if v is None:
        return None
    lines = v.split("\n")
    if len(lines) < 2:
        return None
    return trim(lines[1])


# ---------------------------------------------------------------------------
# Rule 5: parse_expiration_date
# ---------------------------------------------------------------------------

def parse_expiration_date(value: str | None) -> datetime | None:
    """Parse a published expiration date into a UTC-midnight datetime.

    Unparsable text → None.
    """
    v = normalize_space(value)
    if v is None:
        return None
    for fmt in _DATE_FORMATS:
        try:
            parsed = datetime.strptime(v, fmt)
        except ValueError:
            continue
        return parsed.replace(tzinfo=timezone.utc)
    return None
