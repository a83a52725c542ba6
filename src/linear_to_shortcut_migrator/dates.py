"""Date normalization for Shortcut payloads and timestamp formatting for descriptions."""

from __future__ import annotations

import datetime as dt
import re
from typing import Final

QUARTER_PATTERN: Final[re.Pattern[str]] = re.compile(r"Q\s*([1-4])\s*[\s\-/]*\s*(\d{4})", re.IGNORECASE)
ISO_DATE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\d{4}-\d{2}-\d{2}$")
ISO_PREFIX_PATTERN: Final[re.Pattern[str]] = re.compile(r"^(\d{4}-\d{2}-\d{2})")

# Last calendar day (month, day) of each quarter
QUARTER_END: Final[dict[int, tuple[int, int]]] = {1: (3, 31), 2: (6, 30), 3: (9, 30), 4: (12, 31)}

# Free-form layouts seen in Linear target dates and pasted text
FALLBACK_FORMATS: Final[tuple[str, ...]] = (
    "%m/%d/%Y",
    "%d-%m-%Y",
    "%Y/%m/%d",
    "%d.%m.%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
)


def normalize_date(value: str | None) -> str | None:
    """Normalize a Linear date for Shortcut (``YYYY-MM-DD``).

    - "Q1 2025" ... "Q4 2025" (also "q4-2025", "Q4/2025") -> last day of that quarter
    - "2025-06-15" -> unchanged
    - "2025-06-15T10:00:00Z" -> "2025-06-15"
    - "06/15/2025", "June 15, 2025", ... -> "2025-06-15"
    - empty or unparseable -> None, so the field is left out of the payload

    Examples:
        >>> normalize_date("Q4 2025")
        '2025-12-31'
        >>> normalize_date("not-a-date") is None
        True
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    quarter_match = QUARTER_PATTERN.search(text)
    if quarter_match:
        quarter = int(quarter_match.group(1))
        year = int(quarter_match.group(2))
        month, day = QUARTER_END[quarter]
        return dt.date(year, month, day).isoformat()

    if ISO_DATE_PATTERN.match(text):
        return text

    iso_match = ISO_PREFIX_PATTERN.match(text)
    if iso_match:
        return iso_match.group(1)

    for fmt in FALLBACK_FORMATS:
        try:
            return dt.datetime.strptime(text, fmt).date().isoformat()  # noqa: DTZ007
        except ValueError:
            continue
    return None


def format_timestamp(iso_timestamp: str | None) -> str:
    """Format ISO 8601 timestamp to human-readable format.

    Args:
        iso_timestamp: ISO 8601 formatted timestamp string

    Returns:
        Formatted timestamp (e.g., "2024-01-15 10:30:45Z").
        Returns original value if parsing fails.
    """
    if not iso_timestamp:
        return iso_timestamp or ""

    try:
        timestamp_dt = dt.datetime.fromisoformat(iso_timestamp)
        formatted = timestamp_dt.isoformat(sep=" ", timespec="seconds")
        return formatted.replace("+00:00", "Z")
    except (ValueError, AttributeError):
        return iso_timestamp
