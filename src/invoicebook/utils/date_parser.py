"""Date parsing utilities.

Invoice dates are exchanged in the canonical ``DD.MM.YYYY`` representation.
"""

from datetime import date, timedelta
from typing import Optional

from dateutil import parser as date_parser

CANONICAL_DATE_FORMAT = "%d.%m.%Y"


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports day-first absolute dates ("15.03.2025", "15/03/2025",
    "2025-03-15", "15 March 2025") and the relative words "today",
    "yesterday" and "tomorrow".

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    if date_str is None or not date_str.strip():
        raise ValueError("Empty date string")

    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    # ISO dates are year-first even though everything else is day-first
    dayfirst = not (len(date_str) >= 5 and date_str[:4].isdigit() and date_str[4] in "-/.")
    try:
        return date_parser.parse(date_str, dayfirst=dayfirst).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}") from e


def format_date(value: date) -> str:
    """Format a date as DD.MM.YYYY."""
    return value.strftime(CANONICAL_DATE_FORMAT)


def normalize_date(date_str: Optional[str]) -> str:
    """Convert any accepted date string to DD.MM.YYYY.

    Empty input stays empty.

    Raises:
        ValueError: If date string cannot be parsed
    """
    if date_str is None or not date_str.strip():
        return ""
    return format_date(parse_date(date_str))


def try_parse_canonical(date_str: Optional[str]) -> Optional[date]:
    """Parse a DD.MM.YYYY string strictly, returning None when malformed."""
    parts = split_canonical(date_str)
    if parts is None:
        return None
    day, month, year = parts
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def split_canonical(date_str: Optional[str]) -> Optional[tuple[str, str, str]]:
    """Split a DD.MM.YYYY string into its (day, month, year) segments.

    Returns None when the string does not have exactly three dot-separated
    segments.
    """
    if not date_str:
        return None
    parts = date_str.strip().split(".")
    if len(parts) != 3:
        return None
    return parts[0], parts[1], parts[2]
