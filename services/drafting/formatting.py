"""
Banner Formatting

Helpers that turn CompanyDetails values into the uppercase phrases used
in the certified-true-copy banner of a board resolution.
"""

import logging
from datetime import date, datetime
from typing import Any, Optional

logger = logging.getLogger(__name__)

DATE_FORMATS = ["%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y"]

REGISTERED_OFFICE = 'registered office'

UNDERSCORE_NAME = '____________________'
UNDERSCORE_DIN = '__________'


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a meeting date.

    Accepts date/datetime objects and ISO or day-first strings.
    Returns None when the value cannot be parsed.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    logger.warning(f"Could not parse date: {value}")
    return None


def long_date(value: Any) -> str:
    """
    Format a date as "D Month YYYY".

    Examples:
        "2026-01-05" -> "5 January 2026"
        date(2026, 1, 15) -> "15 January 2026"
    """
    parsed = parse_date(value)
    if parsed is None:
        return str(value) if value else ''
    return f"{parsed.day} {parsed.strftime('%B')} {parsed.year}"


def weekday_name(value: Any) -> str:
    """Day of week, e.g. "Monday". Empty when the date cannot be parsed."""
    parsed = parse_date(value)
    return parsed.strftime('%A') if parsed else ''


def banner_date(value: Any) -> str:
    """
    Uppercased "<WEEKDAY>, <D MONTH YYYY>" for the certification banner.

    Examples:
        "2026-01-05" -> "MONDAY, 5 JANUARY 2026"
        "" -> "__________"
    """
    parsed = parse_date(value)
    if parsed is None:
        return str(value).upper() if value else UNDERSCORE_DIN
    return f"{weekday_name(parsed)}, {long_date(parsed)}".upper()


def banner_place(place: Optional[str], address: Optional[str]) -> str:
    """
    Uppercased meeting place.

    "Registered Office" (any case) resolves to the full registered address.
    """
    place = (place or '').strip()
    if place.lower() == REGISTERED_OFFICE:
        return (address or place).strip().upper()
    return place.upper()


def first_non_blank(*values: Optional[str]) -> str:
    """First value that is not None or whitespace, else an empty string."""
    for value in values:
        if value and str(value).strip():
            return str(value).strip()
    return ''
