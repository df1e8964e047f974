"""
Date parsing helpers.
Session dates are stored as ISO YYYY-MM-DD strings.
"""
import re
from datetime import datetime, date, timezone
from typing import Any, Optional

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
US_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
ISO_TIMESTAMP_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})[T ]")


def is_iso_date(value: Any) -> bool:
    """True if value is a YYYY-MM-DD string naming a real calendar day"""
    if not isinstance(value, str) or not ISO_DATE_RE.match(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
        return True
    except ValueError:
        return False


def normalize_date(value: Any) -> str:
    """
    Coerce a date value to ISO YYYY-MM-DD.

    Handles date/datetime objects, ISO strings, ISO timestamps and
    MM/DD/YYYY strings. Values that cannot be parsed are returned trimmed
    and unchanged so callers can decide what to do with them.

    Args:
        value: Raw date value from a form, a database row or a sheet cell

    Returns:
        ISO date string, the trimmed original string, or "" for empty input
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    s = str(value).strip()
    if not s:
        return ""

    if ISO_DATE_RE.match(s):
        return s

    m = ISO_TIMESTAMP_RE.match(s)
    if m:
        return m.group(1)

    m = US_DATE_RE.match(s)
    if m:
        month, day, year = m.groups()
        try:
            return date(int(year), int(month), int(day)).isoformat()
        except ValueError:
            return s

    return s


def month_of(iso_date: Optional[str]) -> str:
    """YYYY-MM prefix of a date string"""
    return (iso_date or "")[:7]


def now_iso_str() -> str:
    """Current UTC time as an ISO timestamp"""
    return datetime.now(timezone.utc).isoformat()
