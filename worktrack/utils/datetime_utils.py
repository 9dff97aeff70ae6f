"""
Centralized datetime and timezone utilities.

Backend timestamps arrive as ISO-8601 strings with an offset; cursors and
comparisons in the sync layer always use timezone-aware UTC datetimes.
"""

from datetime import datetime
from typing import Optional, Union
import pytz

from config import settings


def get_local_tz() -> pytz.BaseTzInfo:
    """Get the configured local timezone."""
    return pytz.timezone(settings.timezone)


def utc_now() -> datetime:
    """Get current time as an aware UTC datetime."""
    return datetime.now(pytz.UTC)


def to_aware_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Convert a datetime to timezone-aware UTC.

    Naive datetimes are assumed to already be in UTC, which is what the
    backend stores.
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)

    return dt.astimezone(pytz.UTC)


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse a backend timestamp into an aware UTC datetime.

    Returns None for empty or unparseable values.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        return to_aware_utc(value)

    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        return to_aware_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def format_cursor(dt: datetime) -> str:
    """Format a cursor for a `created_at > cursor` filter."""
    return to_aware_utc(dt).isoformat()
