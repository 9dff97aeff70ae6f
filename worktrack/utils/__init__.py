"""Utility modules for WorkTrack."""

from .datetime_utils import (
    get_local_tz,
    utc_now,
    to_aware_utc,
    parse_timestamp,
    format_cursor,
)

__all__ = [
    "get_local_tz",
    "utc_now",
    "to_aware_utc",
    "parse_timestamp",
    "format_cursor",
]
