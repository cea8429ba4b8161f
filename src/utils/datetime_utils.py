from __future__ import annotations

import calendar
import time as _time
from datetime import datetime, timezone
from typing import Optional, Union

from dateutil import parser as date_parser


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_to_utc(
    value: Union[str, _time.struct_time, datetime, None],
    *,
    fallback: Optional[datetime] = None,
) -> datetime:
    """
    Parse the date forms found in feeds into an aware UTC datetime.

    ``struct_time`` values come from feedparser's ``*_parsed`` fields, which are
    already expressed in UTC. Naive datetimes and strings without an offset are
    taken as UTC. ``None`` or an unparseable string yields ``fallback`` (now).
    """
    if value is None:
        return fallback or utcnow()

    try:
        if isinstance(value, datetime):
            dt = value
        elif isinstance(value, _time.struct_time):
            dt = datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)
        else:
            dt = date_parser.parse(str(value))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    except (ValueError, OverflowError, OSError):
        # Out-of-range dates ("0000-00-00", year 9999 with a negative offset).
        return fallback or utcnow()


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Re-attach UTC to datetimes read back from SQLite."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
