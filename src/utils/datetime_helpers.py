"""
Standardized Date/Time Handling Utilities

RULES:
- All stored timestamps are UTC ISO-8601 strings with millisecond precision
  and a 'Z' suffix (e.g. 2024-05-01T12:00:00.000Z)
- Calendar-day keys (daily rewards, default due dates) use the UTC date
- Never mix naive and aware datetimes: naive values are treated as UTC
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current instant as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """Convert to aware UTC (naive input is assumed to already be UTC)"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso_timestamp(dt: Optional[datetime] = None) -> str:
    """Format an instant as the stored timestamp string"""
    moment = to_utc(dt) if dt is not None else utc_now()
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_day_key(dt: Optional[datetime] = None) -> str:
    """UTC calendar day of an instant as YYYY-MM-DD"""
    moment = to_utc(dt) if dt is not None else utc_now()
    return moment.date().isoformat()
