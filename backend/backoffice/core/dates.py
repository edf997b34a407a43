"""Timestamp helpers. Supabase returns ISO-8601 strings, always treated as UTC."""

from datetime import datetime, timezone
from typing import Any, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a timestamp column into an aware datetime (None if empty/invalid)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def isoformat(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def month_start(dt: datetime) -> datetime:
    return dt.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def shift_months(dt: datetime, months: int) -> datetime:
    """Move to the first day of the month `months` away (negative goes back)."""
    index = dt.year * 12 + (dt.month - 1) + months
    return month_start(dt).replace(year=index // 12, month=index % 12 + 1)
