import datetime
import math
from typing import Optional, Union

SECONDS_PER_DAY = 24 * 60 * 60
SECONDS_PER_HOUR = 60 * 60

DateLike = Union[str, datetime.datetime]

def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)

def as_utc(value: DateLike) -> datetime.datetime:
    """Normalise a timestamp to an aware UTC datetime. Naive values are taken as UTC."""
    if isinstance(value, str):
        value = datetime.datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)

def resolve_now(now: Optional[datetime.datetime] = None) -> datetime.datetime:
    return as_utc(now) if now is not None else utcnow()

def days_from_now(date: DateLike, now: Optional[datetime.datetime] = None) -> float:
    return (as_utc(date) - resolve_now(now)).total_seconds() / SECONDS_PER_DAY

def is_within_days(date: DateLike, days: float, now: Optional[datetime.datetime] = None) -> bool:
    diff_days = days_from_now(date, now)
    return 0 <= diff_days <= days

def get_days_until(date: DateLike, now: Optional[datetime.datetime] = None) -> int:
    return math.ceil(days_from_now(date, now))

def is_past(date: DateLike, now: Optional[datetime.datetime] = None) -> bool:
    return as_utc(date) < resolve_now(now)

def format_relative_date(date: DateLike, now: Optional[datetime.datetime] = None) -> str:
    days = get_days_until(date, now)

    if days < 0:
        abs_days = abs(days)
        if abs_days == 1:
            return "yesterday"
        return f"{abs_days} days ago"

    if days == 0:
        return "today"
    if days == 1:
        return "tomorrow"
    return f"in {days} days"
