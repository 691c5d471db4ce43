from datetime import date, datetime, time, timezone
from typing import Union


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how window columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def end_of_day(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        value = to_naive_utc(value).date()
    return datetime.combine(value, time.max)
