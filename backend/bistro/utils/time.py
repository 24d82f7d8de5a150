import calendar
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo

UTC = timezone.utc


def restaurant_tz(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def to_utc_naive(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return dt.astimezone(UTC).replace(tzinfo=None)


def utc_naive_to_local(dt: datetime, tz: tzinfo) -> datetime:
    return dt.replace(tzinfo=UTC).astimezone(tz)


def now_in(tz: tzinfo) -> datetime:
    return datetime.now(UTC).astimezone(tz)


def add_months(dt: datetime, months: int) -> datetime:
    """Calendar-month shift; the day is clamped to the end of the target month."""
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)
