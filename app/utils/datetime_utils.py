"""
Timezone-aware datetime helpers.
- Store and compute instants in UTC in DB.
- Schedule times ("HH:MM") and calendar months are local to settings.SCHEDULE_TIMEZONE.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from app.core.config import settings

UTC = timezone.utc


def local_zone() -> ZoneInfo:
    """Zone in which schedules and accumulation months are interpreted."""
    return ZoneInfo(settings.SCHEDULE_TIMEZONE)


def now_utc() -> datetime:
    """Current time in UTC (timezone-aware)."""
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """If dt is naive, treat as UTC and return timezone-aware UTC. If already aware, convert to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    else:
        dt = dt.astimezone(UTC)
    return dt


def to_local(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert to the local zone. Naive datetimes are already local wall time and are only tagged."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=local_zone())
    return dt.astimezone(local_zone())


def check_in_to_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """UTC instant of a check-in timestamp; naive values are local wall time."""
    return ensure_utc(to_local(dt))


def local_month_of(dt: datetime) -> Tuple[int, int]:
    """(month, year) of the local calendar date of dt."""
    local = to_local(dt)
    return local.month, local.year


def month_bounds_utc(year: int, month: int) -> Tuple[datetime, datetime]:
    """[start, end) of a local calendar month, expressed in UTC."""
    zone = local_zone()
    start = datetime(year, month, 1, tzinfo=zone)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=zone)
    else:
        end = datetime(year, month + 1, 1, tzinfo=zone)
    return start.astimezone(UTC), end.astimezone(UTC)


def period_key(year: int, month: int) -> str:
    """Month key stored on month-scoped records, e.g. '2026-10'."""
    return f"{year:04d}-{month:02d}"


def window_start(now: datetime, days: int) -> datetime:
    """Start of a rolling window of `days` ending at `now` (UTC)."""
    return ensure_utc(now) - timedelta(days=days)


def iso_8601_utc(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 with Z for UTC."""
    if dt is None:
        return None
    utc = ensure_utc(dt)
    s = utc.isoformat()
    if s.endswith("+00:00"):
        s = s[:-6] + "Z"
    return s
