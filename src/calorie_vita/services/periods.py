"""Calendar helpers for user-local analytics windows."""

from datetime import UTC, date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from calorie_vita.domain.fitness import TimeRange


def local_today(timezone_name: str) -> date:
    """Return today's date in the given timezone."""
    return datetime.now(tz=ZoneInfo(timezone_name)).date()


def window_dates(days: int, today: date) -> list[date]:
    """Return the `days` calendar dates ending with today, oldest first."""
    if days < 1:
        raise ValueError(f"days must be positive, got {days}")
    start = today - timedelta(days=days - 1)
    return [start + timedelta(days=offset) for offset in range(days)]


def day_range(day: date, timezone_name: str) -> TimeRange:
    """Return the UTC instant range covering a local calendar day."""
    tz = ZoneInfo(timezone_name)
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = start + timedelta(days=1)
    return TimeRange(start=start.astimezone(UTC), end=end.astimezone(UTC))


def window_range(dates: list[date], timezone_name: str) -> TimeRange:
    """Return the UTC instant range covering consecutive local dates."""
    first = day_range(dates[0], timezone_name)
    last = day_range(dates[-1], timezone_name)
    return TimeRange(start=first.start, end=last.end)
