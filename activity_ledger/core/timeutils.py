import calendar
from datetime import UTC, date, datetime, time


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    Naive values are taken to already be UTC, which is how SQLite hands back
    timestamps written by the ledger.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_date_string(value: datetime) -> str:
    return ensure_utc(value).date().isoformat()


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max, tzinfo=UTC)


def subtract_months(day: date, months: int) -> date:
    """Step back whole calendar months, clamping to the last valid day."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def from_platform_timestamp(ts: str | float) -> datetime:
    """Convert a ``seconds.micros`` chat timestamp to an aware datetime."""
    return datetime.fromtimestamp(float(ts), tz=UTC)
