from datetime import date, datetime, timedelta, timezone


def get_utc_now() -> datetime:
    """Get current datetime in UTC."""
    return datetime.now(timezone.utc)


def get_week_start(day: date) -> date:
    """Monday of the week containing the given day."""
    if isinstance(day, datetime):
        day = day.date()
    return day - timedelta(days=day.weekday())


def format_week_range(start: date) -> str:
    """
    Format the seven-day range beginning at start, e.g. "1/6/2025 - 1/12/2025".
    Month and day are not zero-padded.
    """
    if isinstance(start, datetime):
        start = start.date()
    end = start + timedelta(days=6)

    def _fmt(d: date) -> str:
        return f"{d.month}/{d.day}/{d.year}"

    return f"{_fmt(start)} - {_fmt(end)}"


def week_key_for(day: date) -> str:
    """Week key of the week containing the given day."""
    return format_week_range(get_week_start(day))
