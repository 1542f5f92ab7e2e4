"""Small helpers for users' names and the time left until the next day."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


def get_full_name(first_name: str, last_name: str | None = None) -> str:
    """Join the first and the last name, if there is a last name."""
    if last_name is None:
        return first_name
    return f"{first_name} {last_name}"


def time_till_next_day(now: datetime | None = None) -> str:
    """Describe the hours and minutes left until the next midnight in UTC."""
    if now is None:
        now = datetime.now(timezone.utc)
    tomorrow = (now + timedelta(days=1)).replace(hour=0, minute=0, second=0)
    time_left = tomorrow - now
    total_seconds = int(time_left.total_seconds())
    hours = total_seconds // 3600
    minutes = total_seconds // 60 - hours * 60
    return f"<b>{hours}</b>h <b>{minutes}</b>m."