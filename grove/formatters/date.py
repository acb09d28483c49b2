"""Date and time formatting utilities."""

from datetime import datetime, timezone
from typing import Optional


def format_date(date: Optional[datetime]) -> str:
    """
    Format a datetime to a YYYY-MM-DD string.

    Args:
        date: Datetime, or None when unknown

    Returns:
        Formatted date string, "-" when unknown
    """
    if date is None:
        return "-"
    return date.strftime("%Y-%m-%d")


def format_age(last_activity: Optional[datetime], now: Optional[datetime] = None) -> str:
    """
    Format the time since ``last_activity`` compactly.

    Args:
        last_activity: Time of the last commit
        now: Reference time (defaults to the current UTC time)

    Returns:
        "today", "3d", "5w", "14mo", or "unknown"
    """
    if last_activity is None or last_activity.timestamp() <= 0:
        return "unknown"

    now = now or datetime.now(timezone.utc)
    if last_activity.tzinfo is None:
        last_activity = last_activity.replace(tzinfo=timezone.utc)

    days = (now - last_activity).days
    if days < 1:
        return "today"
    if days < 14:
        return f"{days}d"
    if days < 60:
        return f"{days // 7}w"
    return f"{days // 30}mo"


def format_duration(seconds: float) -> str:
    """Format an elapsed time, e.g. "850ms" or "2.4s"."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    return f"{seconds:.1f}s"
