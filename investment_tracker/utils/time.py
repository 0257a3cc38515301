"""Time utilities for portfolio timestamps."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from investment_tracker.config import settings


def local_tz() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def now_utc_iso() -> str:
    """
    Current UTC time as ISO-8601 with millisecond precision and a Z suffix.

    Used for the portfolio-level ``lastUpdated`` stamp.
    """
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def today_iso() -> str:
    """Today's date (YYYY-MM-DD) in the UTC calendar, as stamped on refreshed stocks."""
    return datetime.now(timezone.utc).date().isoformat()


def today_display() -> str:
    """Today's local date as dd/mm/yyyy, the initial navDate of a new fund."""
    return datetime.now(local_tz()).strftime("%d/%m/%Y")
