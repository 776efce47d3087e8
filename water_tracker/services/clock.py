"""Calendar helpers for the configured usage time zone."""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from water_tracker.config import get_settings


def usage_timezone() -> ZoneInfo:
    """Time zone that defines the boundaries of a usage day."""
    return ZoneInfo(get_settings().rollover.timezone)


def local_now() -> datetime:
    """Current aware time in the usage time zone."""
    return datetime.now(usage_timezone())


def local_today() -> date:
    """Current calendar date in the usage time zone."""
    return local_now().date()
