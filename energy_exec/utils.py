"""
Utility functions for Energy Exec.
"""

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from energy_exec import config

DATE_KEY_FORMAT = "%Y-%m-%d"


def now_utc() -> datetime:
    """Get current time in UTC."""
    return datetime.now(timezone.utc)


def today_key(now: datetime = None) -> str:
    """Date key (UTC YYYY-MM-DD) for the given instant, defaulting to now."""
    now = now or now_utc()
    return now.astimezone(timezone.utc).strftime(DATE_KEY_FORMAT)


def is_valid_date_key(value: str) -> bool:
    """Check that value is a real calendar date in YYYY-MM-DD form."""
    try:
        return datetime.strptime(value, DATE_KEY_FORMAT).strftime(DATE_KEY_FORMAT) == value
    except (TypeError, ValueError):
        return False


def is_valid_timezone(name: str) -> bool:
    """
    Check a free-text timezone identifier.

    Valid when it is non-empty, resolves to an IANA zone, and a timestamp can
    be formatted in it.
    """
    if not name or not isinstance(name, str) or not name.strip():
        return False
    try:
        format_in_timezone(now_utc(), name.strip(), "%Y-%m-%d %H:%M")
        return True
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return False


def resolve_timezone(name: Optional[str]) -> ZoneInfo:
    """Return the user's zone, falling back to the default for missing or bad names."""
    for candidate in (name, config.DEFAULT_TIMEZONE, "UTC"):
        if not candidate:
            continue
        try:
            return ZoneInfo(candidate)
        except (ZoneInfoNotFoundError, ValueError, OSError):
            config.logger.warning(f"Unknown timezone {candidate!r}, falling back")
    return ZoneInfo("UTC")


def format_in_timezone(moment: datetime, zone_name: str, fmt: str) -> str:
    """Format an aware datetime in the named zone. Raises for unknown zones."""
    return moment.astimezone(ZoneInfo(zone_name)).strftime(fmt)


def display_date(moment: datetime, zone_name: Optional[str]) -> str:
    """Long-form local date, e.g. 'Thursday, January 15, 2026'."""
    local = moment.astimezone(resolve_timezone(zone_name))
    return f"{local.strftime('%A, %B')} {local.day}, {local.year}"


def ensure_directories():
    """Create data directories if they don't exist."""
    config.DATA_DIR.mkdir(parents=True, exist_ok=True)
    config.DAILY_LOGS_DIR.mkdir(parents=True, exist_ok=True)
