"""
Daily log storage.

One JSON document per calendar date (UTC date key). Writes merge field by
field into whatever is already stored for that date.
"""

import json
from pathlib import Path
from typing import Optional

from energy_exec import config, utils
from energy_exec.config import logger

DAILY_LOG_FIELDS = (
    "body_battery_start",
    "body_battery_end",
    "sleep_notes",
    "mood",
    "priorities",
    "appointments",
    "generated_plan",
    "reflections",
    "notes_for_tomorrow",
)


def _ensure_daily_logs_dir():
    """Ensure daily logs directory exists."""
    config.DAILY_LOGS_DIR.mkdir(parents=True, exist_ok=True)


def _daily_log_file(date: str) -> Path:
    if not utils.is_valid_date_key(date):
        raise ValueError(f"Invalid date key: {date!r} (expected YYYY-MM-DD)")
    return config.DAILY_LOGS_DIR / f"{date}.json"


def _empty_daily_log(date: str) -> dict:
    row = {"date": date}
    row.update({field: None for field in DAILY_LOG_FIELDS})
    row["updated_at"] = None
    return row


def get_daily_log(date: str) -> Optional[dict]:
    """Load the daily log for a date, or None if nothing was written yet."""
    log_file = _daily_log_file(date)
    if not log_file.exists():
        return None

    with open(log_file) as f:
        stored = json.load(f)

    # Fill in fields added after the file was written
    row = _empty_daily_log(date)
    row.update(stored)
    row["date"] = date
    return row


def upsert_daily_log(date: str, fields: dict) -> dict:
    """
    Create or update the daily log for a date.

    Keys present in `fields` overwrite the stored values (an explicit None
    clears a field); keys not present are left as they are. `updated_at` is
    refreshed on every call. Returns the full resulting row.
    """
    unknown = set(fields) - set(DAILY_LOG_FIELDS)
    if unknown:
        raise ValueError(f"Unknown daily log fields: {', '.join(sorted(unknown))}")

    _ensure_daily_logs_dir()
    log_file = _daily_log_file(date)

    row = get_daily_log(date)
    created = row is None
    if created:
        row = _empty_daily_log(date)

    row.update(fields)
    row["updated_at"] = utils.now_utc().isoformat()

    # Serialise first; opening with 'w' truncates the file
    text = json.dumps(row, indent=2)
    with open(log_file, 'w') as f:
        f.write(text)

    action = "Created" if created else "Updated"
    logger.info(f"{action} daily log {date} ({', '.join(sorted(fields)) or 'no fields'})")
    return row


def list_recent_daily_logs(limit: int) -> list:
    """Most recent daily logs first, at most `limit` of them."""
    if limit <= 0:
        return []

    _ensure_daily_logs_dir()

    dates = sorted(
        (p.stem for p in config.DAILY_LOGS_DIR.glob("*.json") if utils.is_valid_date_key(p.stem)),
        reverse=True,
    )

    logs = []
    for date in dates[:limit]:
        row = get_daily_log(date)
        if row is not None:
            logs.append(row)
    return logs
