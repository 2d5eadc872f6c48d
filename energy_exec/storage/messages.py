"""
Chat message log (append-only audit trail of everything sent and received).
"""

import json
from datetime import datetime, timedelta, timezone
from typing import Optional

from energy_exec import config, utils
from energy_exec.config import logger

DIRECTIONS = ("incoming", "outgoing")


def _load_messages() -> list:
    """Read all logged messages in insertion order, skipping corrupt lines."""
    if not config.MESSAGES_FILE.exists():
        return []

    messages = []
    with open(config.MESSAGES_FILE) as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if line:
                try:
                    messages.append(json.loads(line))
                except json.JSONDecodeError as e:
                    logger.warning(f"Skipped corrupt line {line_num} in {config.MESSAGES_FILE}: {e}")
    return messages


def log_message(telegram_message_id: int, direction: str, content: str) -> dict:
    """Append a message to the log and return the stored entry."""
    if direction not in DIRECTIONS:
        raise ValueError(f"direction must be one of {DIRECTIONS}, got {direction!r}")

    config.MESSAGES_FILE.parent.mkdir(parents=True, exist_ok=True)

    existing = _load_messages()
    next_id = max((m.get("id", 0) for m in existing), default=0) + 1

    entry = {
        "id": next_id,
        "telegram_message_id": telegram_message_id,
        "direction": direction,
        "content": content,
        "created_at": utils.now_utc().isoformat(),
    }

    with open(config.MESSAGES_FILE, 'a') as f:
        f.write(json.dumps(entry) + "\n")

    return entry


def get_message_by_telegram_id(telegram_message_id: int) -> Optional[dict]:
    """First logged message with the given Telegram message id."""
    for message in _load_messages():
        if message.get("telegram_message_id") == telegram_message_id:
            return message
    return None


def get_recent_messages(limit: int) -> list:
    """Most recent messages first."""
    if limit <= 0:
        return []
    messages = sorted(_load_messages(), key=lambda m: (m.get("created_at", ""), m.get("id", 0)), reverse=True)
    return messages[:limit]


def get_messages_by_date(date: str) -> list:
    """Messages created on a UTC calendar date (YYYY-MM-DD), most recent first."""
    if not utils.is_valid_date_key(date):
        raise ValueError(f"Invalid date key: {date!r} (expected YYYY-MM-DD)")

    start = datetime.strptime(date, utils.DATE_KEY_FORMAT).replace(tzinfo=timezone.utc)
    end = start + timedelta(days=1)

    matching = []
    for message in _load_messages():
        try:
            created = datetime.fromisoformat(message["created_at"])
        except (KeyError, ValueError):
            continue
        if start <= created < end:
            matching.append(message)

    matching.sort(key=lambda m: (m["created_at"], m.get("id", 0)), reverse=True)
    return matching
