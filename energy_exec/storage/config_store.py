"""
Key/value settings storage (timezone, model choice).
"""

import json

from energy_exec import config, utils
from energy_exec.config import logger

TIMEZONE_KEY = "timezone"
MODEL_KEY = "model"


def _load_entries() -> dict:
    if not config.CONFIG_FILE.exists():
        return {}
    with open(config.CONFIG_FILE) as f:
        return json.load(f)


def _save_entries(entries: dict):
    config.CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    with open(config.CONFIG_FILE, 'w') as f:
        json.dump(entries, f, indent=2)


def get_config(key: str, default=None):
    """Return the stored JSON value for a key, or `default` if unset."""
    entry = _load_entries().get(key)
    if entry is None:
        return default
    return entry.get("value", default)


def set_config(key: str, value):
    """Store a JSON-serialisable value, replacing any previous value."""
    # Fail before touching the file if the value can't be stored
    json.dumps(value)

    entries = _load_entries()
    entries[key] = {
        "value": value,
        "updated_at": utils.now_utc().isoformat(),
    }
    _save_entries(entries)
    logger.info(f"Config set: {key}")


def delete_config(key: str):
    """Remove a key. Deleting a missing key is a no-op."""
    entries = _load_entries()
    if entries.pop(key, None) is not None:
        _save_entries(entries)
        logger.info(f"Config deleted: {key}")


def is_user_onboarded() -> bool:
    """The user is onboarded once a timezone has been stored."""
    timezone = get_config(TIMEZONE_KEY)
    return isinstance(timezone, str) and len(timezone) > 0
