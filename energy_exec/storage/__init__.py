"""Storage modules for daily logs, settings, and the message log."""

from energy_exec.storage.daily_logs import (
    DAILY_LOG_FIELDS,
    get_daily_log,
    upsert_daily_log,
    list_recent_daily_logs,
)
from energy_exec.storage.config_store import (
    TIMEZONE_KEY,
    MODEL_KEY,
    get_config,
    set_config,
    delete_config,
    is_user_onboarded,
)
from energy_exec.storage.messages import (
    log_message,
    get_message_by_telegram_id,
    get_recent_messages,
    get_messages_by_date,
)

__all__ = [
    # Daily logs
    "DAILY_LOG_FIELDS",
    "get_daily_log",
    "upsert_daily_log",
    "list_recent_daily_logs",
    # Config
    "TIMEZONE_KEY",
    "MODEL_KEY",
    "get_config",
    "set_config",
    "delete_config",
    "is_user_onboarded",
    # Messages
    "log_message",
    "get_message_by_telegram_id",
    "get_recent_messages",
    "get_messages_by_date",
]
