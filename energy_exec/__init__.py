"""
Energy Exec Package

Energy-aware daily planning bot for Telegram. Re-exports the main entry
points; modal_agent.py and the polling runner import from here.
"""

# Config and constants
from energy_exec.config import (
    DATA_DIR,
    DAILY_LOGS_DIR,
    CONFIG_FILE,
    MESSAGES_FILE,
    DEFAULT_MODEL,
    SUPPORTED_MODELS,
    logger,
)

# Utilities
from energy_exec.utils import (
    now_utc,
    today_key,
    ensure_directories,
)

# Storage
from energy_exec.storage import (
    get_daily_log,
    upsert_daily_log,
    list_recent_daily_logs,
    get_config,
    set_config,
    delete_config,
    is_user_onboarded,
    log_message,
    get_recent_messages,
)

# Collaborators
from energy_exec.interfaces import (
    IncomingMessage,
    Collaborators,
)

# Bot
from energy_exec.bot.engine import PlannerBot

__all__ = [
    # Config
    "DATA_DIR",
    "DAILY_LOGS_DIR",
    "CONFIG_FILE",
    "MESSAGES_FILE",
    "DEFAULT_MODEL",
    "SUPPORTED_MODELS",
    "logger",
    # Utils
    "now_utc",
    "today_key",
    "ensure_directories",
    # Storage
    "get_daily_log",
    "upsert_daily_log",
    "list_recent_daily_logs",
    "get_config",
    "set_config",
    "delete_config",
    "is_user_onboarded",
    "log_message",
    "get_recent_messages",
    # Interfaces
    "IncomingMessage",
    "Collaborators",
    # Bot
    "PlannerBot",
]
