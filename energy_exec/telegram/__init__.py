"""Telegram client module."""

from energy_exec.telegram.client import (
    send_telegram,
    get_updates,
    delete_webhook,
    extract_message,
)
from energy_exec.telegram.polling import (
    build_bot,
    run_polling,
)

__all__ = [
    "send_telegram",
    "get_updates",
    "delete_webhook",
    "extract_message",
    "build_bot",
    "run_polling",
]
