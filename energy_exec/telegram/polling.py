"""
Long-polling runner for local use.

Same bot as the Modal webhook, fed from getUpdates instead.
"""

import os
import time

import requests

from energy_exec.bot.engine import PlannerBot
from energy_exec.config import logger
from energy_exec.interfaces import Collaborators
from energy_exec.llm.providers import generate_text
from energy_exec.telegram.client import delete_webhook, extract_message, get_updates, send_telegram
from energy_exec.utils import ensure_directories


def build_bot(bot_token: str) -> PlannerBot:
    """Wire a PlannerBot to Telegram and the text-generation gateway from env vars."""
    authorized = os.environ.get("AUTHORIZED_USER_ID")
    if not authorized:
        logger.warning("AUTHORIZED_USER_ID not set - every sender will be rejected")

    def send(chat_id, text, markdown=False):
        return send_telegram(text, bot_token, chat_id, markdown=markdown)

    return PlannerBot(
        Collaborators(send=send, generate=generate_text),
        authorized_user_id=int(authorized) if authorized else None,
    )


def run_polling(bot_token: str, poll_timeout: int = 30, max_updates: int = None):
    """
    Poll Telegram for messages and hand each one to the bot, in order.

    Runs until interrupted, or until `max_updates` updates were processed.
    """
    ensure_directories()
    delete_webhook(bot_token)
    bot = build_bot(bot_token)
    logger.info("Polling Telegram for updates...")

    offset = None
    processed = 0
    while max_updates is None or processed < max_updates:
        try:
            updates = get_updates(bot_token, offset=offset, timeout=poll_timeout)
        except requests.RequestException as e:
            logger.error(f"getUpdates failed: {e}")
            time.sleep(5)
            continue

        for update in updates:
            offset = update["update_id"] + 1
            processed += 1
            message = extract_message(update)
            if message is None:
                continue
            bot.handle_message(message)
