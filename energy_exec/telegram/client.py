"""
Telegram Bot API client with retry logic.
"""

from typing import Optional

import requests
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from energy_exec import config
from energy_exec.config import logger
from energy_exec.interfaces import IncomingMessage


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type((requests.RequestException, requests.Timeout)),
    reraise=True
)
def _send_telegram_chunk(bot_token: str, chat_id, text: str, parse_mode: str = None) -> requests.Response:
    """Send a single message chunk to Telegram with retry logic."""
    payload = {
        "chat_id": chat_id,
        "text": text,
        "disable_web_page_preview": True
    }
    if parse_mode:
        payload["parse_mode"] = parse_mode

    return requests.post(
        f"{config.TELEGRAM_API_BASE}/bot{bot_token}/sendMessage",
        json=payload,
        timeout=30
    )


def send_telegram(message: str, bot_token: str, chat_id, markdown: bool = False) -> Optional[int]:
    """
    Send a message to Telegram with automatic retry.

    Long messages are split into chunks. With `markdown`, each chunk is sent
    with Markdown parsing and re-sent as plain text if Telegram rejects the
    entities. Returns the id of the last message sent, or None on failure.
    """
    try:
        limit = config.TELEGRAM_MESSAGE_LIMIT
        chunks = [message[i:i + limit] for i in range(0, len(message), limit)] or [""]

        last_message_id = None
        for chunk in chunks:
            if markdown:
                response = _send_telegram_chunk(bot_token, chat_id, chunk, parse_mode="Markdown")
                if not response.ok and "can't parse entities" in response.text:
                    logger.info("Markdown parsing failed, sending as plain text...")
                    response = _send_telegram_chunk(bot_token, chat_id, chunk)
            else:
                response = _send_telegram_chunk(bot_token, chat_id, chunk)

            if not response.ok:
                logger.error(f"Telegram API error: {response.status_code} - {response.text}")
                return None

            last_message_id = response.json().get("result", {}).get("message_id")

        return last_message_id

    except Exception as e:
        logger.error(f"Telegram send error: {e}")
        return None


def get_updates(bot_token: str, offset: int = None, timeout: int = 30) -> list:
    """Long-poll Telegram for new updates."""
    params = {"timeout": timeout, "allowed_updates": '["message"]'}
    if offset is not None:
        params["offset"] = offset

    response = requests.get(
        f"{config.TELEGRAM_API_BASE}/bot{bot_token}/getUpdates",
        params=params,
        timeout=timeout + 10
    )
    response.raise_for_status()
    return response.json().get("result", [])


def delete_webhook(bot_token: str):
    """Remove any registered webhook so long polling can receive updates."""
    response = requests.post(
        f"{config.TELEGRAM_API_BASE}/bot{bot_token}/deleteWebhook",
        timeout=15
    )
    response.raise_for_status()


def extract_message(update: dict) -> Optional[IncomingMessage]:
    """Pull the text message out of a Telegram update, if it has one."""
    message = update.get("message") or {}
    text = message.get("text")
    if text is None:
        return None

    sender = message.get("from") or {}
    chat = message.get("chat") or {}
    return IncomingMessage(
        user_id=sender.get("id"),
        chat_id=chat.get("id", sender.get("id")),
        message_id=message.get("message_id", 0),
        timestamp=message.get("date", 0),
        text=text,
    )
