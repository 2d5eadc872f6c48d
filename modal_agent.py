"""
Energy Exec
Energy-aware daily planning bot, served as a Telegram webhook on Modal.
Text generation goes through the OpenCode Zen gateway.

This is the Modal entrypoint. All logic is in the energy_exec package.
"""

import modal
import os
import json

# ============================================================================
# MODAL CONFIGURATION
# ============================================================================

image = (
    modal.Image.debian_slim(python_version="3.11")
    .pip_install(
        "requests>=2.28.0",
        "fastapi>=0.100.0",
        "tenacity>=8.2.0",
        "python-dotenv>=1.0.0",
        "tzdata>=2024.1",
    )
    .add_local_dir("prompts", "/root/prompts")
    .add_local_dir("energy_exec", "/root/energy_exec")
)

app = modal.App("energy-exec", image=image)

# Persistent volume for daily logs, settings and the message log
volume = modal.Volume.from_name("energy-exec-data", create_if_missing=True)

from energy_exec.config import (
    DAILY_LOGS_DIR,
    CONFIG_FILE,
    logger,
)

from energy_exec.utils import ensure_directories

from energy_exec.storage import (
    list_recent_daily_logs,
    get_recent_messages,
)

from energy_exec.telegram.client import extract_message
from energy_exec.telegram.polling import build_bot

# ============================================================================
# HELPER FUNCTION FOR VOLUME RELOAD
# ============================================================================

def _reload_volume():
    """Reload volume to see latest commits from other containers."""
    try:
        volume.reload()
    except RuntimeError:
        pass  # Running locally, not in Modal


# Conversation sessions live in this process, so the webhook runs in a single
# warm container and keeps one bot instance around.
_bot = None


def _get_bot():
    global _bot
    if _bot is None:
        _bot = build_bot(os.environ["TELEGRAM_BOT_TOKEN"])
    return _bot


# ============================================================================
# UTILITIES
# ============================================================================

@app.function(volumes={"/data": volume})
def view_history(days: int = 7, messages: int = 20):
    """View recent daily logs, settings, and the message log."""
    ensure_directories()

    result = {"config": None, "daily_logs": [], "messages": []}

    if CONFIG_FILE.exists():
        with open(CONFIG_FILE) as f:
            result["config"] = json.load(f)
        logger.info("\nSettings:")
        for key, entry in result["config"].items():
            logger.info(f"  {key}: {entry.get('value')}")

    logger.info(f"\nRecent Daily Logs (last {days}) in {DAILY_LOGS_DIR}:")
    for daily_log in list_recent_daily_logs(days):
        battery = f"{daily_log.get('body_battery_start')} -> {daily_log.get('body_battery_end')}"
        plan = "plan" if daily_log.get("generated_plan") else "no plan"
        logger.info(f"  - {daily_log['date']}: battery {battery}, {plan}")
        result["daily_logs"].append(daily_log)

    logger.info(f"\nRecent Messages (last {messages}):")
    for entry in get_recent_messages(messages):
        logger.info(f"  [{entry['direction']}] {entry['content'][:80]}")
        result["messages"].append(entry)

    return result


# ============================================================================
# TELEGRAM WEBHOOK
# ============================================================================

from fastapi import Request
from fastapi.responses import JSONResponse


@app.function(
    secrets=[
        modal.Secret.from_name("telegram"),
        modal.Secret.from_name("opencode-zen"),
    ],
    volumes={"/data": volume},
    timeout=300,
    min_containers=1,
    max_containers=1,
)
@modal.fastapi_endpoint(method="POST")
async def telegram_webhook(request: Request):
    """Telegram webhook endpoint for receiving messages."""
    # Validate webhook secret - MANDATORY for security
    webhook_secret = os.environ.get("TELEGRAM_WEBHOOK_SECRET")
    if not webhook_secret:
        logger.error("TELEGRAM_WEBHOOK_SECRET not configured - rejecting request")
        return JSONResponse({"ok": False, "error": "server misconfigured"}, status_code=500)

    received_secret = request.headers.get("X-Telegram-Bot-Api-Secret-Token", "")
    if received_secret != webhook_secret:
        logger.warning("Webhook auth failed: invalid secret token")
        return JSONResponse({"ok": False, "error": "unauthorized"}, status_code=401)

    body = await request.json()
    message = extract_message(body)
    if message is None:
        return {"ok": True}

    _reload_volume()
    ensure_directories()

    _get_bot().handle_message(message)
    volume.commit()

    return {"ok": True}


@app.function()
@modal.fastapi_endpoint(method="GET")
def health():
    """Liveness check."""
    return {"status": "ok"}


@app.local_entrypoint()
def main():
    """CLI entrypoint for manual runs."""
    logger.info("Fetching recent history...")
    result = view_history.remote()
    logger.info(f"Daily logs: {len(result['daily_logs'])}, messages: {len(result['messages'])}")
