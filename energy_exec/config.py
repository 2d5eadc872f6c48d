"""
Configuration constants and logging setup for Energy Exec.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv


def _load_local_env():
    """Load .env file for local development (skipped on Modal)."""
    env_file = Path(__file__).parent.parent / ".env"
    if env_file.exists():
        load_dotenv(env_file)


_load_local_env()

# Logging configuration
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("energy_exec")

# Timezone used when the user has not configured one
DEFAULT_TIMEZONE = os.environ.get("DEFAULT_TIMEZONE", "UTC")

# Data locations (Modal volume paths)
DATA_DIR = Path(os.environ.get("ENERGY_EXEC_DATA_DIR", "/data"))
DAILY_LOGS_DIR = DATA_DIR / "daily_logs"
CONFIG_FILE = DATA_DIR / "config.json"
MESSAGES_FILE = DATA_DIR / "messages.jsonl"

# Telegram
TELEGRAM_API_BASE = "https://api.telegram.org"
TELEGRAM_MESSAGE_LIMIT = 4000

# Text generation gateway
OPENCODE_ZEN_BASE_URL = "https://opencode.ai/zen/v1"
GENERATION_TIMEOUT_SECONDS = 120

# Models
MODEL_BIG_PICKLE = "big-pickle"
MODEL_GEMINI_3_PRO = "gemini-3-pro"
DEFAULT_MODEL = MODEL_BIG_PICKLE
SUPPORTED_MODELS = (MODEL_BIG_PICKLE, MODEL_GEMINI_3_PRO)
MODEL_DISPLAY_NAMES = {
    MODEL_BIG_PICKLE: "big-pickle (free)",
    MODEL_GEMINI_3_PRO: "gemini-3-pro",
}

# How many earlier daily logs the chat path sees
CHAT_HISTORY_DAYS = 3
