"""Run the bot locally with long polling: python -m energy_exec"""

import os
import sys

from energy_exec.config import logger
from energy_exec.telegram.polling import run_polling


def main():
    bot_token = os.environ.get("TELEGRAM_BOT_TOKEN")
    if not bot_token:
        logger.error("TELEGRAM_BOT_TOKEN not set")
        sys.exit(1)

    try:
        run_polling(bot_token)
    except KeyboardInterrupt:
        logger.info("Stopped")


if __name__ == "__main__":
    main()
