"""
FocusDay — Entry Point.

`python main.py` starts the Telegram bot that fronts the work timer,
daily tasks, streaks and achievements. Settings come from `.env`.
"""

import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from focusday.bot.telegram_bot import main as run_bot

if __name__ == "__main__":
    run_bot()
