"""Telegram notification adapter — implements NotificationPort.

Wraps a telegram.Bot instance; owner ids are Telegram user ids, which
double as private chat ids.
"""

from __future__ import annotations

import logging

from telegram import Bot
from telegram.error import TelegramError

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Telegram implementation of NotificationPort."""

    def __init__(self, bot: Bot) -> None:
        self._bot = bot

    async def send_message(self, user_id: int, text: str) -> None:
        try:
            await self._bot.send_message(chat_id=user_id, text=text)
        except TelegramError as exc:
            logger.warning("Could not deliver message to user %d: %s", user_id, exc)
            raise
