"""Notification port — pushes short messages to an owner.

The achievement engine announces unlocks through this protocol; it never
talks to a messaging provider directly.
"""

from __future__ import annotations

from typing import Protocol


class NotificationPort(Protocol):
    """Outbound messages to a single owner."""

    async def send_message(self, user_id: int, text: str) -> None: ...


def format_unlock_message(icon: str, name: str, description: str) -> str:
    """Text of the "achievement unlocked" announcement."""
    return f"🎉 Achievement Unlocked!\n{icon} {name} - {description}"
