"""Record store port — abstract interface for day-record persistence.

Core modules depend on this protocol, never on a specific backend.
Every method is scoped to a single owner (``user_id``).
"""

from __future__ import annotations

from typing import Protocol

from focusday.data.models import (
    DailyGoal,
    DayRecord,
    StickyNote,
    Task,
    UnlockedAchievement,
    WorkSession,
)


class StoreError(Exception):
    """Raised when a record store operation fails."""


class UnlockConflictError(StoreError):
    """The (owner, achievement) unlock already exists.

    Raised on the store-level uniqueness constraint. Callers evaluating
    achievements treat it as "already unlocked", not as a failure.
    """


class RecordStorePort(Protocol):
    """Abstract record store used by core modules."""

    async def fetch_range(
        self, user_id: int, dates: list[str]
    ) -> dict[str, DayRecord]: ...

    async def fetch_all(self, user_id: int) -> dict[str, DayRecord]: ...

    async def add_task(self, user_id: int, date: str, text: str) -> Task: ...

    async def toggle_task(self, user_id: int, task_id: int) -> Task: ...

    async def delete_task(self, user_id: int, task_id: int) -> bool: ...

    async def start_session(
        self, user_id: int, date: str, started_at: str
    ) -> WorkSession: ...

    async def stop_session(
        self, user_id: int, date: str, ended_at: str, elapsed: int
    ) -> WorkSession: ...

    async def get_goal(self, user_id: int) -> DailyGoal | None: ...

    async def upsert_goal(self, user_id: int, minutes: int) -> DailyGoal: ...

    async def list_unlocked(self, user_id: int) -> list[UnlockedAchievement]: ...

    async def insert_unlock(
        self, user_id: int, achievement_id: str
    ) -> UnlockedAchievement: ...

    async def list_notes(self, user_id: int) -> list[StickyNote]: ...

    async def add_note(
        self, user_id: int, content: str, title: str | None, color: str
    ) -> StickyNote: ...

    async def update_note(
        self, user_id: int, note_id: int, content: str, title: str | None, color: str
    ) -> StickyNote: ...

    async def delete_note(self, user_id: int, note_id: int) -> bool: ...
