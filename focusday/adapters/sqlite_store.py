"""SQLite record store adapter — implements RecordStorePort.

Uses the synchronous table classes from ``focusday.data.db`` wrapped with
asyncio.to_thread for async compatibility. Every sqlite3 failure surfaces
as StoreError; a duplicate achievement unlock surfaces as
UnlockConflictError.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from typing import Any, Callable, TypeVar

from focusday.data.db import AchievementDB, GoalDB, NoteDB, SessionDB, TaskDB
from focusday.data.models import (
    DailyGoal,
    DayRecord,
    StickyNote,
    Task,
    UnlockedAchievement,
    WorkSession,
)
from focusday.ports.store_port import StoreError, UnlockConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _group_by_date(
    tasks: list[Task], sessions: list[WorkSession],
) -> dict[str, DayRecord]:
    """Combine task and session rows into one DayRecord per date."""
    records: dict[str, DayRecord] = {}
    for session in sessions:
        records[session.date] = DayRecord(date=session.date, work_session=session)
    for task in tasks:
        record = records.get(task.date)
        if record is None:
            record = records[task.date] = DayRecord(date=task.date)
        record.tasks.append(task)
    return dict(sorted(records.items()))


class SQLiteRecordStore:
    """SQLite implementation of RecordStorePort."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from focusday.config import settings
            db_path = settings.DATABASE_PATH

        try:
            self._tasks = TaskDB(db_path)
            self._sessions = SessionDB(db_path)
            self._goals = GoalDB(db_path)
            self._achievements = AchievementDB(db_path)
            self._notes = NoteDB(db_path)
        except sqlite3.Error as exc:
            raise StoreError(f"Could not open database at {db_path}: {exc}") from exc

    async def _run(self, op: str, func: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.to_thread(func, *args)
        except sqlite3.Error as exc:
            logger.error("Store error during %s: %s", op, exc)
            raise StoreError(f"{op} failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def fetch_range(self, user_id: int, dates: list[str]) -> dict[str, DayRecord]:
        """Day records for the given dates; dates without activity are omitted."""
        if not dates:
            return {}
        tasks = await self._run("fetch_range", self._tasks.list_tasks, user_id, dates)
        sessions = await self._run("fetch_range", self._sessions.list_sessions, user_id, dates)
        return _group_by_date(tasks, sessions)

    async def fetch_all(self, user_id: int) -> dict[str, DayRecord]:
        tasks = await self._run("fetch_all", self._tasks.list_tasks, user_id)
        sessions = await self._run("fetch_all", self._sessions.list_sessions, user_id)
        return _group_by_date(tasks, sessions)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def add_task(self, user_id: int, date: str, text: str) -> Task:
        return await self._run("add_task", self._tasks.add_task, user_id, date, text)

    async def toggle_task(self, user_id: int, task_id: int) -> Task:
        try:
            return await self._run("toggle_task", self._tasks.toggle_task, user_id, task_id)
        except ValueError as exc:
            raise StoreError(str(exc)) from exc

    async def delete_task(self, user_id: int, task_id: int) -> bool:
        return await self._run("delete_task", self._tasks.delete_task, user_id, task_id)

    # ------------------------------------------------------------------
    # Work sessions
    # ------------------------------------------------------------------

    async def start_session(self, user_id: int, date: str, started_at: str) -> WorkSession:
        return await self._run(
            "start_session", self._sessions.start_session, user_id, date, started_at,
        )

    async def stop_session(
        self, user_id: int, date: str, ended_at: str, elapsed: int,
    ) -> WorkSession:
        session = await self._run(
            "stop_session", self._sessions.stop_session, user_id, date, ended_at, elapsed,
        )
        if session is None:
            raise StoreError(f"No work session for user {user_id} on {date}")
        return session

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------

    async def get_goal(self, user_id: int) -> DailyGoal | None:
        return await self._run("get_goal", self._goals.get_goal, user_id)

    async def upsert_goal(self, user_id: int, minutes: int) -> DailyGoal:
        return await self._run("upsert_goal", self._goals.upsert_goal, user_id, minutes)

    # ------------------------------------------------------------------
    # Sticky notes
    # ------------------------------------------------------------------

    async def list_notes(self, user_id: int) -> list[StickyNote]:
        return await self._run("list_notes", self._notes.list_notes, user_id)

    async def add_note(
        self, user_id: int, content: str, title: str | None = None, color: str = "yellow",
    ) -> StickyNote:
        return await self._run("add_note", self._notes.add_note, user_id, content, title, color)

    async def update_note(
        self, user_id: int, note_id: int, content: str,
        title: str | None = None, color: str = "yellow",
    ) -> StickyNote:
        note = await self._run(
            "update_note", self._notes.update_note, user_id, note_id, content, title, color,
        )
        if note is None:
            raise StoreError(f"Note {note_id} not found")
        return note

    async def delete_note(self, user_id: int, note_id: int) -> bool:
        return await self._run("delete_note", self._notes.delete_note, user_id, note_id)

    # ------------------------------------------------------------------
    # Achievements
    # ------------------------------------------------------------------

    async def list_unlocked(self, user_id: int) -> list[UnlockedAchievement]:
        return await self._run("list_unlocked", self._achievements.list_unlocked, user_id)

    async def insert_unlock(self, user_id: int, achievement_id: str) -> UnlockedAchievement:
        try:
            return await asyncio.to_thread(
                self._achievements.insert_unlock, user_id, achievement_id,
            )
        except sqlite3.IntegrityError as exc:
            raise UnlockConflictError(
                f"Achievement {achievement_id!r} already unlocked for user {user_id}"
            ) from exc
        except sqlite3.Error as exc:
            logger.error("Store error during insert_unlock: %s", exc)
            raise StoreError(f"insert_unlock failed: {exc}") from exc
