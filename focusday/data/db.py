"""
FocusDay — SQLite tables.

One class per record kind: tasks, work sessions, daily goals, unlocked
achievements and sticky notes. All rows are owner-scoped by ``user_id``.
These classes are synchronous; ``focusday.adapters.sqlite_store`` wraps
them for the async core.
"""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path

from focusday.data.models import (
    DailyGoal,
    StickyNote,
    Task,
    UnlockedAchievement,
    WorkSession,
)

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _date_filter(dates: list[str] | None) -> tuple[str, list]:
    if dates is None:
        return "", []
    placeholders = ", ".join("?" for _ in dates)
    return f" AND date IN ({placeholders})", list(dates)


class _SQLiteTable(ABC):
    """Shared connection handling for the table classes below."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from focusday.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    @abstractmethod
    def _init_db(self) -> None:
        """Create the table and apply schema migrations."""


class TaskDB(_SQLiteTable):
    """SQLite-backed storage for daily tasks."""

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS tasks (
                    id          INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id     INTEGER NOT NULL,
                    date        TEXT    NOT NULL,
                    text        TEXT    NOT NULL,
                    completed   INTEGER NOT NULL DEFAULT 0,
                    created_at  TEXT    NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_tasks_user_date ON tasks (user_id, date)"
            )
        logger.debug("Tasks table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            text=row["text"],
            completed=bool(row["completed"]),
            created_at=row["created_at"],
            date=row["date"],
        )

    def add_task(
        self, user_id: int, date: str, text: str, created_at: str | None = None,
    ) -> Task:
        """Insert a new, uncompleted task for ``date``."""
        if created_at is None:
            created_at = _now_iso()

        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT INTO tasks (user_id, date, text, completed, created_at) VALUES (?, ?, ?, 0, ?)",
                (user_id, date, text, created_at),
            )
            task_id = cursor.lastrowid

        logger.info("Task added: #%d for user %d on %s", task_id, user_id, date)
        return Task(id=task_id, text=text, completed=False, created_at=created_at, date=date)

    def toggle_task(self, user_id: int, task_id: int) -> Task:
        """Flip ``completed`` in one statement and return the updated task."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE tasks SET completed = 1 - completed WHERE id = ? AND user_id = ?",
                (task_id, user_id),
            )
            if cursor.rowcount == 0:
                raise ValueError(f"Task {task_id} not found")
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()

        task = self._row_to_task(row)
        logger.info("Task #%d toggled to completed=%s", task_id, task.completed)
        return task

    def delete_task(self, user_id: int, task_id: int) -> bool:
        """Permanently delete a task."""
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM tasks WHERE id = ? AND user_id = ?", (task_id, user_id),
            )
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Task #%d deleted", task_id)
        return deleted

    def list_tasks(self, user_id: int, dates: list[str] | None = None) -> list[Task]:
        """Tasks for an owner in creation order, optionally limited to dates."""
        clause, params = _date_filter(dates)
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM tasks WHERE user_id = ?{clause} ORDER BY created_at, id",
                [user_id, *params],
            ).fetchall()
        return [self._row_to_task(r) for r in rows]


class SessionDB(_SQLiteTable):
    """SQLite-backed storage for work sessions, one row per (user, date)."""

    _SCHEMA = """
        CREATE TABLE IF NOT EXISTS work_sessions (
            id             INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id        INTEGER NOT NULL,
            date           TEXT    NOT NULL,
            start_time     TEXT,
            end_time       TEXT,
            total_seconds  INTEGER NOT NULL DEFAULT 0,
            is_running     INTEGER NOT NULL DEFAULT 0,
            UNIQUE (user_id, date)
        )
    """

    def _init_db(self) -> None:
        """Create the work_sessions table if it doesn't exist, and migrate schema."""
        with self._connect() as conn:
            conn.execute(self._SCHEMA)
            existing_cols = {
                row[1] for row in conn.execute("PRAGMA table_info(work_sessions)").fetchall()
            }
            if "total_minutes" in existing_cols:
                self._migrate_minutes(conn, existing_cols)
        logger.debug("Work sessions table initialized at %s", self._db_path)

    def _migrate_minutes(self, conn: sqlite3.Connection, existing_cols: set[str]) -> None:
        """Rebuild a table that stored whole minutes into the seconds schema.

        The old ``total_minutes`` column is dropped along with whatever
        constraints it carried.
        """
        seconds = "total_seconds" if "total_seconds" in existing_cols else "total_minutes * 60"
        start_time = "start_time" if "start_time" in existing_cols else "NULL"
        end_time = "end_time" if "end_time" in existing_cols else "NULL"
        is_running = "is_running" if "is_running" in existing_cols else "0"

        conn.execute("ALTER TABLE work_sessions RENAME TO work_sessions_old")
        conn.execute(self._SCHEMA)
        conn.execute(f"""
            INSERT INTO work_sessions
                (user_id, date, start_time, end_time, total_seconds, is_running)
            SELECT user_id, date, {start_time}, {end_time}, {seconds}, {is_running}
            FROM work_sessions_old
        """)
        conn.execute("DROP TABLE work_sessions_old")
        logger.info("Migrated work_sessions.total_minutes to total_seconds")

    @staticmethod
    def _row_to_session(row: sqlite3.Row) -> WorkSession:
        return WorkSession(
            date=row["date"],
            start_time=row["start_time"],
            end_time=row["end_time"],
            duration=row["total_seconds"],
            is_active=bool(row["is_running"]),
        )

    def list_sessions(
        self, user_id: int, dates: list[str] | None = None,
    ) -> list[WorkSession]:
        clause, params = _date_filter(dates)
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM work_sessions WHERE user_id = ?{clause} ORDER BY date",
                [user_id, *params],
            ).fetchall()
        return [self._row_to_session(r) for r in rows]

    def start_session(self, user_id: int, date: str, started_at: str) -> WorkSession:
        """Open the timer for ``date``, creating the row if absent."""
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO work_sessions
                    (user_id, date, start_time, total_seconds, is_running)
                VALUES (?, ?, ?, 0, 1)
                ON CONFLICT (user_id, date) DO UPDATE SET
                    start_time = excluded.start_time,
                    is_running = 1
                """,
                (user_id, date, started_at),
            )
            row = conn.execute(
                "SELECT * FROM work_sessions WHERE user_id = ? AND date = ?",
                (user_id, date),
            ).fetchone()

        logger.info("Session started for user %d on %s", user_id, date)
        return self._row_to_session(row)

    def stop_session(
        self, user_id: int, date: str, ended_at: str, elapsed: int,
    ) -> WorkSession | None:
        """Close a running timer, adding ``elapsed`` seconds to the total.

        A row that is not running is left untouched. Returns None when no
        row exists for ``date``.
        """
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE work_sessions SET
                    total_seconds = total_seconds + ?,
                    end_time      = ?,
                    start_time    = NULL,
                    is_running    = 0
                WHERE user_id = ? AND date = ? AND is_running = 1
                """,
                (max(0, elapsed), ended_at, user_id, date),
            )
            row = conn.execute(
                "SELECT * FROM work_sessions WHERE user_id = ? AND date = ?",
                (user_id, date),
            ).fetchone()

        if cursor.rowcount > 0:
            logger.info("Session stopped for user %d on %s (+%ds)", user_id, date, elapsed)
        if row is None:
            return None
        return self._row_to_session(row)


class GoalDB(_SQLiteTable):
    """SQLite-backed storage for the per-owner daily focus goal."""

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS user_goals (
                    user_id              INTEGER PRIMARY KEY,
                    daily_focus_minutes  INTEGER NOT NULL DEFAULT 60,
                    updated_at           TEXT    NOT NULL
                )
            """)
        logger.debug("User goals table initialized at %s", self._db_path)

    def get_goal(self, user_id: int) -> DailyGoal | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM user_goals WHERE user_id = ?", (user_id,),
            ).fetchone()
        if row is None:
            return None
        return DailyGoal(user_id=row["user_id"], daily_focus_minutes=row["daily_focus_minutes"])

    def upsert_goal(self, user_id: int, minutes: int) -> DailyGoal:
        """Update the owner's goal in place, inserting it on first use."""
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO user_goals (user_id, daily_focus_minutes, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT (user_id) DO UPDATE SET
                    daily_focus_minutes = excluded.daily_focus_minutes,
                    updated_at          = excluded.updated_at
                """,
                (user_id, minutes, _now_iso()),
            )
        logger.info("Daily goal for user %d set to %d minutes", user_id, minutes)
        return DailyGoal(user_id=user_id, daily_focus_minutes=minutes)


class AchievementDB(_SQLiteTable):
    """SQLite-backed storage for unlocked achievements."""

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS user_achievements (
                    id              INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id         INTEGER NOT NULL,
                    achievement_id  TEXT    NOT NULL,
                    unlocked_at     TEXT    NOT NULL,
                    UNIQUE (user_id, achievement_id)
                )
            """)
        logger.debug("User achievements table initialized at %s", self._db_path)

    def list_unlocked(self, user_id: int) -> list[UnlockedAchievement]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM user_achievements WHERE user_id = ? ORDER BY unlocked_at, id",
                (user_id,),
            ).fetchall()
        return [
            UnlockedAchievement(achievement_id=r["achievement_id"], unlocked_at=r["unlocked_at"])
            for r in rows
        ]

    def insert_unlock(self, user_id: int, achievement_id: str) -> UnlockedAchievement:
        """Record an unlock.

        Raises sqlite3.IntegrityError if the owner already has it.
        """
        unlocked_at = _now_iso()
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO user_achievements (user_id, achievement_id, unlocked_at) VALUES (?, ?, ?)",
                (user_id, achievement_id, unlocked_at),
            )
        logger.info("Achievement '%s' unlocked for user %d", achievement_id, user_id)
        return UnlockedAchievement(achievement_id=achievement_id, unlocked_at=unlocked_at)


class NoteDB(_SQLiteTable):
    """SQLite-backed storage for sticky notes."""

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS sticky_notes (
                    id          INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id     INTEGER NOT NULL,
                    title       TEXT,
                    content     TEXT    NOT NULL,
                    color       TEXT    NOT NULL DEFAULT 'yellow',
                    created_at  TEXT    NOT NULL,
                    updated_at  TEXT    NOT NULL
                )
            """)
        logger.debug("Sticky notes table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_note(row: sqlite3.Row) -> StickyNote:
        return StickyNote(
            id=row["id"],
            content=row["content"],
            title=row["title"],
            color=row["color"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def add_note(
        self, user_id: int, content: str, title: str | None = None, color: str = "yellow",
    ) -> StickyNote:
        now = _now_iso()
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO sticky_notes (user_id, title, content, color, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (user_id, title, content, color, now, now),
            )
            note_id = cursor.lastrowid

        logger.info("Note added: #%d for user %d", note_id, user_id)
        return StickyNote(
            id=note_id, content=content, title=title, color=color,
            created_at=now, updated_at=now,
        )

    def update_note(
        self, user_id: int, note_id: int, content: str,
        title: str | None = None, color: str = "yellow",
    ) -> StickyNote | None:
        """Replace a note's title, content and color. Returns None if not found."""
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE sticky_notes SET title = ?, content = ?, color = ?, updated_at = ?
                WHERE id = ? AND user_id = ?
                """,
                (title, content, color, _now_iso(), note_id, user_id),
            )
            if cursor.rowcount == 0:
                return None
            row = conn.execute("SELECT * FROM sticky_notes WHERE id = ?", (note_id,)).fetchone()

        logger.info("Note #%d updated", note_id)
        return self._row_to_note(row)

    def list_notes(self, user_id: int) -> list[StickyNote]:
        """Owner's notes, newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM sticky_notes WHERE user_id = ? ORDER BY created_at DESC, id DESC",
                (user_id,),
            ).fetchall()
        return [self._row_to_note(r) for r in rows]

    def delete_note(self, user_id: int, note_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM sticky_notes WHERE id = ? AND user_id = ?", (note_id, user_id),
            )
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Note #%d deleted", note_id)
        return deleted
