"""
FocusDay — Work Service.

UI-agnostic orchestration for one owner: keeps an in-memory cache of the
owner's day records, routes mutations through the record store, and
re-evaluates achievements after each one.

The cache is only updated after the store confirms a write. A StoreError
propagates to the caller with the cache untouched.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from focusday.core.achievements import AchievementEngine
from focusday.core.aggregation import (
    compute_stats,
    empty_day,
    recent_days,
    summarize_day,
    summarize_window,
)
from focusday.core.daily_goal import DailyGoalTracker
from focusday.core.session_machine import (
    SessionState,
    WorkSessionMachine,
    compute_displayed_elapsed,
)
from focusday.core.time_utils import today_key
from focusday.core.validation import DEFAULT_NOTE_COLOR, validate_note, validate_task_text
from focusday.data.models import (
    Achievement,
    DayRecord,
    DaySummary,
    Stats,
    StickyNote,
    Task,
    WindowSummary,
    WorkSession,
)

if TYPE_CHECKING:
    from focusday.ports.notification_port import NotificationPort
    from focusday.ports.store_port import RecordStorePort

logger = logging.getLogger(__name__)


class WorkService:
    """Tasks, timer, stats, goal, achievements and notes for a single owner."""

    def __init__(
        self,
        store: RecordStorePort,
        user_id: int,
        notifier: NotificationPort | None = None,
        tz_name: str | None = None,
        default_goal_minutes: int | None = None,
    ) -> None:
        self._store = store
        self._user_id = user_id
        self._tz_name = tz_name
        self._records: dict[str, DayRecord] = {}
        self._machine: WorkSessionMachine | None = None
        self.achievements = AchievementEngine(store, user_id, notifier)
        self.goal = DailyGoalTracker(store, user_id, default_goal_minutes)
        self.last_unlocked: list[Achievement] = []

    @property
    def user_id(self) -> int:
        return self._user_id

    @property
    def records(self) -> dict[str, DayRecord]:
        return self._records

    def today_key(self) -> str:
        return today_key(tz_name=self._tz_name)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """Fetch day records, unlocked achievements and the goal."""
        self._records = await self._store.fetch_all(self._user_id)
        await self.achievements.load()
        await self.goal.load()

        # A timer left running on an earlier day stays stoppable.
        open_sessions = [r.work_session for r in self._records.values() if r.work_session.is_active]
        if open_sessions:
            latest = max(open_sessions, key=lambda s: s.date)
            self._machine = WorkSessionMachine(self._store, self._user_id, latest)
        else:
            self._machine = None

        logger.info(
            "Loaded %d day records for user %d", len(self._records), self._user_id,
        )

    # ------------------------------------------------------------------
    # Cache helpers
    # ------------------------------------------------------------------

    def today(self) -> DayRecord:
        key = self.today_key()
        return self._records.get(key) or empty_day(key)

    def _record_for(self, date: str) -> DayRecord:
        record = self._records.get(date)
        if record is None:
            record = self._records[date] = empty_day(date)
        return record

    def _session_machine(self) -> WorkSessionMachine:
        """The machine for today, or for an earlier day whose timer is still open."""
        key = self.today_key()
        machine = self._machine
        if machine is not None and (
            machine.session.date == key
            or machine.state is SessionState.ACTIVE
            or machine.busy
        ):
            return machine

        self._machine = WorkSessionMachine(
            self._store, self._user_id, self.today().work_session,
        )
        return self._machine

    async def _evaluate(self) -> list[Achievement]:
        self.last_unlocked = await self.achievements.check_and_unlock(self.stats())
        return self.last_unlocked

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def today_tasks(self, newest_first: bool = True) -> list[Task]:
        tasks = list(self.today().tasks)
        if newest_first:
            tasks.reverse()
        return tasks

    async def add_task(self, text: str) -> Task:
        """Add a task to today. Raises ValidationError on blank text."""
        text = validate_task_text(text)
        key = self.today_key()
        task = await self._store.add_task(self._user_id, key, text)
        self._record_for(task.date or key).tasks.append(task)
        await self._evaluate()
        return task

    async def toggle_task(self, task_id: int) -> Task:
        task = await self._store.toggle_task(self._user_id, task_id)
        record = self._records.get(task.date)
        if record is not None:
            record.tasks = [task if t.id == task_id else t for t in record.tasks]
        await self._evaluate()
        return task

    async def delete_task(self, task_id: int) -> bool:
        deleted = await self._store.delete_task(self._user_id, task_id)
        if deleted:
            for record in self._records.values():
                record.tasks = [t for t in record.tasks if t.id != task_id]
            await self._evaluate()
        return deleted

    # ------------------------------------------------------------------
    # Work timer
    # ------------------------------------------------------------------

    @property
    def session_state(self) -> SessionState:
        return self._session_machine().state

    async def start_work(self, now: datetime | None = None) -> WorkSession:
        session = await self._session_machine().start(now)
        self._record_for(session.date).work_session = session
        await self._evaluate()
        return session

    async def stop_work(self, now: datetime | None = None) -> WorkSession:
        session = await self._session_machine().stop(now)
        self._record_for(session.date).work_session = session
        await self._evaluate()
        return session

    def displayed_elapsed(self, now: datetime | None = None) -> int:
        """Seconds to show on the timer: the open run (even one started on an
        earlier day) or today's total when idle. Presentation only.
        """
        machine = self._machine
        if machine is not None and machine.state is SessionState.ACTIVE:
            return machine.displayed_elapsed(now)
        return compute_displayed_elapsed(self.today().work_session, now)

    def today_elapsed(self, now: datetime | None = None) -> int:
        """Seconds credited to today's date, counting an open run only if it started today."""
        machine = self._machine
        if machine is not None and machine.session.date == self.today_key():
            return machine.displayed_elapsed(now)
        return compute_displayed_elapsed(self.today().work_session, now)

    # ------------------------------------------------------------------
    # Stats & goal
    # ------------------------------------------------------------------

    def stats(self) -> Stats:
        return compute_stats(self._records, self.today_key())

    def recent_days(self, count: int) -> list[DayRecord]:
        return recent_days(self._records, count, self.today_key())

    def window_summary(self, count: int) -> WindowSummary:
        key = self.today_key()
        return summarize_window(recent_days(self._records, count, key), key)

    def day_summary(self) -> DaySummary:
        return summarize_day(self.today())

    def goal_progress(self, now: datetime | None = None) -> float:
        return self.goal.get_progress(self.today_elapsed(now) // 60)

    def goal_remaining(self, now: datetime | None = None) -> int:
        """Minutes still needed today to reach the goal."""
        return self.goal.remaining_minutes(self.today_elapsed(now) // 60)

    async def update_goal(self, minutes: int) -> int:
        return await self.goal.update_goal(minutes)

    # ------------------------------------------------------------------
    # Sticky notes
    # ------------------------------------------------------------------

    async def list_notes(self) -> list[StickyNote]:
        return await self._store.list_notes(self._user_id)

    async def add_note(
        self, content: str, title: str | None = None, color: str = DEFAULT_NOTE_COLOR,
    ) -> StickyNote:
        """Pin a note. Raises ValidationError on blank content or unknown color."""
        content, title, color = validate_note(content, title, color)
        return await self._store.add_note(self._user_id, content, title, color)

    async def update_note(
        self, note_id: int, content: str,
        title: str | None = None, color: str = DEFAULT_NOTE_COLOR,
    ) -> StickyNote:
        content, title, color = validate_note(content, title, color)
        return await self._store.update_note(self._user_id, note_id, content, title, color)

    async def delete_note(self, note_id: int) -> bool:
        return await self._store.delete_note(self._user_id, note_id)
