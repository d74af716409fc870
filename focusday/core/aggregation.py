"""Streak & aggregation engine.

The pure functions at the top operate on an owner's day records keyed by
date and never touch the store; ``AggregationEngine`` pulls the records
for one owner and feeds them through those functions.

A day counts as worked when its session has accumulated ``duration > 0``.
Today is the one exception: an open (active) timer counts even before
anything has accumulated.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Mapping

from focusday.core.time_utils import date_label, shift_day, today_key
from focusday.data.models import DayPoint, DayRecord, DaySummary, Stats, WindowSummary

if TYPE_CHECKING:
    from focusday.ports.store_port import RecordStorePort

logger = logging.getLogger(__name__)

WEEK_DAYS = 7
FORTNIGHT_DAYS = 14


def empty_day(date: str) -> DayRecord:
    """Placeholder for a date with no stored activity."""
    return DayRecord(date=date)


def recent_days(
    records: Mapping[str, DayRecord], count: int, today: str,
) -> list[DayRecord]:
    """Exactly ``count`` records, oldest first, ending with ``today``.

    Gaps in the store are filled with empty placeholders.
    """
    days = []
    for offset in range(count - 1, -1, -1):
        date = shift_day(today, -offset)
        days.append(records.get(date) or empty_day(date))
    return days


def compute_streak(records: Mapping[str, DayRecord], today: str) -> int:
    """Consecutive worked days ending today (or yesterday).

    One day without recorded duration breaks the chain; there are no
    grace days.
    """
    streak = 0
    today_record = records.get(today)
    if today_record is not None:
        session = today_record.work_session
        if session.duration > 0 or session.is_active:
            streak = 1

    date = shift_day(today, -1)
    while True:
        record = records.get(date)
        if record is None or record.work_session.duration <= 0:
            break
        streak += 1
        date = shift_day(date, -1)
    return streak


def total_seconds(records: Mapping[str, DayRecord]) -> int:
    return sum(r.work_session.duration for r in records.values())


def total_completed(records: Mapping[str, DayRecord]) -> int:
    return sum(r.completed_count for r in records.values())


def compute_stats(records: Mapping[str, DayRecord], today: str) -> Stats:
    """All-time totals (not windowed) plus the current streak."""
    return Stats(
        streak=compute_streak(records, today),
        total_hours=total_seconds(records) / 3600,
        completed_tasks=total_completed(records),
    )


def summarize_day(record: DayRecord) -> DaySummary:
    completed = record.completed_count
    return DaySummary(
        duration=record.work_session.duration,
        completed=completed,
        remaining=len(record.tasks) - completed,
    )


def summarize_window(days: list[DayRecord], today: str) -> WindowSummary:
    """Totals and per-day chart points for a run of days from ``recent_days``."""
    points = []
    for day in days:
        completed = day.completed_count
        points.append(DayPoint(
            date=day.date,
            label=date_label(day.date, today),
            hours=round(day.work_session.duration / 3600, 1),
            completed=completed,
            incomplete=len(day.tasks) - completed,
        ))

    return WindowSummary(
        days=len(days),
        total_seconds=sum(d.work_session.duration for d in days),
        total_tasks=sum(len(d.tasks) for d in days),
        completed_tasks=sum(p.completed for p in points),
        days_worked=sum(1 for d in days if d.work_session.duration > 0),
        points=points,
    )


class AggregationEngine:
    """Reads one owner's day records and computes streaks and totals."""

    def __init__(
        self, store: RecordStorePort, user_id: int, tz_name: str | None = None,
    ) -> None:
        self._store = store
        self._user_id = user_id
        self._tz_name = tz_name

    def _today(self, today: str | None) -> str:
        return today or today_key(tz_name=self._tz_name)

    async def get_recent_days(self, count: int, today: str | None = None) -> list[DayRecord]:
        today = self._today(today)
        dates = [shift_day(today, -offset) for offset in range(count)]
        records = await self._store.fetch_range(self._user_id, dates)
        return recent_days(records, count, today)

    async def get_week(self, today: str | None = None) -> list[DayRecord]:
        return await self.get_recent_days(WEEK_DAYS, today)

    async def get_fortnight(self, today: str | None = None) -> list[DayRecord]:
        return await self.get_recent_days(FORTNIGHT_DAYS, today)

    async def get_streak(self, today: str | None = None) -> int:
        records = await self._store.fetch_all(self._user_id)
        return compute_streak(records, self._today(today))

    async def get_total_stats(self, today: str | None = None) -> Stats:
        records = await self._store.fetch_all(self._user_id)
        stats = compute_stats(records, self._today(today))
        logger.debug(
            "Stats for user %d: streak=%d hours=%.2f completed=%d",
            self._user_id, stats.streak, stats.total_hours, stats.completed_tasks,
        )
        return stats

    async def get_window_summary(self, count: int, today: str | None = None) -> WindowSummary:
        today = self._today(today)
        days = await self.get_recent_days(count, today)
        return summarize_window(days, today)
