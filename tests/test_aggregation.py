"""Tests for focusday.core.aggregation — streaks, windows and totals."""

import pytest

from focusday.core.aggregation import (
    AggregationEngine,
    compute_stats,
    compute_streak,
    recent_days,
    summarize_day,
    summarize_window,
)
from focusday.core.time_utils import shift_day
from focusday.data.models import DayRecord, Task, WorkSession

USER_ID = 12345
TODAY = "2026-10-19"


def _day(offset: int, duration: int = 0, active: bool = False, tasks=None) -> DayRecord:
    """A record ``offset`` days before TODAY."""
    date = shift_day(TODAY, -offset)
    session = WorkSession(
        date=date,
        duration=duration,
        is_active=active,
        start_time=f"{date}T09:00:00+00:00" if active else None,
    )
    return DayRecord(date=date, tasks=tasks or [], work_session=session)


def _records(*days: DayRecord) -> dict[str, DayRecord]:
    return {d.date: d for d in days}


class TestRecentDays:
    def test_exactly_n_ascending_ending_today(self):
        days = recent_days({}, 7, TODAY)
        assert len(days) == 7
        assert [d.date for d in days] == sorted(d.date for d in days)
        assert days[-1].date == TODAY
        assert days[0].date == shift_day(TODAY, -6)

    def test_fills_gaps_with_placeholders(self):
        stored = _day(2, duration=600)
        days = recent_days(_records(stored), 7, TODAY)
        assert days[-3] is stored
        assert all(d.work_session.duration == 0 for d in days if d is not stored)
        assert all(d.tasks == [] for d in days if d is not stored)

    def test_ignores_records_outside_window(self):
        days = recent_days(_records(_day(30, duration=600)), 7, TODAY)
        assert sum(d.work_session.duration for d in days) == 0


class TestStreak:
    def test_no_records(self):
        assert compute_streak({}, TODAY) == 0

    def test_consecutive_days_including_today(self):
        records = _records(_day(0, 60), _day(1, 60), _day(2, 60))
        assert compute_streak(records, TODAY) == 3

    def test_stops_at_zero_duration_day(self):
        records = _records(_day(0, 60), _day(1, 60), _day(2, 0), _day(3, 60))
        assert compute_streak(records, TODAY) == 2

    def test_stops_at_missing_day(self):
        records = _records(_day(0, 60), _day(1, 60), _day(3, 60))
        assert compute_streak(records, TODAY) == 2

    def test_today_without_work_counts_from_yesterday(self):
        records = _records(_day(1, 60), _day(2, 60))
        assert compute_streak(records, TODAY) == 2

    def test_today_zero_record_counts_from_yesterday(self):
        records = _records(_day(0, 0), _day(1, 60))
        assert compute_streak(records, TODAY) == 1

    def test_active_today_counts(self):
        assert compute_streak(_records(_day(0, 0, active=True)), TODAY) == 1

    def test_active_past_day_with_zero_duration_breaks(self):
        records = _records(_day(0, 60), _day(1, 0, active=True), _day(2, 60))
        assert compute_streak(records, TODAY) == 1

    def test_scenario_gap_before_older_work(self):
        # [1800, 0, 3600] oldest to newest, today active with nothing accumulated
        records = _records(
            _day(3, 1800),
            _day(2, 0),
            _day(1, 3600),
            _day(0, 0, active=True),
        )
        assert compute_streak(records, TODAY) == 2


class TestStats:
    def test_totals_over_all_records(self):
        records = _records(
            _day(0, 1800, tasks=[Task(1, "a", completed=True), Task(2, "b")]),
            _day(40, 5400, tasks=[Task(3, "c", completed=True)]),
        )
        stats = compute_stats(records, TODAY)
        assert stats.total_hours == pytest.approx(2.0)
        assert stats.completed_tasks == 2
        assert stats.streak == 1

    def test_empty(self):
        stats = compute_stats({}, TODAY)
        assert (stats.streak, stats.total_hours, stats.completed_tasks) == (0, 0, 0)


class TestSummaries:
    def test_day_summary(self):
        summary = summarize_day(_day(0, 90, tasks=[Task(1, "a", completed=True), Task(2, "b")]))
        assert (summary.duration, summary.completed, summary.remaining) == (90, 1, 1)
        assert summary.is_empty is False

    def test_empty_day_summary(self):
        assert summarize_day(DayRecord(date=TODAY)).is_empty is True

    def test_window_summary(self):
        records = _records(
            _day(0, 3600, tasks=[Task(1, "a", completed=True), Task(2, "b")]),
            _day(2, 5400),
        )
        days = recent_days(records, 7, TODAY)
        window = summarize_window(days, TODAY)
        assert window.days == 7
        assert window.total_seconds == 9000
        assert window.total_tasks == 2
        assert window.completed_tasks == 1
        assert window.days_worked == 2
        assert window.points[-1].label == "Today"
        assert window.points[-1].hours == 1.0
        assert window.points[-3].hours == 1.5
        assert window.points[-1].incomplete == 1


class TestAggregationEngine:
    @pytest.mark.asyncio
    async def test_recent_days_from_store(self, store):
        await store.add_task(USER_ID, shift_day(TODAY, -3), "old task")
        engine = AggregationEngine(store, USER_ID)
        days = await engine.get_week(today=TODAY)
        assert len(days) == 7
        assert days[-1].date == TODAY
        assert [t.text for t in days[-4].tasks] == ["old task"]

    @pytest.mark.asyncio
    async def test_fortnight(self, store):
        engine = AggregationEngine(store, USER_ID)
        assert len(await engine.get_fortnight(today=TODAY)) == 14

    @pytest.mark.asyncio
    async def test_streak_and_stats_from_store(self, store):
        for offset, seconds in [(2, 600), (1, 1200)]:
            date = shift_day(TODAY, -offset)
            await store.start_session(USER_ID, date, f"{date}T09:00:00+00:00")
            await store.stop_session(USER_ID, date, f"{date}T10:00:00+00:00", seconds)
        task = await store.add_task(USER_ID, TODAY, "done")
        await store.toggle_task(USER_ID, task.id)

        engine = AggregationEngine(store, USER_ID)
        assert await engine.get_streak(today=TODAY) == 2
        stats = await engine.get_total_stats(today=TODAY)
        assert stats.total_hours == pytest.approx(0.5)
        assert stats.completed_tasks == 1

    @pytest.mark.asyncio
    async def test_window_summary_from_store(self, store):
        engine = AggregationEngine(store, USER_ID)
        window = await engine.get_window_summary(14, today=TODAY)
        assert window.days == 14
        assert window.days_worked == 0
