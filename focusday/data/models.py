"""
FocusDay — Data Models.

A day record bundles one calendar date's tasks with its single work
session. Dates are ISO strings (YYYY-MM-DD), timestamps are ISO 8601
strings, durations are integer seconds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


@dataclass
class Task:
    """A to-do item on a given day."""

    id: int
    text: str
    completed: bool = False
    created_at: str = ""
    date: str = ""


@dataclass
class WorkSession:
    """The work timer for one date.

    ``duration`` accumulates across every stop on that date; it is not
    the length of the last session alone.
    """

    date: str
    start_time: str | None = None    # set while the timer runs
    end_time: str | None = None      # last stop
    duration: int = 0                # seconds
    is_active: bool = False


@dataclass
class DayRecord:
    """Tasks plus the work session for a single (owner, date)."""

    date: str
    tasks: list[Task] = field(default_factory=list)
    work_session: WorkSession | None = None

    def __post_init__(self) -> None:
        if self.work_session is None:
            self.work_session = WorkSession(date=self.date)

    @property
    def completed_count(self) -> int:
        return sum(1 for t in self.tasks if t.completed)


class AchievementCategory(Enum):
    STREAK = "streak"
    TIME = "time"
    TASKS = "tasks"


@dataclass(frozen=True)
class Achievement:
    """A static milestone from the catalog."""

    id: str
    name: str
    description: str
    icon: str
    category: AchievementCategory
    requirement: int
    unit: str


@dataclass
class StickyNote:
    """A free-form note pinned by an owner; not tied to a date."""

    id: int
    content: str
    title: str | None = None
    color: str = "yellow"
    created_at: str = ""
    updated_at: str = ""


@dataclass
class UnlockedAchievement:
    achievement_id: str
    unlocked_at: str


@dataclass
class DailyGoal:
    """Per-owner target minutes of focused work per day."""

    user_id: int
    daily_focus_minutes: int = 60


@dataclass(frozen=True)
class Stats:
    """Aggregated numbers the achievement engine evaluates against."""

    streak: int = 0
    total_hours: float = 0.0
    completed_tasks: int = 0


@dataclass
class DayPoint:
    """One day of a window summary, shaped for charts."""

    date: str
    label: str
    hours: float         # rounded to one decimal
    completed: int
    incomplete: int


@dataclass
class WindowSummary:
    """Totals over a run of consecutive days."""

    days: int
    total_seconds: int
    total_tasks: int
    completed_tasks: int
    days_worked: int
    points: list[DayPoint] = field(default_factory=list)


@dataclass
class DaySummary:
    duration: int
    completed: int
    remaining: int

    @property
    def is_empty(self) -> bool:
        return self.duration == 0 and self.completed == 0 and self.remaining == 0
