"""
FocusDay — Achievement catalog.

Fixed milestones, versioned in code and never persisted. Only unlock
records are stored (see ``user_achievements``).
"""

from __future__ import annotations

from focusday.data.models import Achievement, AchievementCategory

_STREAK = AchievementCategory.STREAK
_TIME = AchievementCategory.TIME
_TASKS = AchievementCategory.TASKS

ACHIEVEMENTS: tuple[Achievement, ...] = (
    # Streak
    Achievement("streak_3", "Getting Started", "Work for 3 days in a row", "🔥", _STREAK, 3, "days"),
    Achievement("streak_7", "Week Warrior", "Maintain a 7-day streak", "⚡", _STREAK, 7, "days"),
    Achievement("streak_14", "Two Week Champion", "Maintain a 14-day streak", "🏆", _STREAK, 14, "days"),
    Achievement("streak_30", "Monthly Master", "Maintain a 30-day streak", "👑", _STREAK, 30, "days"),
    Achievement("streak_100", "Century Legend", "Maintain a 100-day streak", "💎", _STREAK, 100, "days"),
    # Focus time (hours)
    Achievement("time_10", "First 10 Hours", "Accumulate 10 hours of focus time", "⏱️", _TIME, 10, "hours"),
    Achievement("time_50", "Half Century", "Accumulate 50 hours of focus time", "⌛", _TIME, 50, "hours"),
    Achievement("time_100", "Centurion", "Accumulate 100 hours of focus time", "🎯", _TIME, 100, "hours"),
    Achievement("time_500", "Time Lord", "Accumulate 500 hours of focus time", "🌟", _TIME, 500, "hours"),
    Achievement("time_1000", "Millennium", "Accumulate 1000 hours of focus time", "🚀", _TIME, 1000, "hours"),
    # Completed tasks
    Achievement("tasks_10", "Task Starter", "Complete 10 tasks", "✅", _TASKS, 10, "tasks"),
    Achievement("tasks_50", "Task Master", "Complete 50 tasks", "📋", _TASKS, 50, "tasks"),
    Achievement("tasks_100", "Century Closer", "Complete 100 tasks", "🎖️", _TASKS, 100, "tasks"),
    Achievement("tasks_500", "Task Titan", "Complete 500 tasks", "🏅", _TASKS, 500, "tasks"),
    Achievement("tasks_1000", "Productivity Legend", "Complete 1000 tasks", "🎊", _TASKS, 1000, "tasks"),
)

_BY_ID = {a.id: a for a in ACHIEVEMENTS}


def get_achievement_by_id(achievement_id: str) -> Achievement | None:
    return _BY_ID.get(achievement_id)


def achievements_by_category(category: AchievementCategory) -> list[Achievement]:
    """Catalog entries of one category, in ascending requirement order."""
    return [a for a in ACHIEVEMENTS if a.category is category]
