"""Daily goal tracker — per-owner focus target and percent completion."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from focusday.core.validation import validate_goal_minutes

if TYPE_CHECKING:
    from focusday.ports.store_port import RecordStorePort

logger = logging.getLogger(__name__)


def goal_progress(current_minutes: float, goal_minutes: int) -> float:
    """Percent of the goal reached, clamped to 100.

    A goal of 0 counts as always satisfied.
    """
    if goal_minutes == 0:
        return 100.0
    return min(100.0, current_minutes / goal_minutes * 100)


class DailyGoalTracker:
    """Loads, updates and evaluates one owner's daily focus goal."""

    def __init__(
        self,
        store: RecordStorePort,
        user_id: int,
        default_minutes: int | None = None,
    ) -> None:
        if default_minutes is None:
            from focusday.config import settings
            default_minutes = settings.DEFAULT_GOAL_MINUTES

        self._store = store
        self._user_id = user_id
        self._goal_minutes = default_minutes

    @property
    def goal_minutes(self) -> int:
        return self._goal_minutes

    async def load(self) -> int:
        """Fetch the stored goal, keeping the default when none exists."""
        goal = await self._store.get_goal(self._user_id)
        if goal is not None:
            self._goal_minutes = goal.daily_focus_minutes
        return self._goal_minutes

    async def update_goal(self, minutes: int) -> int:
        """Validate and persist a new goal.

        Raises ValidationError (nothing persisted) when outside 1..1440,
        StoreError when the write fails; the goal is unchanged either way.
        """
        minutes = validate_goal_minutes(minutes)
        goal = await self._store.upsert_goal(self._user_id, minutes)
        self._goal_minutes = goal.daily_focus_minutes
        logger.info("User %d daily goal is now %d minutes", self._user_id, self._goal_minutes)
        return self._goal_minutes

    def get_progress(self, current_minutes: float) -> float:
        return goal_progress(current_minutes, self._goal_minutes)

    def is_complete(self, current_minutes: float) -> bool:
        return self.get_progress(current_minutes) >= 100

    def remaining_minutes(self, current_minutes: int) -> int:
        return max(0, self._goal_minutes - int(current_minutes))
