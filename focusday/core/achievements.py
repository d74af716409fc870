"""Achievement evaluation engine.

Compares aggregated stats against the static catalog, persists new
unlocks and announces them. Evaluation runs after every stats
recomputation; the catalog is small, so a full pass is cheap.

Unlocks are idempotent per (owner, achievement). The store enforces that
as a uniqueness constraint and reports a second insert as
UnlockConflictError; this engine treats that as "already unlocked":
the id joins the unlocked set, no notification is sent and no error
reaches the caller.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from focusday.data.achievements import ACHIEVEMENTS
from focusday.data.models import Achievement, AchievementCategory, Stats
from focusday.ports.notification_port import format_unlock_message
from focusday.ports.store_port import StoreError, UnlockConflictError

if TYPE_CHECKING:
    from focusday.ports.notification_port import NotificationPort
    from focusday.ports.store_port import RecordStorePort

logger = logging.getLogger(__name__)


def current_value(achievement: Achievement, stats: Stats) -> float:
    """The stat an achievement's requirement is measured against."""
    if achievement.category is AchievementCategory.STREAK:
        return stats.streak
    if achievement.category is AchievementCategory.TIME:
        return stats.total_hours
    return stats.completed_tasks


def qualifies(achievement: Achievement, stats: Stats) -> bool:
    return current_value(achievement, stats) >= achievement.requirement


def get_progress(achievement: Achievement, stats: Stats) -> float:
    """Percent towards the requirement, clamped to 100."""
    return min(100.0, current_value(achievement, stats) / achievement.requirement * 100)


class AchievementEngine:
    """Tracks and unlocks achievements for one owner."""

    def __init__(
        self,
        store: RecordStorePort,
        user_id: int,
        notifier: NotificationPort | None = None,
        catalog: tuple[Achievement, ...] = ACHIEVEMENTS,
    ) -> None:
        self._store = store
        self._user_id = user_id
        self._notifier = notifier
        self._catalog = catalog
        self._unlocked_ids: set[str] = set()
        self._in_flight: set[str] = set()  # inserts awaiting the store

    @property
    def unlocked_ids(self) -> frozenset[str]:
        return frozenset(self._unlocked_ids)

    async def load(self) -> None:
        """Read the owner's existing unlocks from the store."""
        unlocked = await self._store.list_unlocked(self._user_id)
        self._unlocked_ids = {u.achievement_id for u in unlocked}
        logger.debug("Loaded %d unlocked achievements for user %d", len(self._unlocked_ids), self._user_id)

    async def check_and_unlock(self, stats: Stats) -> list[Achievement]:
        """Unlock every catalog entry the stats now satisfy.

        Returns the achievements unlocked by this call, in catalog order.
        A store failure on one entry is logged and that entry is retried
        on the next evaluation.
        """
        newly_unlocked: list[Achievement] = []

        for achievement in self._catalog:
            if achievement.id in self._unlocked_ids or achievement.id in self._in_flight:
                continue
            if not qualifies(achievement, stats):
                continue

            self._in_flight.add(achievement.id)
            try:
                await self._store.insert_unlock(self._user_id, achievement.id)
            except UnlockConflictError:
                logger.info(
                    "Achievement '%s' already unlocked for user %d", achievement.id, self._user_id,
                )
                self._unlocked_ids.add(achievement.id)
                continue
            except StoreError as exc:
                logger.error("Could not unlock '%s': %s", achievement.id, exc)
                continue
            finally:
                self._in_flight.discard(achievement.id)

            self._unlocked_ids.add(achievement.id)
            newly_unlocked.append(achievement)

        for achievement in newly_unlocked:
            await self._notify(achievement)

        return newly_unlocked

    async def _notify(self, achievement: Achievement) -> None:
        if self._notifier is None:
            return
        text = format_unlock_message(achievement.icon, achievement.name, achievement.description)
        try:
            await self._notifier.send_message(self._user_id, text)
        except Exception as exc:
            logger.error("Failed to announce '%s' to user %d: %s", achievement.id, self._user_id, exc)

    def unlocked(self) -> list[Achievement]:
        return [a for a in self._catalog if a.id in self._unlocked_ids]

    def locked(self) -> list[Achievement]:
        return [a for a in self._catalog if a.id not in self._unlocked_ids]

    def get_progress(self, achievement: Achievement, stats: Stats) -> float:
        return get_progress(achievement, stats)
