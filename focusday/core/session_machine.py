"""Work session state machine.

Two states: IDLE (no open timer) and ACTIVE (``start_time`` set).
``start`` and ``stop`` persist through the record store before the
in-memory session changes, and are serialized so that a transition never
starts while the previous one is still being written. A failed write
leaves the session exactly as it was.

The 1 Hz display tick lives in the presentation layer and only calls
``compute_displayed_elapsed``; nothing here polls the clock.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from focusday.core.time_utils import parse_timestamp, to_iso, utc_now
from focusday.data.models import WorkSession

if TYPE_CHECKING:
    from focusday.ports.store_port import RecordStorePort

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    ACTIVE = "active"


def compute_elapsed(start_time: str, now: datetime) -> int:
    """Whole seconds from ``start_time`` to ``now``, never negative."""
    delta = now - parse_timestamp(start_time)
    return max(0, int(delta.total_seconds() // 1))


def compute_displayed_elapsed(session: WorkSession, now: datetime | None = None) -> int:
    """Seconds to show on the timer: accumulated plus the open run, if any."""
    if not session.is_active or session.start_time is None:
        return session.duration
    return session.duration + compute_elapsed(session.start_time, now or utc_now())


def session_state(session: WorkSession) -> SessionState:
    if session.is_active and session.start_time is not None:
        return SessionState.ACTIVE
    return SessionState.IDLE


class WorkSessionMachine:
    """Start/stop transitions for one owner's session on one date."""

    def __init__(
        self,
        store: RecordStorePort,
        user_id: int,
        session: WorkSession,
    ) -> None:
        self._store = store
        self._user_id = user_id
        self._session = session
        self._lock = asyncio.Lock()

    @property
    def session(self) -> WorkSession:
        return self._session

    @property
    def state(self) -> SessionState:
        return session_state(self._session)

    @property
    def busy(self) -> bool:
        """True while a transition is being persisted."""
        return self._lock.locked()

    async def start(self, now: datetime | None = None) -> WorkSession:
        """Open the timer. No-op while already ACTIVE.

        Raises StoreError if the write fails; the session is then unchanged.
        """
        async with self._lock:
            if self.state is SessionState.ACTIVE:
                logger.debug("start() ignored: session for %s already active", self._session.date)
                return self._session

            started_at = to_iso(now or utc_now())
            persisted = await self._store.start_session(
                self._user_id, self._session.date, started_at,
            )
            self._session = persisted
            logger.info("Work started for user %d on %s", self._user_id, persisted.date)
            return persisted

    async def stop(self, now: datetime | None = None) -> WorkSession:
        """Close the timer, adding the elapsed whole seconds. No-op while IDLE.

        Raises StoreError if the write fails; the session is then unchanged.
        """
        async with self._lock:
            if self.state is SessionState.IDLE:
                logger.debug("stop() ignored: no open session for %s", self._session.date)
                return self._session

            moment = now or utc_now()
            elapsed = compute_elapsed(self._session.start_time, moment)
            persisted = await self._store.stop_session(
                self._user_id, self._session.date, to_iso(moment), elapsed,
            )
            self._session = persisted
            logger.info(
                "Work stopped for user %d on %s: +%ds (total %ds)",
                self._user_id, persisted.date, elapsed, persisted.duration,
            )
            return persisted

    def displayed_elapsed(self, now: datetime | None = None) -> int:
        return compute_displayed_elapsed(self._session, now)
