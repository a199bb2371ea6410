"""
DayLedgerService: the in-memory owner of the day-record map.

Flow for every change to a date's events:
  EventLog change -> rebuild_day (reads yesterday's record) -> memory -> save

The save is fire-and-forget: reads right after a change see the in-memory
record whether or not the write has finished, and a failed write is only
logged (the next change writes again). Loads are guarded so a load that has
been superseded or cancelled never overwrites newer state.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine, Iterable
from typing import Any

from .badges import (
    BadgeProgress,
    BadgeStats,
    badge_progress,
    check_and_commit_badges,
    compute_badge_stats,
)
from .datekey import prev_date_key, today_key
from .ledger import EventLog
from .models import AchievedBadge, DayRecord, TimelineEvent
from .reconstruct import rebuild_day
from .stats import PeriodSummary, StatsRow, aggregate_period, build_rows_for_period
from .storage import Store
from .streak import current_streak

logger = logging.getLogger(__name__)


class DayLedgerService:
    def __init__(self, store: Store):
        self.store = store
        self.records: dict[str, DayRecord] = {}
        self.achieved: list[AchievedBadge] = []
        self.loaded = False
        self._generation = 0
        self._pending: set[asyncio.Future] = set()

    # -------------------------
    # Loading
    # -------------------------

    async def load(self) -> bool:
        """
        Load records and achieved badges from the store.
        Returns False (and applies nothing) if cancel_loads() or a newer
        load() ran while this one was waiting on the store.
        """
        self._generation += 1
        token = self._generation

        records = await self.store.load_all()
        achieved = await self.store.load_achieved_badges()

        if token != self._generation:
            logger.debug("Discarding stale load (generation %s, now %s)", token, self._generation)
            return False

        self.records = records
        self.achieved = achieved
        self.loaded = True
        return True

    def cancel_loads(self) -> None:
        self._generation += 1

    # -------------------------
    # Mutations
    # -------------------------

    def record_for(self, date: str) -> DayRecord | None:
        return self.records.get(date)

    def ledger(self, date: str) -> EventLog:
        record = self.records.get(date)
        return EventLog(date, record.events if record else ())

    def set_events(self, date: str, events: Iterable[TimelineEvent]) -> DayRecord:
        rebuilt = rebuild_day(
            date,
            events,
            self.records.get(prev_date_key(date)),
            existing=self.records.get(date),
        )
        self.records[date] = rebuilt
        self._save_in_background(self.store.save_day(rebuilt))
        return rebuilt

    def add_event(self, date: str, event: TimelineEvent) -> DayRecord:
        log = self.ledger(date)
        log.append(event)
        return self.set_events(date, log.events)

    def edit_event(self, date: str, event_id: str, event: TimelineEvent) -> DayRecord | None:
        log = self.ledger(date)
        if not log.replace(event_id, event):
            return None
        return self.set_events(date, log.events)

    def delete_event(self, date: str, event_id: str) -> DayRecord | None:
        log = self.ledger(date)
        if not log.remove(event_id):
            return None
        return self.set_events(date, log.events)

    def delete_day(self, date: str) -> bool:
        if self.records.pop(date, None) is None:
            return False
        self._save_in_background(self.store.delete_day(date))
        return True

    def _save_in_background(self, coro: Coroutine[Any, Any, bool]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # no event loop (plain sync caller): just finish the write here
            asyncio.run(coro)
            return
        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def flush(self) -> None:
        """Wait for background writes started so far."""
        if self._pending:
            await asyncio.gather(*list(self._pending))

    # -------------------------
    # Derived views
    # -------------------------

    def current_streak(self, today: str | None = None) -> int:
        return current_streak(self.records, today or today_key())

    def period_rows(self, days: int, today: str | None = None) -> list[StatsRow]:
        return build_rows_for_period(self.records, days, today or today_key())

    def period_summary(self, days: int, today: str | None = None) -> PeriodSummary:
        return aggregate_period(self.period_rows(days, today))

    async def badge_stats(self, today: str | None = None) -> BadgeStats:
        breathing = await self.store.get_breathing_count()
        return compute_badge_stats(self.records, breathing, today)

    async def badge_progress(self, today: str | None = None) -> list[BadgeProgress]:
        return badge_progress(await self.badge_stats(today), self.achieved)

    async def check_badges(self, today: str | None = None) -> list[AchievedBadge]:
        newly = check_and_commit_badges(await self.badge_stats(today), self.achieved)
        if newly:
            await self.store.save_achieved_badges(self.achieved)
        return newly

    async def complete_breathing_exercise(self) -> int:
        return await self.store.increment_breathing_count()
