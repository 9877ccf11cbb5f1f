"""InMemoryActivityStore: dict-backed test double for the ActivityStore protocol.

Each operation yields to the event loop once before touching state, so
concurrent callers interleave the way separate database round-trips do,
while each individual update stays atomic. Two knobs simulate infrastructure
trouble:
- fail_rules: rule names whose calls raise ConnectionError
- hold: an asyncio.Event that find_due waits on (a hung pass)
"""

import asyncio
import itertools
from dataclasses import dataclass
from datetime import datetime

from venuehub.domain.activity_lifecycle import ActivityStatus, TransitionRule
from venuehub.scheduling.store import ActivitySnapshot


@dataclass
class ActivityRecord:
    id: int
    title: str
    start_date: datetime
    end_date: datetime | None = None
    status: str = ActivityStatus.UPCOMING.value
    is_active: bool = True


class InMemoryActivityStore:
    def __init__(self, fail_rules: set[str] | None = None, hold: asyncio.Event | None = None):
        self.records: dict[int, ActivityRecord] = {}
        self.fail_rules = set(fail_rules or ())
        self.hold = hold
        self.history: dict[int, list[str]] = {}
        self._ids = itertools.count(1)

    def add(
        self,
        title: str,
        start_date: datetime,
        end_date: datetime | None = None,
        status: ActivityStatus = ActivityStatus.UPCOMING,
        is_active: bool = True,
    ) -> ActivityRecord:
        record = ActivityRecord(
            id=next(self._ids),
            title=title,
            start_date=start_date,
            end_date=end_date,
            status=status.value,
            is_active=is_active,
        )
        self.records[record.id] = record
        self.history[record.id] = [record.status]
        return record

    def get(self, activity_id: int) -> ActivityRecord:
        return self.records[activity_id]

    async def find_due(self, rule: TransitionRule, now: datetime) -> list[ActivitySnapshot]:
        if self.hold is not None:
            await self.hold.wait()
        await asyncio.sleep(0)
        self._maybe_fail(rule)
        return [
            ActivitySnapshot(id=r.id, title=r.title, status=r.status)
            for r in self.records.values()
            if rule.is_due(r, now)
        ]

    async def update_where(self, rule: TransitionRule, now: datetime) -> list[ActivitySnapshot]:
        await asyncio.sleep(0)
        self._maybe_fail(rule)
        moved = []
        for record in self.records.values():
            if rule.is_due(record, now):
                self._set_status(record, rule.target)
                moved.append(ActivitySnapshot(id=record.id, title=record.title, status=record.status))
        return moved

    async def transition(
        self,
        activity_id: int,
        expected: ActivityStatus,
        target: ActivityStatus,
        now: datetime,
    ) -> int:
        await asyncio.sleep(0)
        record = self.records.get(activity_id)
        if record is None or record.status != expected:
            return 0
        self._set_status(record, target)
        return 1

    def _set_status(self, record: ActivityRecord, status: ActivityStatus) -> None:
        record.status = status.value
        self.history[record.id].append(status.value)

    def _maybe_fail(self, rule: TransitionRule) -> None:
        if rule.name in self.fail_rules:
            raise ConnectionError(f"activity store unavailable ({rule.name})")
