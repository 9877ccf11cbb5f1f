"""Activity Store: read-by-predicate and guarded bulk updates over activities.

Every status write is a single ``UPDATE ... WHERE`` whose filter includes the
expected source status. Two actors racing on the same row therefore resolve
to one update taking effect and the other affecting zero rows.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from venuehub.db.models.activity import Activity
from venuehub.domain.activity_lifecycle import ActivityStatus, TransitionRule


@dataclass(frozen=True)
class ActivitySnapshot:
    """Identifying info for an activity matched by a rule."""

    id: int
    title: str
    status: str


class ActivityStore(Protocol):
    async def find_due(self, rule: TransitionRule, now: datetime) -> list[ActivitySnapshot]:
        """Return active records the rule would move at ``now``."""
        ...

    async def update_where(self, rule: TransitionRule, now: datetime) -> list[ActivitySnapshot]:
        """Apply ``rule.target`` to every record matching the rule's predicate.

        Returns the records this update moved, in id order, with their new status.
        """
        ...

    async def transition(
        self,
        activity_id: int,
        expected: ActivityStatus,
        target: ActivityStatus,
        now: datetime,
    ) -> int:
        """Move one record from ``expected`` to ``target``; 0 if it is no longer in ``expected``."""
        ...


def due_filter(rule: TransitionRule, now: datetime):
    """SQL predicate equivalent to ``rule.is_due`` for every row."""
    moment = getattr(Activity, rule.time_field)
    return and_(
        Activity.is_active.is_(True),
        Activity.status == rule.source.value,
        moment.is_not(None),
        moment <= now,
    )


class SqlActivityStore:
    """ActivityStore backed by the ``activities`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def find_due(self, rule: TransitionRule, now: datetime) -> list[ActivitySnapshot]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Activity.id, Activity.title, Activity.status)
                .where(due_filter(rule, now))
                .order_by(Activity.id)
            )
            return [ActivitySnapshot(id=row.id, title=row.title, status=row.status) for row in result]

    async def update_where(self, rule: TransitionRule, now: datetime) -> list[ActivitySnapshot]:
        async with self.session_factory() as session:
            result = await session.execute(
                update(Activity)
                .where(due_filter(rule, now))
                .values(status=rule.target.value, updated_at=now)
                .returning(Activity.id, Activity.title, Activity.status)
                .execution_options(synchronize_session=False)
            )
            moved = [ActivitySnapshot(id=row.id, title=row.title, status=row.status) for row in result]
            await session.commit()
            return sorted(moved, key=lambda a: a.id)

    async def transition(
        self,
        activity_id: int,
        expected: ActivityStatus,
        target: ActivityStatus,
        now: datetime,
    ) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                update(Activity)
                .where(Activity.id == activity_id, Activity.status == expected.value)
                .values(status=target.value, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            return result.rowcount
