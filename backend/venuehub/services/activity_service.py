"""ActivityService: request-driven activity mutations.

Manual lifecycle actions (make-live, complete, cancel) are checked against the
lifecycle legality rules and then applied through the same guarded update the
scheduler uses: the write only lands if the row is still in the status that
was checked. Losing that race to the scheduler surfaces as a 409.
"""

from collections.abc import Callable

import structlog
from fastapi import HTTPException
from sqlalchemy import not_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from venuehub.db.models.activity import Activity
from venuehub.domain.activity_lifecycle import (
    ActivityStatus,
    ScheduledActivity,
    TransitionCheck,
    can_cancel,
    can_complete,
    can_make_live,
    can_update,
    ensure_utc,
    slugify,
)
from venuehub.schemas.activities import (
    ActivityListResponse,
    ActivityMutationResponse,
    ActivityResponse,
    CreateActivityRequest,
    UpdateActivityRequest,
)
from venuehub.scheduling.clock import Clock, SystemClock
from venuehub.scheduling.store import SqlActivityStore

logger = structlog.get_logger(__name__)

_DATE_FIELDS = ("start_date", "end_date")
_NON_NULLABLE = ("title", "activity_type", "start_date", "is_free")


class ActivityService:
    """Service layer for activity CRUD and manual lifecycle transitions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], clock: Clock | None = None):
        """Initialize with dependency injection.

        Args:
            session_factory: SQLAlchemy async session factory
            clock: Time source for audit timestamps (defaults to system UTC)
        """
        self.session_factory = session_factory
        self.clock = clock or SystemClock()
        self.store = SqlActivityStore(session_factory)

    async def create_activity(self, user_id: int, request: CreateActivityRequest) -> ActivityMutationResponse:
        """Create an activity in the upcoming state.

        A start_date in the past is accepted; the next scheduler pass promotes it.
        """
        values = request.model_dump(exclude={"slug"})
        for name in _DATE_FIELDS:
            if values.get(name) is not None:
                values[name] = ensure_utc(values[name])
        values["activity_type"] = request.activity_type.value
        if values.get("entry_fee") is None:
            values["entry_fee"] = 0

        async with self.session_factory() as session:
            slug = await self._unique_slug(session, request.slug or slugify(request.title))
            activity = Activity(
                **values,
                slug=slug,
                status=ActivityStatus.UPCOMING.value,
                created_by=user_id,
            )
            session.add(activity)
            await session.commit()
            await session.refresh(activity)

            logger.info("activity_created", activity_id=activity.id, user_id=user_id, start_date=str(activity.start_date))
            return ActivityMutationResponse(
                message="Activity created successfully",
                data=ActivityResponse.model_validate(activity),
            )

    async def get_activity(self, activity_id: int) -> ActivityResponse:
        """Fetch an active activity and count the view.

        Raises:
            HTTPException(404): Activity not found or inactive
        """
        async with self.session_factory() as session:
            result = await session.execute(
                update(Activity)
                .where(Activity.id == activity_id, Activity.is_active.is_(True))
                .values(view_count=Activity.view_count + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise HTTPException(status_code=404, detail="Activity not found")
            await session.commit()

            activity = await session.get(Activity, activity_id)
            return ActivityResponse.model_validate(activity)

    async def list_activities(self, status: ActivityStatus | None = None) -> ActivityListResponse:
        """List active activities, optionally in one status.

        Live lists run newest first. Unfiltered lists group by status, then
        start_date, most recently created first within a tie.
        """
        query = select(Activity).where(Activity.is_active.is_(True))
        if status is None:
            query = query.order_by(Activity.status, Activity.start_date, Activity.created_at.desc(), Activity.id)
        else:
            order = Activity.start_date.desc() if status == ActivityStatus.LIVE else Activity.start_date.asc()
            query = query.where(Activity.status == status.value).order_by(order, Activity.id)

        async with self.session_factory() as session:
            result = await session.execute(query)
            data = [ActivityResponse.model_validate(a) for a in result.scalars().all()]
            return ActivityListResponse(count=len(data), data=data)

    async def update_activity(
        self,
        user_id: int,
        activity_id: int,
        request: UpdateActivityRequest,
    ) -> ActivityMutationResponse:
        """Apply a partial update. Status is never written here.

        Raises:
            HTTPException(404): Activity not found
            HTTPException(403): Caller is not the creator
            HTTPException(400): Activity is completed or cancelled
        """
        changes = request.model_dump(exclude_unset=True)
        async with self.session_factory() as session:
            activity = await self._load_owned(session, user_id, activity_id, action="update")
            self._reject_unless(can_update(activity))

            for name, value in changes.items():
                if value is None and name in _NON_NULLABLE:
                    continue
                if name in _DATE_FIELDS and value is not None:
                    value = ensure_utc(value)
                elif name == "activity_type" and value is not None:
                    value = value.value
                setattr(activity, name, value)

            if activity.end_date is not None and ensure_utc(activity.end_date) < ensure_utc(activity.start_date):
                raise HTTPException(status_code=400, detail="end_date cannot be before start_date")

            await session.commit()
            await session.refresh(activity)

            logger.info("activity_updated", activity_id=activity_id, user_id=user_id, fields=sorted(changes))
            return ActivityMutationResponse(
                message="Activity updated successfully",
                data=ActivityResponse.model_validate(activity),
            )

    async def delete_activity(self, user_id: int, activity_id: int) -> None:
        """Delete an activity owned by the caller.

        Raises:
            HTTPException(404): Activity not found
            HTTPException(403): Caller is not the creator
        """
        async with self.session_factory() as session:
            activity = await self._load_owned(session, user_id, activity_id, action="delete")
            await session.delete(activity)
            await session.commit()
            logger.info("activity_deleted", activity_id=activity_id, user_id=user_id)

    async def make_live(self, user_id: int, activity_id: int) -> ActivityMutationResponse:
        """Manual override: upcoming -> live regardless of start_date."""
        return await self._manual_transition(
            user_id, activity_id, can_make_live, ActivityStatus.LIVE, "Activity is now live"
        )

    async def complete(self, user_id: int, activity_id: int) -> ActivityMutationResponse:
        """Manual completion regardless of end_date."""
        return await self._manual_transition(
            user_id, activity_id, can_complete, ActivityStatus.COMPLETED, "Activity marked as completed"
        )

    async def cancel(self, user_id: int, activity_id: int) -> ActivityMutationResponse:
        return await self._manual_transition(
            user_id, activity_id, can_cancel, ActivityStatus.CANCELLED, "Activity cancelled successfully"
        )

    async def toggle_featured(self, activity_id: int) -> ActivityMutationResponse:
        """Flip is_featured in place.

        Raises:
            HTTPException(404): Activity not found
        """
        async with self.session_factory() as session:
            result = await session.execute(
                update(Activity)
                .where(Activity.id == activity_id)
                .values(is_featured=not_(Activity.is_featured))
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise HTTPException(status_code=404, detail="Activity not found")
            await session.commit()

            activity = await session.get(Activity, activity_id)
            state = "featured" if activity.is_featured else "unfeatured"
            return ActivityMutationResponse(
                message=f"Activity {state} successfully",
                data=ActivityResponse.model_validate(activity),
            )

    async def _manual_transition(
        self,
        user_id: int,
        activity_id: int,
        check: Callable[[ScheduledActivity], TransitionCheck],
        target: ActivityStatus,
        message: str,
    ) -> ActivityMutationResponse:
        """Check legality against the observed status, then update guarded by that status.

        Raises:
            HTTPException(404): Activity not found
            HTTPException(403): Caller is not the creator
            HTTPException(400): Transition not legal from the current status
            HTTPException(409): Status changed between the check and the update
        """
        async with self.session_factory() as session:
            activity = await self._load_owned(session, user_id, activity_id, action="modify")
            self._reject_unless(check(activity))
            observed = ActivityStatus(activity.status)

        rows = await self.store.transition(activity_id, observed, target, self.clock.now())
        if rows == 0:
            logger.info(
                "activity_manual_transition_conflict",
                activity_id=activity_id,
                expected_status=observed.value,
                target_status=target.value,
            )
            raise HTTPException(
                status_code=409,
                detail=f"Activity is no longer {observed.value}; reload and try again",
            )

        logger.info(
            "activity_manual_transition",
            activity_id=activity_id,
            user_id=user_id,
            from_status=observed.value,
            to_status=target.value,
        )
        async with self.session_factory() as session:
            activity = await session.get(Activity, activity_id)
            return ActivityMutationResponse(message=message, data=ActivityResponse.model_validate(activity))

    async def _load_owned(self, session: AsyncSession, user_id: int, activity_id: int, action: str) -> Activity:
        activity = await session.get(Activity, activity_id)
        if activity is None:
            raise HTTPException(status_code=404, detail="Activity not found")
        if activity.created_by != user_id:
            raise HTTPException(status_code=403, detail=f"Not authorized to {action} this activity")
        return activity

    @staticmethod
    def _reject_unless(check: TransitionCheck) -> None:
        if not check:
            raise HTTPException(status_code=400, detail=check.reason)

    @staticmethod
    async def _unique_slug(session: AsyncSession, base: str) -> str | None:
        if not base:
            return None
        candidate, suffix = base, 2
        while (await session.execute(select(Activity.id).where(Activity.slug == candidate))).first() is not None:
            candidate = f"{base}-{suffix}"
            suffix += 1
        return candidate
