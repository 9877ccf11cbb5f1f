"""Operator routes for the activity lifecycle scheduler."""

from fastapi import APIRouter, Depends, HTTPException, Request

from venuehub.core.auth import AuthUser, require_auth
from venuehub.schemas.scheduler import SchedulerStatusResponse, TriggerResponse
from venuehub.scheduling.scheduler import ActivityScheduler

router = APIRouter()


def get_activity_scheduler(request: Request) -> ActivityScheduler:
    """Return the scheduler constructed in the application lifespan."""
    scheduler = getattr(request.app.state, "activity_scheduler", None)
    if scheduler is None:
        raise HTTPException(status_code=503, detail="Activity scheduler is not configured")
    return scheduler


@router.get("/status", response_model=SchedulerStatusResponse)
async def scheduler_status(
    user: AuthUser = Depends(require_auth),
    scheduler: ActivityScheduler = Depends(get_activity_scheduler),
):
    return SchedulerStatusResponse.from_status(scheduler.get_status())


@router.post("/trigger", response_model=TriggerResponse)
async def trigger_scheduler(
    user: AuthUser = Depends(require_auth),
    scheduler: ActivityScheduler = Depends(get_activity_scheduler),
):
    """Run one evaluation pass now, outside the timer cadence.

    A pass that fails or is skipped is still a 200; ``state`` says which.
    """
    report = await scheduler.trigger_manually()
    return TriggerResponse.from_report(report)
