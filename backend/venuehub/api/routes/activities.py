"""Activity API routes."""

from fastapi import APIRouter, Depends

from venuehub.core.auth import AuthUser, require_auth
from venuehub.db.base import get_session_factory
from venuehub.domain.activity_lifecycle import ActivityStatus
from venuehub.schemas.activities import (
    ActivityListResponse,
    ActivityMutationResponse,
    ActivityResponse,
    CreateActivityRequest,
    UpdateActivityRequest,
)
from venuehub.services.activity_service import ActivityService

router = APIRouter()


def get_activity_service() -> ActivityService:
    """Dependency that provides ActivityService.

    Override this dependency in tests via app.dependency_overrides.
    """
    return ActivityService(get_session_factory())


@router.post("", status_code=201, response_model=ActivityMutationResponse)
async def create_activity(
    request: CreateActivityRequest,
    user: AuthUser = Depends(require_auth),
    service: ActivityService = Depends(get_activity_service),
):
    """Create a new activity (status starts as upcoming)."""
    return await service.create_activity(user.user_id, request)


@router.get("", response_model=ActivityListResponse)
async def list_activities(
    status: ActivityStatus | None = None,
    service: ActivityService = Depends(get_activity_service),
):
    """List active activities of any status, or only those in ``status``."""
    return await service.list_activities(status)


@router.get("/upcoming", response_model=ActivityListResponse)
async def list_upcoming(service: ActivityService = Depends(get_activity_service)):
    return await service.list_activities(ActivityStatus.UPCOMING)


@router.get("/live", response_model=ActivityListResponse)
async def list_live(service: ActivityService = Depends(get_activity_service)):
    return await service.list_activities(ActivityStatus.LIVE)


@router.get("/{activity_id}", response_model=ActivityResponse)
async def get_activity(activity_id: int, service: ActivityService = Depends(get_activity_service)):
    """Fetch an activity by id; counts as a view."""
    return await service.get_activity(activity_id)


@router.put("/{activity_id}", response_model=ActivityMutationResponse)
async def update_activity(
    activity_id: int,
    request: UpdateActivityRequest,
    user: AuthUser = Depends(require_auth),
    service: ActivityService = Depends(get_activity_service),
):
    """Partially update an activity.

    Raises:
        HTTPException(404): Activity not found
        HTTPException(403): Caller is not the creator
        HTTPException(400): Activity is completed or cancelled
    """
    return await service.update_activity(user.user_id, activity_id, request)


@router.delete("/{activity_id}")
async def delete_activity(
    activity_id: int,
    user: AuthUser = Depends(require_auth),
    service: ActivityService = Depends(get_activity_service),
):
    await service.delete_activity(user.user_id, activity_id)
    return {"message": "Activity deleted successfully"}


@router.patch("/{activity_id}/make-live", response_model=ActivityMutationResponse)
async def make_live(
    activity_id: int,
    user: AuthUser = Depends(require_auth),
    service: ActivityService = Depends(get_activity_service),
):
    """Manually move an upcoming activity to live.

    Raises:
        HTTPException(400): Activity is not upcoming
        HTTPException(409): Status changed concurrently (e.g. the scheduler got there first)
    """
    return await service.make_live(user.user_id, activity_id)


@router.patch("/{activity_id}/complete", response_model=ActivityMutationResponse)
async def complete_activity(
    activity_id: int,
    user: AuthUser = Depends(require_auth),
    service: ActivityService = Depends(get_activity_service),
):
    return await service.complete(user.user_id, activity_id)


@router.patch("/{activity_id}/cancel", response_model=ActivityMutationResponse)
async def cancel_activity(
    activity_id: int,
    user: AuthUser = Depends(require_auth),
    service: ActivityService = Depends(get_activity_service),
):
    return await service.cancel(user.user_id, activity_id)


@router.patch("/{activity_id}/toggle-featured", response_model=ActivityMutationResponse)
async def toggle_featured(
    activity_id: int,
    user: AuthUser = Depends(require_auth),
    service: ActivityService = Depends(get_activity_service),
):
    return await service.toggle_featured(activity_id)
