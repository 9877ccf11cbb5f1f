from fastapi import APIRouter

from venuehub.api.routes import activities, health, scheduler

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(activities.router, prefix="/activities", tags=["activities"])
api_router.include_router(scheduler.router, prefix="/scheduler", tags=["scheduler"])
