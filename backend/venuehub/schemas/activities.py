"""Activity Pydantic schemas for API requests and responses."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from venuehub.domain.activity_lifecycle import ActivityStatus, ActivityType


class _ActivityFields(BaseModel):
    place_id: int | None = None
    description: str | None = None
    location: str | None = Field(default=None, max_length=500)
    latitude: Decimal | None = Field(default=None, ge=-90, le=90)
    longitude: Decimal | None = Field(default=None, ge=-180, le=180)
    end_date: datetime | None = None
    entry_fee: Decimal | None = Field(default=None, ge=0)
    max_participants: int | None = Field(default=None, ge=1)
    contact_phone: str | None = Field(default=None, max_length=20)
    contact_email: str | None = Field(default=None, max_length=100)
    organizer_name: str | None = Field(default=None, max_length=200)


class CreateActivityRequest(_ActivityFields):
    """Request model for activity creation. Status always starts as upcoming."""

    title: str = Field(..., min_length=1, max_length=200)
    slug: str | None = Field(default=None, max_length=200)
    activity_type: ActivityType = ActivityType.EVENT
    start_date: datetime
    is_free: bool = True
    tags: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _end_after_start(self) -> "CreateActivityRequest":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class UpdateActivityRequest(_ActivityFields):
    """Partial update; only fields present in the request body are applied."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    activity_type: ActivityType | None = None
    start_date: datetime | None = None
    is_free: bool | None = None
    tags: list[str] | None = None


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    place_id: int | None
    title: str
    slug: str | None
    description: str | None
    activity_type: str
    status: ActivityStatus
    location: str | None
    latitude: Decimal | None
    longitude: Decimal | None
    start_date: datetime
    end_date: datetime | None
    image_path: str | None
    entry_fee: Decimal | None
    is_free: bool
    max_participants: int | None
    current_participants: int
    contact_phone: str | None
    contact_email: str | None
    organizer_name: str | None
    tags: list[str] | None
    is_featured: bool
    is_active: bool
    view_count: int
    created_by: int | None
    created_at: datetime
    updated_at: datetime


class ActivityListResponse(BaseModel):
    count: int
    data: list[ActivityResponse]


class ActivityMutationResponse(BaseModel):
    """Response for create/update/transition endpoints."""

    message: str
    data: ActivityResponse
