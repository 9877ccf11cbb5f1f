"""Activity model: time-bound events at or independent of a place."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, CheckConstraint, Column, DateTime, Index, Integer, Numeric, String, Text

from venuehub.db.base import Base


class Activity(Base):
    __tablename__ = "activities"
    __table_args__ = (
        Index("idx_activities_active_status", "is_active", "status"),
        CheckConstraint(
            "status IN ('upcoming', 'live', 'completed', 'cancelled')",
            name="ck_activities_status",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    place_id = Column(Integer, nullable=True, index=True)  # null when the activity is not place-specific

    title = Column(String(200), nullable=False)
    slug = Column(String(200), nullable=True, unique=True, index=True)
    description = Column(Text, nullable=True)
    activity_type = Column(String(20), nullable=False, default="event", index=True)  # ActivityType values
    status = Column(String(20), nullable=False, default="upcoming", index=True)  # ActivityStatus values

    # Location (if different from place, or no place)
    location = Column(String(500), nullable=True)
    latitude = Column(Numeric(10, 8), nullable=True)
    longitude = Column(Numeric(11, 8), nullable=True)

    # Schedule
    start_date = Column(DateTime(timezone=True), nullable=False, index=True)
    end_date = Column(DateTime(timezone=True), nullable=True)

    image_path = Column(String(255), nullable=True)

    # Admission
    entry_fee = Column(Numeric(10, 2), nullable=True, default=0)
    is_free = Column(Boolean, nullable=False, default=True)
    max_participants = Column(Integer, nullable=True)  # null for unlimited
    current_participants = Column(Integer, nullable=False, default=0)

    # Contact
    contact_phone = Column(String(20), nullable=True)
    contact_email = Column(String(100), nullable=True)
    organizer_name = Column(String(200), nullable=True)
    tags = Column(JSON, nullable=True, default=list)

    # Flags
    is_featured = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)  # scheduler ignores inactive rows
    view_count = Column(Integer, nullable=False, default=0)

    created_by = Column(Integer, nullable=True)

    # Audit
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
