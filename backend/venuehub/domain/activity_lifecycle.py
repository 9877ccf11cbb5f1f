"""Activity status lifecycle rules.

Pure domain functions for the upcoming -> live -> completed progression and
the manual transitions layered on top of it. No DB access, fully
deterministic: every decision takes ``now`` as an argument.

Lifecycle:
    upcoming -> live -> completed
    upcoming | live -> cancelled   (terminal, never re-entered automatically)
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import StrEnum
from typing import Protocol


class ActivityStatus(StrEnum):
    """Activity lifecycle states."""

    UPCOMING = "upcoming"
    LIVE = "live"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ActivityType(StrEnum):
    SPORTS = "sports"
    MUSIC = "music"
    CLUB = "club"
    DJ = "dj"
    EVENT = "event"
    FESTIVAL = "festival"
    WORKSHOP = "workshop"
    OTHER = "other"


class ScheduledActivity(Protocol):
    """The slice of an activity record the lifecycle rules read."""

    status: str
    is_active: bool
    start_date: datetime
    end_date: datetime | None


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC (some drivers drop tzinfo on read)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class TransitionRule:
    """A time-driven transition: source -> target once ``time_field <= now``.

    The same rule drives both the due-set read and the guarded bulk update,
    so the update filter always matches what was evaluated.
    """

    name: str
    source: ActivityStatus
    target: ActivityStatus
    time_field: str  # "start_date" or "end_date"

    def is_due(self, activity: ScheduledActivity, now: datetime) -> bool:
        """True if this rule would move ``activity`` at ``now``.

        Inactive records and records outside the source state are never due.
        A missing timestamp (open-ended activity) is never due.
        """
        if not activity.is_active:
            return False
        if activity.status != self.source:
            return False
        moment = getattr(activity, self.time_field)
        if moment is None:
            return False
        return ensure_utc(moment) <= ensure_utc(now)


PROMOTE_TO_LIVE = TransitionRule(
    name="promote_to_live",
    source=ActivityStatus.UPCOMING,
    target=ActivityStatus.LIVE,
    time_field="start_date",
)

PROMOTE_TO_COMPLETED = TransitionRule(
    name="promote_to_completed",
    source=ActivityStatus.LIVE,
    target=ActivityStatus.COMPLETED,
    time_field="end_date",
)

# Evaluation order within a tick. Live promotion runs first so an activity
# whose whole window is already in the past completes in a single pass.
TRANSITION_RULES: tuple[TransitionRule, ...] = (PROMOTE_TO_LIVE, PROMOTE_TO_COMPLETED)


# ---------------------------------------------------------------------------
# Manual transition legality
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TransitionCheck:
    """Outcome of a legality check: allowed, or rejected with a reason."""

    allowed: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


_ALLOWED = TransitionCheck(allowed=True)


def can_cancel(activity: ScheduledActivity) -> TransitionCheck:
    """Cancelling is legal from upcoming or live."""
    if activity.status == ActivityStatus.CANCELLED:
        return TransitionCheck(False, "Activity is already cancelled")
    if activity.status == ActivityStatus.COMPLETED:
        return TransitionCheck(False, "Cannot cancel a completed activity")
    return _ALLOWED


def can_make_live(activity: ScheduledActivity) -> TransitionCheck:
    """Manual go-live is legal only from upcoming. Not gated on start_date."""
    if activity.status == ActivityStatus.LIVE:
        return TransitionCheck(False, "Activity is already live")
    if activity.status != ActivityStatus.UPCOMING:
        return TransitionCheck(False, f"Cannot make {activity.status} activity live")
    return _ALLOWED


def can_complete(activity: ScheduledActivity) -> TransitionCheck:
    """Manual completion is legal from any state except completed. Not gated on end_date."""
    if activity.status == ActivityStatus.COMPLETED:
        return TransitionCheck(False, "Activity is already completed")
    return _ALLOWED


def can_update(activity: ScheduledActivity) -> TransitionCheck:
    """Field edits are refused once an activity has reached a terminal state."""
    if activity.status == ActivityStatus.COMPLETED:
        return TransitionCheck(False, "Cannot update a completed activity")
    if activity.status == ActivityStatus.CANCELLED:
        return TransitionCheck(False, "Cannot update a cancelled activity")
    return _ALLOWED


def slugify(title: str) -> str:
    """Lowercase, collapse non-alphanumerics to single dashes, trim dashes."""
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
