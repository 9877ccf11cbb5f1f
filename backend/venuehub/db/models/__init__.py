"""Re-export all models so Base.metadata sees them."""

from venuehub.db.models.activity import Activity

__all__ = [
    "Activity",
]
