class VenueHubError(Exception):
    """Base exception for the VenueHub backend."""

    pass


class ActivityStoreError(VenueHubError):
    """Raised when the activity store fails while a transition rule is executing."""

    def __init__(self, rule: str, cause: Exception):
        self.rule = rule
        self.cause = cause
        super().__init__(f"Activity store failed during rule '{rule}': {cause}")
