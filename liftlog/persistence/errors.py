"""Error types for the persistence layer."""


class TrainingLogError(RuntimeError):
    """Raised when the training log file exists but cannot be read or parsed."""


class ExternalActivityNotFoundError(LookupError):
    """Raised when a stored external activity id does not exist.

    Expected condition on a stale toggle request; the API maps it to 404.
    """

    def __init__(self, activity_id: str) -> None:
        super().__init__(f"External activity not found: {activity_id}")
        self.activity_id = activity_id
