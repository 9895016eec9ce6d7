from typing import Any, Optional


class LeadPoolError(Exception):
    """Base class for all lead-pool domain exceptions.

    Every custom exception in this module inherits from here so that a
    single ``except LeadPoolError`` clause can catch any domain error.
    """

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(detail)


class DataIntegrityError(LeadPoolError):
    """Raised when a record violates a data-model invariant.

    Carries the offending ``record_id`` (when it could be read) so that
    batch callers can report the failure against the right row while the
    rest of the batch carries on.
    """

    def __init__(
        self,
        detail: str = "Record violates a data integrity invariant",
        record_id: Optional[Any] = None,
    ):
        self.record_id = record_id
        super().__init__(detail)


class InvalidTransitionError(LeadPoolError):
    """Raised when a lifecycle transition is not permitted from the current state."""

    def __init__(self, detail: str = "Invalid lifecycle transition"):
        super().__init__(detail)


class UnauthorizedTransitionError(InvalidTransitionError):
    """Raised when the acting role may not perform a lifecycle transition."""

    def __init__(self, detail: str = "Actor role may not perform this transition"):
        super().__init__(detail)


class RecordNotFoundError(LeadPoolError):
    """Raised when a requested company or shared lead does not exist."""

    def __init__(self, detail: str = "Record not found"):
        super().__init__(detail)


class InvalidActorError(LeadPoolError):
    """Raised when the request carries no usable actor context."""

    def __init__(self, detail: str = "Missing or invalid actor context"):
        super().__init__(detail)


class UnauthorizedVisibilityError(LeadPoolError):
    """Marker for a visibility denial.

    Never raised: visibility checks resolve to ``False`` instead.  Kept so
    the taxonomy is complete for callers that log denial reasons.
    """

    def __init__(self, detail: str = "Record not visible to this actor"):
        super().__init__(detail)
