"""Domain error taxonomy shared by the scheduling and routing cores"""


class DispatchError(Exception):
    """Base class for recoverable dispatch errors; ``str(err)`` is user-facing"""

    default_message = "Operation failed"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)

    @property
    def reason(self) -> str:
        return str(self)


class ValidationError(DispatchError):
    """Malformed input (e.g. end <= start), rejected before any mutation attempt"""

    default_message = "Invalid booking interval"


class ConflictError(DispatchError):
    """Overlap with another booking of the same staff member"""

    default_message = "Conflict: this staff member already has a booking at that time"


class PersistenceError(DispatchError):
    """The remote store rejected or never confirmed a write"""

    default_message = "Could not save the change"


class InsufficientFundsError(DispatchError):
    default_message = "Insufficient credits"


class InsufficientDataError(DispatchError):
    default_message = "Not enough bookings with location data"
