"""Domain semantic exceptions."""


class DomainError(Exception):
    """Base domain exception."""


class InvalidTimeFormat(DomainError, ValueError):
    """Raised when a wall-clock string is not HH:MM."""


class SessionNotFound(DomainError):
    """Raised when no execution session exists for a trip id."""

    def __init__(self, trip_id: str) -> None:
        super().__init__(f"no execution session for trip {trip_id}")
        self.trip_id = trip_id


class SessionNotStarted(DomainError):
    """Raised when an execution session is used before a day was started."""
