class DomainError(Exception):
    """Base exception for attendance accounting rule violations."""


class ValidationError(DomainError):
    """Raised when a rule or record coming from the backend is malformed."""


class AuthError(DomainError):
    """Raised when no (or an invalid) credential is available."""


class NotCheckedInError(DomainError):
    """Raised when an operation needs an active session and there is none."""


class AlreadyCheckedInError(DomainError):
    """Informational: a session is already open. Never fatal."""


class OnBreakError(DomainError):
    """Raised when check-out is attempted while a break is running."""


class NetworkError(DomainError):
    """Raised for transport failures, non-2xx or non-JSON responses."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class CheckInFailed(NetworkError):
    """Check-in write failed; carries the backend message."""


class CheckOutFailed(NetworkError):
    """Check-out write failed; carries the backend message."""


class BreakStartFailed(NetworkError):
    """Persisting a break start failed."""


class BreakEndFailed(NetworkError):
    """Persisting a break end failed."""


class RequestInFlightError(DomainError):
    """A conflicting write for the same employee is still waiting on the backend."""
