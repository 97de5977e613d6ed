"""Custom exceptions for the window alert poller.

Errors local to one device are logged and the tick moves on; errors global
to a tick abort that tick only. ConfigurationError is the only one that
stops the process.
"""


class WindowAlertError(Exception):
    """Base exception for all application errors."""


class ConfigurationError(WindowAlertError):
    """Raised at startup when required configuration is missing or invalid."""


class UpstreamError(WindowAlertError):
    """Base exception for errors talking to the measurement API."""


class NotificationError(WindowAlertError):
    """Base exception for notification-related errors."""


class NetworkError(UpstreamError, NotificationError):
    """Raised on a transport failure against either HTTP service."""


class ParseError(UpstreamError):
    """Raised when the measurement API returns a malformed payload."""


class UpstreamFailure(UpstreamError):
    """Raised when the measurement API reports the request as unsuccessful."""

    def __init__(self, message: str = "Upstream reported success=false") -> None:
        super().__init__(message)


class AuthError(NotificationError):
    """Raised when the push service rejects the application credentials."""


class ServiceError(NotificationError):
    """Raised when the push service answers with a non-success status."""

    def __init__(self, status: int, message: str = "") -> None:
        self.status = status
        super().__init__(message or f"Push service returned status {status}")


class DatabaseError(WindowAlertError):
    """Base exception for database-related errors."""


class StoreUnavailable(DatabaseError):
    """Raised when the database cannot be reached or queried."""


class DatabaseNotConnectedError(StoreUnavailable):
    """Raised when attempting database operations without a connection."""

    def __init__(self, message: str = "Database not connected") -> None:
        super().__init__(message)


class ConstraintViolation(DatabaseError):
    """Raised when an insert breaks the (device, time) uniqueness."""


class UnmatchedDeviceWarning(WindowAlertError):
    """An upstream entry whose external id matches no registered device.

    Recorded by the ingestor and logged; never raised out of a tick.
    """

    def __init__(self, external_id: str) -> None:
        self.external_id = external_id
        super().__init__(f"No registered device for external id {external_id!r}")
