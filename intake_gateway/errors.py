"""
Error taxonomy for the intake gateway.

ClientError is the caller's fault and is surfaced verbatim.
ServerError is the system's fault and always carries a generic message;
the underlying detail is logged, never returned.
"""


class IntakeError(Exception):
    """Base class for errors translated into an HTTP response."""

    status_code: int = 500
    message: str = "Internal error, please try again later."

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ClientError(IntakeError):
    """Invalid input from the caller (HTTP 400)."""

    status_code = 400

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class RateLimitExceeded(ClientError):
    """Too many submissions from one client identifier (HTTP 429)."""

    status_code = 429

    def __init__(
        self,
        message: str = "Too many requests, please try again in a few minutes.",
        retry_after: int | None = None,
        limit: int | None = None,
    ):
        super().__init__(message)
        self.retry_after = retry_after
        self.limit = limit


class ServerError(IntakeError):
    """Store failure or unexpected fault (HTTP 500)."""

    status_code = 500


class StoreError(Exception):
    """Raised by a store when a record could not be persisted."""
