"""Error classes for the judging client.

Every failure a screen can surface derives from JudgingError and carries a
human-readable message suitable for the screen's error slot.
"""

from __future__ import annotations


class JudgingError(Exception):
    """Base exception for all client-side failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AccessDeniedError(JudgingError):
    """Raised when the session role is not allowed to use a resource.

    Resolved locally by the role gate where possible, otherwise mapped from
    an HTTP 403.
    """

    pass


class ValidationFailedError(JudgingError):
    """Raised before any request is sent (bad score, blank comment, no selection)."""

    pass


class InvalidTransitionError(ValidationFailedError):
    """Raised when a warning transition is requested from the wrong state."""

    pass


class RequestFailedError(JudgingError):
    """Raised for a non-200 response or a body that is not a JSON object."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ApplicationRejectedError(JudgingError):
    """Raised when the server answers 200 with ``success: false``."""

    pass


class ConnectionFailedError(JudgingError):
    """Raised when the transport itself failed (DNS, refused, reset)."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause
