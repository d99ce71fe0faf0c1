"""Errors raised by the cloud API clients."""

from typing import Optional


class ApiError(Exception):
    """The API server rejected a request or could not be reached."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.reason = reason

    @property
    def not_found(self) -> bool:
        return False


class NotFoundError(ApiError):
    """The requested object does not exist (HTTP 404 / reason NotFound)."""

    def __init__(self, message: str, reason: Optional[str] = "NotFound"):
        super().__init__(message, status_code=404, reason=reason)

    @property
    def not_found(self) -> bool:
        return True


class ConflictError(ApiError):
    """The object already exists or was modified concurrently (HTTP 409)."""

    def __init__(self, message: str, reason: Optional[str] = "AlreadyExists"):
        super().__init__(message, status_code=409, reason=reason)


class ApiUnavailableError(ApiError):
    """Transport-level failure talking to the API server."""


def is_not_found(error: Optional[BaseException]) -> bool:
    return isinstance(error, ApiError) and error.not_found
