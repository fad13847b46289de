"""Error taxonomy shared by the API client, the stores and the workflows."""

from typing import Any


class InvalidInputError(ValueError):
    """Raised when input is rejected before anything is sent to the API."""


class ApiError(Exception):
    """Raised for any failed call to the external RSVP API."""

    def __init__(self, message: str, status: int, data: Any = None) -> None:
        self.message = message
        self.status = status
        self.data = data if data is not None else {}
        super().__init__(message)


class SessionExpiredError(ApiError):
    """Raised after a 401 on an authenticated call has logged the user out."""

    def __init__(self, data: Any = None) -> None:
        super().__init__("Your session has expired. Please login again.", 401, data)


class NotFoundError(ApiError):
    """Raised for a 404, e.g. an invalid or expired invitation token."""


class NetworkError(ApiError):
    """Raised when the request never produced an HTTP response."""

    def __init__(self, message: str) -> None:
        super().__init__(message, 0)


class ResponseFormatError(ApiError):
    """Raised when a response body cannot be decoded into the expected shape."""
