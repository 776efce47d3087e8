"""Exceptions raised by the account, ingestion and rollover services.

Each exception carries the HTTP status the API layer responds with, so the
services stay free of FastAPI imports.
"""

from fastapi import status


class WaterTrackerError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class MissingParameter(WaterTrackerError):
    """A required request field was absent or empty."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidReading(WaterTrackerError):
    """A usage value was not a valid non-negative integer."""

    status_code = status.HTTP_400_BAD_REQUEST


class UserNotFound(WaterTrackerError):
    """No user matched the given username or API key."""

    status_code = status.HTTP_404_NOT_FOUND


class DuplicateUsername(WaterTrackerError):
    """Registration attempted with a username that is already taken."""

    status_code = status.HTTP_400_BAD_REQUEST


class CredentialMismatch(WaterTrackerError):
    """Login failed. Unknown users and wrong passwords are not distinguished."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class StorePersistenceError(WaterTrackerError):
    """The document store could not be read or written."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
