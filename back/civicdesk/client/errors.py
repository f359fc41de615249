"""
Errors surfaced by the reporting client.
"""

# Standard library imports
from typing import Any


class ClientError(Exception):
    pass


class DeviceUnavailable(ClientError):
    """Camera, microphone or geolocation denied or missing. Retryable; offer the manual path."""


class CaptureStateError(ClientError):
    """A capture call was made in a state that does not allow it."""


class InvalidCoordinate(ClientError, ValueError):
    pass


class IncompleteReport(ClientError):
    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing required fields: {', '.join(missing)}")


class SubmissionInProgress(ClientError):
    pass


class ApiError(ClientError):
    """Non-2xx response from the issue API."""

    def __init__(self, status_code: int, code: str, message: str, details: Any = None):
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details
        super().__init__(f"{status_code} {code}: {message}")


class SubmissionFailed(ClientError):
    """Transport error or server fault; the same submission can be retried."""

    retryable = True


class SubmissionRejected(ClientError):
    """The server refused the report (validation, auth); fix the input before retrying."""

    retryable = False

    def __init__(self, error: ApiError):
        self.error = error
        super().__init__(error.message)
