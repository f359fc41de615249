"""
Domain errors raised by the issue services.

Each error carries the HTTP status and error code it is rendered with, so the
services stay free of FastAPI imports and the handlers in
``civicdesk.api.internal.utils.exceptions`` stay generic. Messages must never
contain storage paths or identifiers other than the issue id.
"""

# Standard library imports
from typing import Any


class CivicDeskError(Exception):
    status_code: int = 500
    code: str = "internal_server_error"
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)


class ValidationFailed(CivicDeskError):
    """Bad or missing input; ``details`` maps field name to reason."""

    status_code = 400
    code = "validation_failed"
    message = "Invalid request data"


class UnsupportedMedia(ValidationFailed):
    status_code = 415
    code = "unsupported_media"
    message = "Only image and video files are allowed"


class PayloadTooLarge(ValidationFailed):
    status_code = 413
    code = "payload_too_large"
    message = "File exceeds the allowed size"


class Unauthenticated(CivicDeskError):
    status_code = 401
    code = "unauthenticated"
    message = "Could not validate credentials"


class Unauthorized(CivicDeskError):
    """Role, ownership or lifecycle violation. Retrying the same request will not help."""

    status_code = 401
    code = "unauthorized"
    message = "Not authorized to perform this action"


class NotFound(CivicDeskError):
    status_code = 404
    code = "not_found"
    message = "Issue not found"


class StorageFailure(CivicDeskError):
    """Media or record persistence failed; nothing from the request was kept."""

    status_code = 500
    code = "storage_failure"
    message = "Could not store the report, please retry"
