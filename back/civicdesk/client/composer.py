# Standard library imports
from enum import Enum
from typing import Any

# Third-party imports
import httpx

# Local application imports
from civicdesk.client.api_client import IssueClient
from civicdesk.client.capture import CaptureResult, MediaArtifact
from civicdesk.client.errors import (
    ApiError,
    IncompleteReport,
    SubmissionFailed,
    SubmissionInProgress,
    SubmissionRejected,
)
from civicdesk.client.location import LocationPicker
from civicdesk.core.monitoring.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CATEGORY = "infrastructure"
DEFAULT_PRIORITY = "medium"


class ComposerState(str, Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"


class ReportComposer:
    """
    Collects a report's fields, location and media, then submits it in one
    multipart request.

    A failed submission leaves every field in place so it can be retried as is.
    A successful one clears the composer for the next report.
    """

    def __init__(self, client: IssueClient, location: LocationPicker | None = None):
        self.client = client
        self.location = location or LocationPicker()
        self.state = ComposerState.EDITING
        self._attachments: list[MediaArtifact] = []
        self._clear_fields()

    @property
    def attachments(self) -> tuple[MediaArtifact, ...]:
        return tuple(self._attachments)

    def attach_media(self, artifact: MediaArtifact) -> None:
        self._attachments.append(artifact)

    def attach_capture(self, result: CaptureResult) -> bool:
        """Merge a finished capture; cancelled captures add nothing."""
        if result.artifact is None:
            return False
        self.attach_media(result.artifact)
        return True

    def remove_media(self, index: int) -> None:
        if 0 <= index < len(self._attachments):
            del self._attachments[index]

    def missing_fields(self) -> list[str]:
        missing = [
            name
            for name in ("title", "description", "category", "priority")
            if not (getattr(self, name) or "").strip()
        ]
        if self.location.selection is None:
            missing.append("coordinates")
        return missing

    def form_fields(self) -> dict[str, str]:
        coordinate = self.location.selection
        fields = {
            "title": self.title.strip(),
            "description": self.description.strip(),
            "category": self.category,
            "priority": self.priority,
            "latitude": repr(coordinate.latitude),
            "longitude": repr(coordinate.longitude),
        }
        if self.location_description.strip():
            fields["locationDescription"] = self.location_description.strip()
        return fields

    async def submit(self) -> dict[str, Any]:
        """Send the report; returns the created issue."""
        if self.state == ComposerState.SUBMITTING:
            raise SubmissionInProgress("This report is already being submitted")

        missing = self.missing_fields()
        if missing:
            raise IncompleteReport(missing)

        fields = self.form_fields()
        media = list(self._attachments)

        self.state = ComposerState.SUBMITTING
        try:
            created = await self.client.create_issue(fields, media)
        except httpx.TransportError as exc:
            logger.warning(f"Report submission failed in transit: {exc!r}")
            raise SubmissionFailed("Could not reach the server, please retry") from exc
        except ApiError as exc:
            if exc.status_code >= 500:
                raise SubmissionFailed(exc.message) from exc
            raise SubmissionRejected(exc) from exc
        finally:
            self.state = ComposerState.EDITING

        logger.info(f"Report submitted with {len(media)} attachments")
        self.reset()
        return created

    def reset(self) -> None:
        self._clear_fields()
        self.location.clear()

    def _clear_fields(self) -> None:
        self.title = ""
        self.description = ""
        self.category = DEFAULT_CATEGORY
        self.priority = DEFAULT_PRIORITY
        self.location_description = ""
        self._attachments = []
