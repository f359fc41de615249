from civicdesk.client.api_client import IssueClient
from civicdesk.client.capture import (
    CaptureDevice,
    CaptureMode,
    CaptureResult,
    CaptureState,
    MediaArtifact,
    MediaCapture,
    MediaKind,
    MediaStream,
)
from civicdesk.client.composer import ComposerState, ReportComposer
from civicdesk.client.errors import (
    ApiError,
    CaptureStateError,
    ClientError,
    DeviceUnavailable,
    IncompleteReport,
    InvalidCoordinate,
    SubmissionFailed,
    SubmissionInProgress,
    SubmissionRejected,
)
from civicdesk.client.location import Coordinate, Geolocator, LocationPicker, MapView
from civicdesk.client.scheduler import AsyncioScheduler, Scheduler

__all__ = [
    "ApiError",
    "AsyncioScheduler",
    "CaptureDevice",
    "CaptureMode",
    "CaptureResult",
    "CaptureState",
    "CaptureStateError",
    "ClientError",
    "ComposerState",
    "Coordinate",
    "DeviceUnavailable",
    "Geolocator",
    "IncompleteReport",
    "InvalidCoordinate",
    "IssueClient",
    "LocationPicker",
    "MapView",
    "MediaArtifact",
    "MediaCapture",
    "MediaKind",
    "MediaStream",
    "ReportComposer",
    "Scheduler",
    "SubmissionFailed",
    "SubmissionInProgress",
    "SubmissionRejected",
]
