# Standard library imports
import asyncio

# Third-party imports
import httpx
import pytest

# Local application imports
from civicdesk.client import (
    ApiError,
    CaptureResult,
    ComposerState,
    IncompleteReport,
    IssueClient,
    LocationPicker,
    MediaArtifact,
    MediaKind,
    ReportComposer,
    SubmissionFailed,
    SubmissionInProgress,
    SubmissionRejected,
)
from civicdesk.utils.token_utils import create_access_token
from main import app

PHOTO = MediaArtifact(kind=MediaKind.PHOTO, data=b"jpeg-frame", content_type="image/jpeg", file_name="capture.jpg")
VIDEO = MediaArtifact(kind=MediaKind.VIDEO, data=b"webm-data", content_type="video/webm", file_name="capture.webm")


def _client(handler) -> IssueClient:
    return IssueClient("http://civicdesk.test", token="token-123", transport=httpx.MockTransport(handler))


def _filled(client: IssueClient) -> ReportComposer:
    composer = ReportComposer(client, LocationPicker())
    composer.title = "Pothole on Main St"
    composer.description = "Deep pothole in the left lane"
    composer.category = "roads"
    composer.priority = "high"
    composer.location_description = "Main St & 3rd Ave"
    composer.location.pick_on_map(40.7128, -74.0060)
    composer.attach_media(PHOTO)
    return composer


def _error(status: int, code: str, details=None) -> httpx.Response:
    return httpx.Response(status, json={"ok": False, "error": {"code": code, "message": code, "details": details}})


async def test_incomplete_report_is_not_sent():
    requests = []
    composer = ReportComposer(_client(requests.append))

    with pytest.raises(IncompleteReport) as exc_info:
        await composer.submit()

    assert exc_info.value.missing == ["title", "description", "coordinates"]
    assert requests == []


def test_defaults_and_blank_fields():
    composer = ReportComposer(_client(lambda request: httpx.Response(201)))
    assert composer.category == "infrastructure"
    assert composer.priority == "medium"

    composer.title = "   "
    composer.category = ""
    assert composer.missing_fields() == ["title", "description", "category", "coordinates"]


async def test_successful_submit_sends_multipart_and_clears():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"id": "abc", "status": "pending"})

    composer = _filled(_client(handler))
    composer.attach_media(VIDEO)

    created = await composer.submit()

    assert created == {"id": "abc", "status": "pending"}
    (request,) = seen
    assert request.method == "POST"
    assert request.url.path == "/api/v1/issues"
    assert request.headers["authorization"] == "Bearer token-123"
    assert request.headers["content-type"].startswith("multipart/form-data")
    body = request.content
    assert b'name="title"' in body
    assert b'name="locationDescription"' in body
    assert b"40.7128" in body
    assert b'name="images"; filename="capture.jpg"' in body
    assert b'name="videos"; filename="capture.webm"' in body

    assert composer.title == ""
    assert composer.attachments == ()
    assert composer.location.selection is None
    assert composer.state == ComposerState.EDITING


@pytest.mark.parametrize(
    "handler",
    [
        lambda request: _error(500, "storage_failure"),
        lambda request: _error(503, "unavailable"),
    ],
)
async def test_server_fault_keeps_report_for_retry(handler):
    composer = _filled(_client(handler))

    with pytest.raises(SubmissionFailed) as exc_info:
        await composer.submit()

    assert exc_info.value.retryable
    assert composer.state == ComposerState.EDITING
    assert composer.title == "Pothole on Main St"
    assert composer.attachments == (PHOTO,)
    assert composer.location.selection is not None


async def test_network_error_keeps_report_for_retry():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    composer = _filled(_client(handler))

    with pytest.raises(SubmissionFailed):
        await composer.submit()
    assert composer.attachments == (PHOTO,)
    assert composer.missing_fields() == []


async def test_rejected_report_exposes_server_error():
    composer = _filled(_client(lambda request: _error(400, "validation_failed", {"latitude": "out of range"})))

    with pytest.raises(SubmissionRejected) as exc_info:
        await composer.submit()

    assert not exc_info.value.retryable
    assert exc_info.value.error.status_code == 400
    assert exc_info.value.error.details == {"latitude": "out of range"}
    assert composer.title == "Pothole on Main St"


async def test_second_submit_while_in_flight_is_refused():
    release = asyncio.Event()

    async def handler(request):
        await release.wait()
        return httpx.Response(201, json={"id": "abc"})

    composer = _filled(_client(handler))
    first = asyncio.create_task(composer.submit())
    await asyncio.sleep(0.01)
    assert composer.state == ComposerState.SUBMITTING

    with pytest.raises(SubmissionInProgress):
        await composer.submit()

    release.set()
    assert await first == {"id": "abc"}


def test_remove_media_ignores_bad_index():
    composer = ReportComposer(_client(lambda request: httpx.Response(201)))
    composer.attach_media(PHOTO)
    composer.attach_media(VIDEO)

    composer.remove_media(5)
    composer.remove_media(-1)
    assert composer.attachments == (PHOTO, VIDEO)

    composer.remove_media(0)
    assert composer.attachments == (VIDEO,)


async def test_api_error_without_envelope():
    client = _client(lambda request: httpx.Response(502, text="Bad Gateway"))
    with pytest.raises(ApiError) as exc_info:
        await client.stats()
    assert exc_info.value.status_code == 502
    assert exc_info.value.code == "error"


async def test_composer_against_live_api(users, storage):
    citizen = users["citizen"]
    transport = httpx.ASGITransport(app=app)
    async with IssueClient("http://testserver", token=create_access_token(citizen.id), transport=transport) as client:
        composer = _filled(client)
        composer.attach_media(VIDEO)

        created = await composer.submit()

        assert created["status"] == "pending"
        assert [attachment["kind"] for attachment in created["attachments"]] == ["photo", "video"]

        comments = await client.add_comment(created["id"], "Getting worse")
        assert [comment["text"] for comment in comments] == ["Getting worse"]

        nearby = await client.issues_near(40.7128, -74.0060, radius=500)
        assert [item["id"] for item in nearby] == [created["id"]]

        listed = await client.list_issues(status="pending")
        assert [issue["id"] for issue in listed] == [created["id"]]

        await client.delete_issue(created["id"])
        with pytest.raises(ApiError) as exc_info:
            await client.get_issue(created["id"])
        assert exc_info.value.status_code == 404
        assert exc_info.value.code == "not_found"


def test_finished_capture_is_merged_and_cancelled_one_is_not():
    composer = ReportComposer(_client(lambda request: httpx.Response(201)))

    assert composer.attach_capture(CaptureResult(artifact=PHOTO))
    assert not composer.attach_capture(CaptureResult(cancelled_reason="closed"))
    assert composer.attachments == (PHOTO,)
