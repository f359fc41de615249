# Standard library imports
import random

# Third-party imports
import pytest
from sqlalchemy.exc import SQLAlchemyError

# Local application imports
from civicdesk.core.exceptions import StorageFailure, Unauthenticated, ValidationFailed
from civicdesk.schemas.auth.caller_schemas import Caller
from civicdesk.services.issues.intake_services import create_issue
from civicdesk.services.issues.media_services import IncomingMedia
from civicdesk.services.storage import get_media_storage
from civicdesk.settings import settings
from conftest import API, JPEG_BYTES, MP4_BYTES, RecordingStorage, auth_headers, report_form, submit_report
from main import app


async def _issue_count(client, user) -> int:
    response = await client.get(f"{API}/issues", headers=auth_headers(user))
    assert response.status_code == 200
    return len(response.json())


async def test_report_with_photo_is_created_pending(client, users, storage):
    citizen = users["citizen"]
    response = await submit_report(
        client,
        citizen,
        files=[("images", ("pothole.jpg", JPEG_BYTES, "image/jpeg"))],
    )

    assert response.status_code == 201
    issue = response.json()
    assert issue["status"] == "pending"
    assert issue["category"] == "roads"
    assert issue["priority"] == "high"
    assert issue["coordinates"] == {"latitude": 40.7128, "longitude": -74.006}
    assert issue["location_description"] == "Main St & 3rd Ave"
    assert issue["reporter_id"] == str(citizen.id)
    assert issue["assignee_id"] is None
    assert issue["reporter"] == {"id": str(citizen.id), "name": "Asha", "email": "asha@example.com"}
    assert issue["assignee"] is None
    assert issue["comments"] == []
    assert len(issue["attachments"]) == 1
    assert issue["attachments"][0]["kind"] == "photo"
    assert issue["attachments"][0]["uri"].startswith("/uploads/issues/")
    assert "storage_key" not in issue["attachments"][0]
    assert len(storage.live_keys()) == 1

    fetched = await client.get(f"{API}/issues/{issue['id']}", headers=auth_headers(citizen))
    assert fetched.status_code == 200
    assert fetched.json()["id"] == issue["id"]


async def test_attachments_keep_submission_order(client, users, storage):
    response = await submit_report(
        client,
        users["citizen"],
        files=[
            ("images", ("first.jpg", JPEG_BYTES, "image/jpeg")),
            ("images", ("second.png", JPEG_BYTES, "image/png")),
            ("videos", ("clip.mp4", MP4_BYTES, "video/mp4")),
        ],
    )

    assert response.status_code == 201
    kinds = [attachment["kind"] for attachment in response.json()["attachments"]]
    assert kinds == ["photo", "photo", "video"]


async def test_report_without_media_is_accepted(client, users, storage):
    response = await submit_report(client, users["citizen"], locationDescription="   ")
    assert response.status_code == 201
    assert response.json()["attachments"] == []
    assert response.json()["location_description"] is None


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"title": None}, "title"),
        ({"title": "   "}, "title"),
        ({"description": None}, "description"),
        ({"category": "potholes"}, "category"),
        ({"priority": "urgent"}, "priority"),
        ({"latitude": "91"}, "latitude"),
        ({"longitude": "-180.5"}, "longitude"),
        ({"latitude": "north"}, "latitude"),
        ({"longitude": None}, "longitude"),
    ],
)
async def test_invalid_report_is_rejected_without_side_effects(client, users, storage, overrides, field):
    citizen = users["citizen"]
    response = await submit_report(
        client,
        citizen,
        files=[("images", ("pothole.jpg", JPEG_BYTES, "image/jpeg"))],
        **overrides,
    )

    assert response.status_code == 400
    body = response.json()
    assert body["ok"] is False
    assert body["error"]["code"] == "validation_failed"
    assert field in body["error"]["details"]
    assert storage.saved == []
    assert await _issue_count(client, citizen) == 0


async def test_unsupported_media_type_is_rejected(client, users, storage):
    response = await submit_report(
        client,
        users["citizen"],
        files=[
            ("images", ("pothole.jpg", JPEG_BYTES, "image/jpeg")),
            ("images", ("notes.pdf", b"%PDF-1.4", "application/pdf")),
        ],
    )

    assert response.status_code == 415
    assert response.json()["error"]["code"] == "unsupported_media"
    assert storage.saved == []


async def test_oversized_media_is_rejected(client, users, storage, monkeypatch):
    monkeypatch.setattr(settings, "MAX_IMAGE_SIZE", 32)
    response = await submit_report(
        client,
        users["citizen"],
        files=[("images", ("pothole.jpg", JPEG_BYTES, "image/jpeg"))],
    )

    assert response.status_code == 413
    assert response.json()["error"]["code"] == "payload_too_large"
    assert storage.saved == []


async def test_empty_media_part_is_rejected(client, users, storage):
    response = await submit_report(
        client,
        users["citizen"],
        files=[
            ("images", ("pothole.jpg", JPEG_BYTES, "image/jpeg")),
            ("videos", ("clip.mp4", b"", "video/mp4")),
        ],
    )

    assert response.status_code == 400
    assert response.json()["error"]["details"] == {"clip.mp4": "video is empty"}
    assert storage.saved == []


async def test_too_many_files_are_rejected(client, users, storage):
    files = [("images", (f"p{i}.jpg", JPEG_BYTES, "image/jpeg")) for i in range(settings.MAX_MEDIA_FILES + 1)]
    response = await submit_report(client, users["citizen"], files=files)

    assert response.status_code == 400
    assert "media" in response.json()["error"]["details"]


async def test_storage_failure_midway_leaves_nothing_behind(client, users, tmp_path):
    failing = RecordingStorage(tmp_path / "flaky", fail_on_save=2)
    app.dependency_overrides[get_media_storage] = lambda: failing
    citizen = users["citizen"]

    response = await submit_report(
        client,
        citizen,
        files=[
            ("images", ("a.jpg", JPEG_BYTES, "image/jpeg")),
            ("images", ("b.jpg", JPEG_BYTES, "image/jpeg")),
            ("videos", ("c.mp4", MP4_BYTES, "video/mp4")),
        ],
    )

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "storage_failure"
    assert len(failing.saved) == 1
    assert failing.live_keys() == set()
    assert not any((tmp_path / "flaky").rglob("*.jpg"))
    assert await _issue_count(client, citizen) == 0


class _FailingSession:
    def add(self, instance):
        self.added = instance

    async def commit(self):
        raise SQLAlchemyError("connection reset")

    async def rollback(self):
        self.rolled_back = True


async def test_record_write_failure_discards_stored_media(users, tmp_path):
    storage = RecordingStorage(tmp_path / "media")
    session = _FailingSession()
    caller = Caller.from_user(users["citizen"])
    files = [
        IncomingMedia(file_name="a.jpg", content_type="image/jpeg", data=JPEG_BYTES),
        IncomingMedia(file_name="b.mp4", content_type="video/mp4", data=MP4_BYTES),
    ]
    form = report_form()
    form["location_description"] = form.pop("locationDescription")

    with pytest.raises(StorageFailure):
        await create_issue(session, storage, caller, form, files)

    assert len(storage.saved) == 2
    assert storage.live_keys() == set()
    assert session.rolled_back


async def test_create_issue_requires_caller(tmp_path):
    with pytest.raises(Unauthenticated):
        await create_issue(None, RecordingStorage(tmp_path), None, report_form(), [])


async def test_validation_runs_before_any_storage(users, tmp_path):
    storage = RecordingStorage(tmp_path)
    caller = Caller.from_user(users["citizen"])
    files = [IncomingMedia(file_name="a.jpg", content_type="image/jpeg", data=JPEG_BYTES)]

    with pytest.raises(ValidationFailed) as exc_info:
        await create_issue(None, storage, caller, report_form(latitude="-90.01"), files)

    assert "latitude" in exc_info.value.details
    assert storage.saved == []


async def test_missing_or_bad_token_is_unauthenticated(client, users, storage):
    response = await client.post(f"{API}/issues", data=report_form())
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "unauthenticated"
    assert response.headers["www-authenticate"] == "Bearer"

    response = await client.post(
        f"{API}/issues",
        data=report_form(),
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == 401


async def test_coordinates_are_stored_exactly(client, users, storage):
    rng = random.Random(11)
    citizen = users["citizen"]
    points = [(-90.0, -180.0), (90.0, 180.0), (0.0, 0.0)]
    points += [(rng.uniform(-90, 90), rng.uniform(-180, 180)) for _ in range(5)]

    for latitude, longitude in points:
        response = await submit_report(client, citizen, latitude=repr(latitude), longitude=repr(longitude))
        assert response.status_code == 201
        created = response.json()

        fetched = (await client.get(f"{API}/issues/{created['id']}", headers=auth_headers(citizen))).json()
        assert fetched["coordinates"] == {"latitude": latitude, "longitude": longitude}
