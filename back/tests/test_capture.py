# Standard library imports
import asyncio

# Third-party imports
import pytest

# Local application imports
from civicdesk.client import (
    CaptureMode,
    CaptureState,
    CaptureStateError,
    DeviceUnavailable,
    MediaArtifact,
    MediaCapture,
    MediaKind,
)
from client_fakes import FakeCamera, FakeScheduler


class Recorder:
    def __init__(self):
        self.ticks = []
        self.results = []
        self.errors = []


@pytest.fixture
def camera():
    return FakeCamera()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def events():
    return Recorder()


@pytest.fixture
def capture(camera, scheduler, events):
    return MediaCapture(
        camera,
        scheduler=scheduler,
        on_tick=events.ticks.append,
        on_complete=events.results.append,
        on_error=events.errors.append,
    )


async def test_photo_counts_down_then_captures(capture, camera, scheduler, events):
    await capture.open(CaptureMode.PHOTO)
    assert capture.state == CaptureState.STREAMING
    assert camera.streams[0].audio is False

    capture.capture_photo()
    assert capture.state == CaptureState.COUNTING_DOWN
    assert events.ticks == [3]

    scheduler.advance(1)
    assert events.ticks == [3, 2]
    assert events.results == []

    scheduler.advance(2)
    assert events.ticks == [3, 2, 1, 0]
    (result,) = events.results
    assert result.artifact.kind == MediaKind.PHOTO
    assert result.artifact.data == b"jpeg-frame"
    assert result.artifact.content_type == "image/jpeg"
    assert capture.state == CaptureState.IDLE
    assert camera.open_streams == []


async def test_second_capture_during_countdown_is_ignored(capture, camera, scheduler, events):
    await capture.open("photo")
    capture.capture_photo()
    scheduler.advance(0.5)
    capture.capture_photo()

    scheduler.advance(5)
    assert events.ticks == [3, 2, 1, 0]
    assert len(events.results) == 1
    assert camera.streams[0].frames_grabbed == 1


async def test_close_during_countdown_cancels(capture, camera, scheduler, events):
    await capture.open("photo")
    capture.capture_photo()
    scheduler.advance(1)

    capture.close()

    assert capture.state == CaptureState.IDLE
    (result,) = events.results
    assert result.cancelled
    assert result.cancelled_reason == "closed"
    assert camera.open_streams == []
    assert scheduler.pending == 0

    scheduler.advance(10)
    assert camera.streams[0].frames_grabbed == 0
    assert len(events.results) == 1


async def test_frame_grab_failure_reports_device_loss(capture, camera, scheduler, events):
    await capture.open("photo")
    camera.streams[0].fail_grab = True
    capture.capture_photo()
    scheduler.advance(3)

    assert events.results[0].cancelled_reason == "device lost"
    assert isinstance(events.errors[0], DeviceUnavailable)
    assert camera.open_streams == []


async def test_video_records_until_stopped(capture, camera, scheduler, events):
    await capture.open(CaptureMode.VIDEO)
    stream = camera.streams[0]
    assert stream.audio is True

    capture.start_recording()
    assert capture.state == CaptureState.RECORDING
    stream.emit(b"ab")
    scheduler.advance(5)
    stream.emit(b"cd")
    assert events.ticks == [1, 2, 3, 4, 5]

    capture.stop_recording()

    (result,) = events.results
    assert result.artifact.kind == MediaKind.VIDEO
    assert result.artifact.data == b"abcdtail"
    assert result.artifact.content_type == "video/webm"
    assert capture.state == CaptureState.IDLE
    assert camera.open_streams == []
    assert scheduler.pending == 0


async def test_recording_stops_itself_at_thirty_seconds(capture, camera, scheduler, events):
    await capture.open("video")
    capture.start_recording()
    camera.streams[0].emit(b"chunk")

    scheduler.advance(29.5)
    assert events.results == []

    scheduler.advance(0.5)
    (result,) = events.results
    assert result.artifact is not None
    assert max(events.ticks) <= 30
    assert camera.open_streams == []

    scheduler.advance(60)
    assert len(events.results) == 1


async def test_manual_stop_cancels_watchdog(capture, camera, scheduler, events):
    await capture.open("video")
    capture.start_recording()
    camera.streams[0].emit(b"x")
    scheduler.advance(2)
    capture.stop_recording()

    scheduler.advance(60)
    assert len(events.results) == 1
    capture.stop_recording()
    assert len(events.results) == 1


async def test_device_loss_discards_partial_recording(capture, camera, scheduler, events):
    await capture.open("video")
    capture.start_recording()
    stream = camera.streams[0]
    stream.emit(b"partial")

    stream.lose_device()

    (result,) = events.results
    assert result.cancelled
    assert result.cancelled_reason == "device lost"
    assert len(events.errors) == 1
    assert capture.state == CaptureState.IDLE
    assert camera.open_streams == []


async def test_empty_recording_yields_no_artifact(capture, camera, scheduler, events):
    await capture.open("video")
    camera.streams[0].tail = b""
    capture.start_recording()
    capture.stop_recording()

    assert events.results[0].cancelled


async def test_permission_denied_leaves_session_retryable(capture, camera, events):
    camera.error = PermissionError("denied")

    with pytest.raises(DeviceUnavailable):
        await capture.open("photo")
    assert capture.state == CaptureState.IDLE
    assert len(events.errors) == 1

    camera.error = None
    await capture.open("photo")
    assert capture.state == CaptureState.STREAMING


async def test_reopening_switches_mode_with_one_stream(capture, camera):
    await capture.open("photo")
    await capture.open("video")

    assert capture.mode == CaptureMode.VIDEO
    assert len(camera.streams) == 2
    assert camera.open_streams == [camera.streams[1]]


async def test_invalid_transitions_raise(capture, camera):
    with pytest.raises(CaptureStateError):
        capture.capture_photo()
    with pytest.raises(CaptureStateError):
        capture.start_recording()

    await capture.open("photo")
    with pytest.raises(CaptureStateError):
        capture.start_recording()

    await capture.open("video")
    capture.start_recording()
    with pytest.raises(CaptureStateError):
        await capture.open("photo")
    with pytest.raises(CaptureStateError):
        capture.capture_photo()


async def test_close_is_safe_in_any_state(capture, camera, events):
    capture.close()
    capture.close()
    assert events.results == []

    await capture.open("video")
    capture.close()
    assert events.results == []
    assert camera.open_streams == []

    await capture.open("video")
    capture.start_recording()
    capture.close()
    assert events.results[-1].cancelled_reason == "closed"
    assert camera.open_streams == []


async def test_close_while_permission_prompt_is_open(capture, camera):
    camera.gate = asyncio.Event()
    opening = asyncio.create_task(capture.open("photo"))
    await asyncio.sleep(0)

    capture.close()
    camera.gate.set()
    await opening

    assert capture.state == CaptureState.IDLE
    assert camera.open_streams == []


async def test_session_releases_camera_on_exit(capture, camera):
    async with capture.session("photo") as session:
        assert session.is_stream_open
    assert camera.open_streams == []
    assert capture.state == CaptureState.IDLE


async def test_default_scheduler_runs_on_the_event_loop(camera):
    results = []
    capture = MediaCapture(camera, on_complete=results.append)
    await capture.open("video")
    capture.start_recording()
    camera.streams[0].emit(b"clip")

    await asyncio.sleep(1.05)
    capture.stop_recording()

    assert results[0].artifact.data == b"cliptail"


def test_artifact_from_picked_file(tmp_path):
    photo = tmp_path / "street.png"
    photo.write_bytes(b"png")
    artifact = MediaArtifact.from_file(photo)
    assert artifact.kind == MediaKind.PHOTO
    assert artifact.content_type == "image/png"
    assert artifact.file_name == "street.png"

    notes = tmp_path / "notes.txt"
    notes.write_text("hello")
    with pytest.raises(ValueError):
        MediaArtifact.from_file(notes)
