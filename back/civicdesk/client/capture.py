# Standard library imports
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
import mimetypes
from pathlib import Path
from typing import Protocol

# Local application imports
from civicdesk.client.errors import CaptureStateError, DeviceUnavailable
from civicdesk.client.scheduler import AsyncioScheduler, Scheduler, TimerHandle
from civicdesk.core.monitoring.logging import get_logger

logger = get_logger(__name__)

COUNTDOWN_STEPS = 3
COUNTDOWN_INTERVAL_S = 1.0
MAX_RECORDING_S = 30
RECORDING_TICK_S = 1.0

PHOTO_CONTENT_TYPE = "image/jpeg"
VIDEO_CONTENT_TYPE = "video/webm"


class MediaKind(str, Enum):
    PHOTO = "photo"
    VIDEO = "video"


class CaptureMode(str, Enum):
    PHOTO = "photo"
    VIDEO = "video"


class CaptureState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    COUNTING_DOWN = "counting-down"
    CAPTURING_PHOTO = "capturing-photo"
    RECORDING = "recording-video"
    STOPPED = "stopped"


@dataclass(frozen=True)
class MediaArtifact:
    kind: MediaKind
    data: bytes
    content_type: str
    file_name: str

    @classmethod
    def from_file(cls, path: str | Path) -> "MediaArtifact":
        """Build an artifact from a file picked by the user instead of the camera."""
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        if content_type is None or content_type.split("/")[0] not in ("image", "video"):
            raise ValueError(f"{path.name} is not an image or video file")
        kind = MediaKind.PHOTO if content_type.startswith("image/") else MediaKind.VIDEO
        return cls(kind=kind, data=path.read_bytes(), content_type=content_type, file_name=path.name)


@dataclass(frozen=True)
class CaptureResult:
    artifact: MediaArtifact | None = None
    cancelled_reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self.artifact is None


class MediaStream(Protocol):
    """An open camera (and optionally microphone) stream."""

    def grab_frame(self) -> bytes: ...

    def start_recording(
        self,
        on_chunk: Callable[[bytes], None],
        on_lost: Callable[[Exception], None],
    ) -> None: ...

    # Flushes the pending chunk through on_chunk before returning
    def stop_recording(self) -> None: ...

    def release(self) -> None: ...


class CaptureDevice(Protocol):
    async def acquire(self, *, video: bool, audio: bool) -> MediaStream: ...


class MediaCapture:
    """
    Camera capture session producing at most one photo or video per run.

    Photo capture counts down from three at one tick per second, then grabs
    a single frame. Video recording stops by itself after thirty seconds.
    Every completed or cancelled capture releases the device stream and
    returns the session to ``IDLE``; the outcome is handed to
    ``on_complete``. Timers run on the injected ``scheduler`` so the session
    can be driven without a real clock.
    """

    def __init__(
        self,
        device: CaptureDevice,
        scheduler: Scheduler | None = None,
        on_tick: Callable[[int], None] | None = None,
        on_complete: Callable[[CaptureResult], None] | None = None,
        on_error: Callable[[DeviceUnavailable], None] | None = None,
    ):
        self.device = device
        self.scheduler = scheduler or AsyncioScheduler()
        self.on_tick = on_tick
        self.on_complete = on_complete
        self.on_error = on_error

        self.state = CaptureState.IDLE
        self.mode: CaptureMode | None = None
        self.last_result: CaptureResult | None = None

        self._stream: MediaStream | None = None
        self._timers: list[TimerHandle] = []
        self._chunks: list[bytes] = []
        self._countdown = 0
        self._elapsed = 0
        self._acquiring = False
        self._generation = 0

    @property
    def is_stream_open(self) -> bool:
        return self._stream is not None

    @property
    def countdown(self) -> int:
        return self._countdown

    @property
    def elapsed(self) -> int:
        return self._elapsed

    async def open(self, mode: CaptureMode | str) -> None:
        """Acquire the device for ``mode``; re-opening while streaming switches modes."""
        mode = CaptureMode(mode)
        if self._acquiring or self.state not in (CaptureState.IDLE, CaptureState.STREAMING):
            raise CaptureStateError(f"Cannot open the camera while {self.state.value}")

        self._release_stream()
        self.state = CaptureState.IDLE

        self._acquiring = True
        generation = self._generation
        try:
            stream = await self.device.acquire(video=True, audio=mode == CaptureMode.VIDEO)
        except DeviceUnavailable as exc:
            self._report_error(exc)
            raise
        except Exception as exc:
            error = DeviceUnavailable(f"Camera unavailable: {exc}")
            self._report_error(error)
            raise error from exc
        finally:
            self._acquiring = False

        if generation != self._generation:
            # Closed while the permission prompt was up
            stream.release()
            return

        self._stream = stream
        self.mode = mode
        self.state = CaptureState.STREAMING
        logger.debug(f"Camera stream opened for {mode.value}")

    def capture_photo(self) -> None:
        """Start the countdown; a second call while counting down does nothing."""
        if self.state == CaptureState.COUNTING_DOWN:
            return
        if self.state != CaptureState.STREAMING:
            raise CaptureStateError(f"Cannot take a photo while {self.state.value}")

        self.state = CaptureState.COUNTING_DOWN
        self._countdown = COUNTDOWN_STEPS
        self._tick(self._countdown)
        self._schedule(COUNTDOWN_INTERVAL_S, self._countdown_step)

    def _countdown_step(self) -> None:
        if self.state != CaptureState.COUNTING_DOWN:
            return
        self._countdown -= 1
        self._tick(self._countdown)
        if self._countdown > 0:
            self._schedule(COUNTDOWN_INTERVAL_S, self._countdown_step)
        else:
            self._take_photo()

    def _take_photo(self) -> None:
        self.state = CaptureState.CAPTURING_PHOTO
        try:
            frame = self._stream.grab_frame()
        except Exception as exc:
            self._device_lost(exc)
            return

        artifact = MediaArtifact(
            kind=MediaKind.PHOTO,
            data=frame,
            content_type=PHOTO_CONTENT_TYPE,
            file_name="capture.jpg",
        )
        self._finish(CaptureResult(artifact=artifact))

    def start_recording(self) -> None:
        if self.state == CaptureState.RECORDING:
            return
        if self.state != CaptureState.STREAMING or self.mode != CaptureMode.VIDEO:
            raise CaptureStateError(f"Cannot record while {self.state.value} in {self.mode} mode")

        self._chunks = []
        self._elapsed = 0
        self.state = CaptureState.RECORDING
        try:
            self._stream.start_recording(self._on_chunk, self._device_lost)
        except Exception as exc:
            self._device_lost(exc)
            return

        self._schedule(MAX_RECORDING_S, self.stop_recording)
        self._schedule(RECORDING_TICK_S, self._recording_step)

    def _recording_step(self) -> None:
        if self.state != CaptureState.RECORDING:
            return
        self._elapsed += 1
        self._tick(self._elapsed)
        if self._elapsed < MAX_RECORDING_S:
            self._schedule(RECORDING_TICK_S, self._recording_step)

    def _on_chunk(self, chunk: bytes) -> None:
        # STOPPED covers the final flush from stop_recording()
        if self.state in (CaptureState.RECORDING, CaptureState.STOPPED) and chunk:
            self._chunks.append(chunk)

    def stop_recording(self) -> None:
        """Finish the recording; also fired by the watchdog at the time limit."""
        if self.state != CaptureState.RECORDING:
            return

        self._cancel_timers()
        self.state = CaptureState.STOPPED
        try:
            self._stream.stop_recording()
        except Exception as exc:
            self._device_lost(exc)
            return

        data = b"".join(self._chunks)
        self._chunks = []
        if not data:
            self._finish(CaptureResult(cancelled_reason="nothing was recorded"))
            return

        artifact = MediaArtifact(
            kind=MediaKind.VIDEO,
            data=data,
            content_type=VIDEO_CONTENT_TYPE,
            file_name="capture.webm",
        )
        self._finish(CaptureResult(artifact=artifact))

    def _device_lost(self, exc: Exception) -> None:
        if self.state == CaptureState.IDLE:
            return
        logger.warning(f"Camera lost during {self.state.value}: {exc!r}")
        self._chunks = []
        self._report_error(DeviceUnavailable("Camera disconnected"))
        self._finish(CaptureResult(cancelled_reason="device lost"))

    def close(self) -> None:
        """Abandon whatever is in progress and release the device. Safe in any state."""
        self._generation += 1
        in_progress = self.state not in (CaptureState.IDLE, CaptureState.STREAMING)

        if self.state == CaptureState.RECORDING and self._stream is not None:
            try:
                self._stream.stop_recording()
            except Exception as exc:
                logger.warning(f"Recorder did not stop cleanly on close: {exc!r}")

        self._chunks = []
        if in_progress:
            self._finish(CaptureResult(cancelled_reason="closed"))
        else:
            self._cancel_timers()
            self._release_stream()
            self.state = CaptureState.IDLE

    @asynccontextmanager
    async def session(self, mode: CaptureMode | str) -> AsyncIterator["MediaCapture"]:
        await self.open(mode)
        try:
            yield self
        finally:
            self.close()

    def _finish(self, result: CaptureResult) -> None:
        self._cancel_timers()
        self._release_stream()
        self.state = CaptureState.IDLE
        self._countdown = 0
        self.last_result = result
        if self.on_complete is not None:
            self.on_complete(result)

    def _release_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.release()

    def _schedule(self, delay: float, callback: Callable[[], None]) -> None:
        self._timers.append(self.scheduler.call_later(delay, callback))

    def _cancel_timers(self) -> None:
        timers, self._timers = self._timers, []
        for timer in timers:
            timer.cancel()

    def _tick(self, value: int) -> None:
        if self.on_tick is not None:
            self.on_tick(value)

    def _report_error(self, error: DeviceUnavailable) -> None:
        if self.on_error is not None:
            self.on_error(error)
