# tests/conftest.py
"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Callable, Iterator, Optional, Sequence

import numpy as np
import pytest

from depthrec.cam.streams import (
    AcquisitionSource,
    FrameEvent,
    SourceKind,
    StreamKind,
    StreamSpec,
)
from depthrec.config import (
    ConvertConfig,
    PathsConfig,
    PlaybackConfig,
    RecordConfig,
    SessionConfig,
    Settings,
)
from depthrec.errors import NoDeviceFound, SessionSetupError, SourceUnavailable
from depthrec.utils.logger import configure

# a subset of what a D435 reports
LIVE_OFFERED: tuple[StreamSpec, ...] = (
    StreamSpec(StreamKind.DEPTH, 640, 480, 15, "z16"),
    StreamSpec(StreamKind.DEPTH, 640, 480, 30, "z16"),
    StreamSpec(StreamKind.DEPTH, 848, 480, 30, "z16"),
    StreamSpec(StreamKind.COLOR, 640, 480, 15, "rgb8"),
    StreamSpec(StreamKind.COLOR, 1280, 720, 30, "bgr8"),
    StreamSpec(StreamKind.INFRARED, 640, 480, 15, "y8"),
)

FILE_OFFERED: tuple[StreamSpec, ...] = (
    StreamSpec(StreamKind.DEPTH, 640, 480, 15, "z16"),
    StreamSpec(StreamKind.COLOR, 640, 480, 15, "rgb8"),
)


def make_event(
    index: int,
    kinds: Sequence[StreamKind] = (StreamKind.DEPTH, StreamKind.COLOR),
    *,
    depth_size: tuple[int, int] = (640, 480),
    color_size: tuple[int, int] = (640, 480),
) -> FrameEvent:
    """Synthetic frame event: depth ramps in mm, color is pure red in RGB."""
    frames: dict[StreamKind, np.ndarray] = {}
    formats: dict[StreamKind, str] = {}
    if StreamKind.DEPTH in kinds:
        w, h = depth_size
        frames[StreamKind.DEPTH] = np.full((h, w), 1000 + index, dtype=np.uint16)
        formats[StreamKind.DEPTH] = "z16"
    if StreamKind.COLOR in kinds:
        w, h = color_size
        color = np.zeros((h, w, 3), dtype=np.uint8)
        color[..., 0] = 255
        frames[StreamKind.COLOR] = color
        formats[StreamKind.COLOR] = "rgb8"
    return FrameEvent(index=index, timestamp_ms=index * 66.6, frames=frames, formats=formats)


class FakeBackend:
    """In-memory AcquisitionBackend driving a producer thread like the SDK does."""

    def __init__(
        self,
        *,
        device_present: bool = True,
        live_offered: Sequence[StreamSpec] = LIVE_OFFERED,
        file_offered: Sequence[StreamSpec] = FILE_OFFERED,
        file_events: Optional[int] = None,
        interval_s: float = 0.005,
        auto_emit: bool = True,
        fail_start: bool = False,
        event_factory: Callable[[int], FrameEvent] = make_event,
    ) -> None:
        self.device_present = device_present
        self.live_offered = tuple(live_offered)
        self.file_offered = tuple(file_offered)
        self.file_events = file_events
        self.interval_s = interval_s
        self.auto_emit = auto_emit
        self.fail_start = fail_start
        self.event_factory = event_factory

        self.opened: list[AcquisitionSource] = []
        self.started_specs: Optional[tuple[StreamSpec, ...]] = None
        self.record_to: Optional[Path] = None
        self.real_time: Optional[bool] = None
        self.start_calls = 0
        self.stop_calls = 0
        self.release_calls = 0
        self.emitted = 0
        self.calls_after_stop = 0
        self.finished = False

        self._callback: Optional[Callable[[FrameEvent], None]] = None
        self._halt = threading.Event()
        self._stopped = False
        self._thread: Optional[threading.Thread] = None
        self.first_emit = threading.Event()

    # ────────────── AcquisitionBackend ──────────────
    def open_device(self) -> AcquisitionSource:
        if not self.device_present:
            raise NoDeviceFound("No RealSense device found")
        source = AcquisitionSource(
            kind=SourceKind.LIVE,
            label="Fake D435 #0001",
            offered=self.live_offered,
            serial="0001",
        )
        self.opened.append(source)
        return source

    def open_file(self, path: Path) -> AcquisitionSource:
        if not Path(path).is_file():
            raise SourceUnavailable(f"Capture file not found: {path}")
        duration = None
        if self.file_events is not None:
            duration = self.file_events / 15.0
        source = AcquisitionSource(
            kind=SourceKind.FILE,
            label=str(path),
            offered=self.file_offered,
            path=Path(path),
            duration_s=duration,
        )
        self.opened.append(source)
        return source

    def start(self, source, specs, callback, *, record_to=None, real_time=True) -> None:
        self.start_calls += 1
        if self.fail_start:
            raise SessionSetupError("Pipeline start failed: fake")
        self.started_specs = tuple(specs)
        self.record_to = record_to
        self.real_time = real_time
        self._callback = callback
        source.runtime = "running"
        if record_to is not None:
            Path(record_to).write_bytes(b"#ROSBAG V2.0\n")
        if self.auto_emit:
            limit = self.file_events if source.is_file else None
            self._thread = threading.Thread(target=self._produce, args=(limit,), daemon=True)
            self._thread.start()

    def stop(self, source) -> None:
        self.stop_calls += 1
        self._halt.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
        self._stopped = True
        source.runtime = None

    def release(self, source) -> None:
        self.release_calls += 1
        source.handle = None

    def is_finished(self, source) -> bool:
        return source.is_file and self.finished

    # ────────────── test helpers ──────────────
    def emit(self, event: FrameEvent) -> None:
        if self._stopped:
            self.calls_after_stop += 1
        assert self._callback is not None
        self._callback(event)
        self.emitted += 1
        self.first_emit.set()

    def _produce(self, limit: Optional[int]) -> None:
        index = 0
        while not self._halt.is_set():
            if limit is not None and index >= limit:
                self.finished = True
                return
            self.emit(self.event_factory(index))
            index += 1
            self._halt.wait(self.interval_s)

    def wait_for_emitted(self, count: int, timeout: float = 5.0) -> bool:
        deadline = time.monotonic() + timeout
        while self.emitted < count and time.monotonic() < deadline:
            time.sleep(0.005)
        return self.emitted >= count


class RecordingSink:
    """FrameSink that remembers every event it saw."""

    name = "recording"

    def __init__(self, *, fail_open: bool = False) -> None:
        self.fail_open = fail_open
        self.events: list[FrameEvent] = []
        self.open_calls = 0
        self.close_calls = 0
        self._lock = threading.Lock()

    def open(self) -> None:
        self.open_calls += 1
        if self.fail_open:
            from depthrec.errors import SinkOpenFailed

            raise SinkOpenFailed("fake sink refused to open")

    def consume(self, event: FrameEvent) -> None:
        with self._lock:
            self.events.append(event)

    def close(self) -> None:
        self.close_calls += 1

    def kinds_seen(self) -> set[StreamKind]:
        with self._lock:
            return {kind for event in self.events for kind in event.kinds}


@pytest.fixture
def fake_backend() -> FakeBackend:
    """Live device present, two-stream capture files, endless delivery."""
    return FakeBackend()


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def session_config() -> SessionConfig:
    """Short intervals so lifecycle tests finish quickly."""
    return SessionConfig(poll_interval_s=0.02, channel_size=8, join_timeout_s=2.0)


@pytest.fixture
def test_settings(tmp_path: Path, session_config: SessionConfig) -> Settings:
    """Test settings with temporary directories."""
    paths = PathsConfig(
        capture_dir=tmp_path / "captures",
        logs_root=tmp_path / "logs",
    )
    return Settings(
        paths=paths,
        session=session_config,
        record=RecordConfig(),
        playback=PlaybackConfig(),
        convert=ConvertConfig(),
        log_level="DEBUG",
    )


@pytest.fixture
def capture_file(test_settings: Settings) -> Path:
    """An existing (fake) capture file at the configured location."""
    path = test_settings.paths.capture_file
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"#ROSBAG V2.0\n")
    return path


@pytest.fixture(autouse=True)
def _console_only_logging() -> Iterator[None]:
    """Drop any file sink a program attached during the test."""
    yield
    configure(level="DEBUG")
