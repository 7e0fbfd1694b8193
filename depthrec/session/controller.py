# depthrec/session/controller.py
"""Session lifecycle: open a source, pick streams, deliver frames, tear down.

One controller drives exactly one session::

    Idle -[open+configure+start]-> Running -[stop observed]-> StopRequested
         -[stop]-> Stopped

There is no way back from Stopped; a new session needs a new controller.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, Tuple

from depthrec.cam.protocols import AcquisitionBackend, FrameSink
from depthrec.cam.streams import (
    AcquisitionSource,
    CaptureFile,
    FrameEvent,
    LiveDevice,
    SourceDescriptor,
    StreamKind,
    StreamSelection,
    StreamSpec,
)
from depthrec.config import SessionConfig
from depthrec.errors import SessionStateError, UnsupportedStream
from depthrec.session.cancel import CancellationToken
from depthrec.session.channel import DeliveryWorker, FrameChannel
from depthrec.utils.error_tracker import ErrorTracker
from depthrec.utils.logger import get_logger

_log = get_logger()

FrameHandler = Callable[[FrameEvent], None]

END_OF_CAPTURE = "end of capture"


class SessionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOP_REQUESTED = "stop_requested"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ConfiguredSession:
    """A source together with the streams that will be activated on it."""

    source: AcquisitionSource
    specs: Tuple[StreamSpec, ...]
    record_to: Optional[Path] = None
    real_time: bool = True

    @property
    def kinds(self) -> Tuple[StreamKind, ...]:
        return tuple(spec.kind for spec in self.specs)


@dataclass(frozen=True)
class SessionStats:
    received: int
    delivered: int
    dropped: int
    errors: int
    duration_s: float
    stop_reason: Optional[str]

    def as_dict(self) -> dict[str, Any]:
        return {
            "received": self.received,
            "delivered": self.delivered,
            "dropped": self.dropped,
            "errors": self.errors,
            "duration_s": round(self.duration_s, 3),
            "stop_reason": self.stop_reason,
        }


def resolve_specs(source: AcquisitionSource, selection: StreamSelection) -> Tuple[StreamSpec, ...]:
    """Streams to activate for ``selection``; raises UnsupportedStream.

    Pure: nothing on ``source`` is touched, so a failure leaves it as it was.
    """
    if selection.all_offered:
        specs = tuple(StreamSpec(kind) for kind in source.offered_kinds)
        if not specs:
            raise UnsupportedStream(f"{source.label} offers no streams")
        return specs
    if not selection.specs:
        raise UnsupportedStream("empty stream selection")
    missing = [spec for spec in selection.specs if not source.offers(spec)]
    if missing:
        offered = ", ".join(spec.describe() for spec in source.offered) or "nothing"
        wanted = ", ".join(spec.describe() for spec in missing)
        raise UnsupportedStream(f"{source.label} does not offer {wanted} (offers: {offered})")
    return selection.specs


class SessionController:
    """Owns the acquisition source and sink for one session."""

    def __init__(
        self,
        backend: Optional[AcquisitionBackend] = None,
        *,
        sink: Optional[FrameSink] = None,
        token: Optional[CancellationToken] = None,
        config: Optional[SessionConfig] = None,
        name: str = "session",
    ) -> None:
        if backend is None:
            from depthrec.cam.realsense import RealSenseBackend

            backend = RealSenseBackend()
        self.backend = backend
        self.sink = sink
        self.token = token or CancellationToken()
        self.config = config or SessionConfig()
        self.name = name
        self.tracker = ErrorTracker(context=f"depthrec.{name}")
        self.state = SessionState.IDLE
        self._lock = threading.Lock()
        self._source: Optional[AcquisitionSource] = None
        self._session: Optional[ConfiguredSession] = None
        self._channel: Optional[FrameChannel] = None
        self._worker: Optional[DeliveryWorker] = None
        self._sink_open = False
        self._handler: Optional[FrameHandler] = None
        self._handler_lock = threading.Lock()
        self._delivering = False
        self._received = 0
        self._started_at: Optional[float] = None
        self._stopped_at: Optional[float] = None

    # ────────────── setup ──────────────
    @property
    def source(self) -> Optional[AcquisitionSource]:
        return self._source

    @property
    def session(self) -> Optional[ConfiguredSession]:
        return self._session

    def _require(self, *states: SessionState, op: str) -> None:
        if self.state not in states:
            allowed = "/".join(s.value for s in states)
            raise SessionStateError(f"{op}() needs state {allowed}, session is {self.state.value}")

    def open(self, descriptor: SourceDescriptor) -> AcquisitionSource:
        self._require(SessionState.IDLE, op="open")
        if self._source is not None:
            raise SessionStateError("open() already called for this session")
        if isinstance(descriptor, LiveDevice):
            source = self.backend.open_device()
        elif isinstance(descriptor, CaptureFile):
            source = self.backend.open_file(Path(descriptor.path))
        else:
            raise TypeError(f"unknown source descriptor: {descriptor!r}")
        self._source = source
        _log.tag("SESS", f"{self.name}: opened {source.kind.value} source {source.label}")
        return source

    def configure(
        self,
        source: AcquisitionSource,
        selection: StreamSelection,
        *,
        record_to: Optional[Path] = None,
        real_time: bool = True,
    ) -> ConfiguredSession:
        self._require(SessionState.IDLE, op="configure")
        if source is not self._source:
            raise SessionStateError("configure() got a source this controller did not open")
        specs = resolve_specs(source, selection)
        self._session = ConfiguredSession(
            source=source, specs=specs, record_to=record_to, real_time=real_time
        )
        _log.tag("SESS", f"{self.name}: streams {', '.join(s.describe() for s in specs)}")
        return self._session

    # ────────────── delivery ──────────────
    def _enqueue(self, event: FrameEvent) -> None:
        # runs on the SDK delivery thread
        if self.state is not SessionState.RUNNING or self.token.is_cancelled():
            return
        channel = self._channel
        if channel is not None and channel.put(event):
            self._received += 1

    def start(self, session: ConfiguredSession, on_frame: Optional[FrameHandler] = None) -> None:
        self._require(SessionState.IDLE, op="start")
        if session is not self._session:
            raise SessionStateError("start() got a session this controller did not configure")
        handler = on_frame
        if handler is None:
            if self.sink is None:
                raise SessionStateError("start() needs a frame handler or a sink")
            handler = self.sink.consume

        if self.sink is not None and not self._sink_open:
            self.sink.open()
            self._sink_open = True

        # a capture file waits for the consumer instead of dropping frames
        channel = FrameChannel(self.config.channel_size, block=session.source.is_file)
        worker = DeliveryWorker(channel, self._deliver, self.tracker, name=f"depthrec-{self.name}")
        self._handler, self._delivering = handler, True
        self._channel, self._worker = channel, worker
        worker.start()
        self.state = SessionState.RUNNING
        self._started_at = time.monotonic()
        try:
            self.backend.start(
                session.source,
                session.specs,
                self._enqueue,
                record_to=session.record_to,
                real_time=session.real_time,
            )
        except BaseException:
            self.state = SessionState.IDLE
            self._started_at = None
            self._shutdown_delivery()
            self._close_sink()
            raise
        _log.tag("SESS", f"{self.name}: running")

    def _deliver(self, event: FrameEvent) -> None:
        # runs on the consumer thread; teardown waits on the same lock
        with self._handler_lock:
            if self._delivering and self._handler is not None:
                self._handler(event)

    def request_stop(self, reason: str = "requested") -> None:
        self.token.request(reason)

    def run_until_cancelled(self, poll_interval: Optional[float] = None) -> Optional[str]:
        """Block until the token trips (or a file source ends); returns the reason."""
        self._require(SessionState.RUNNING, op="run_until_cancelled")
        interval = self.config.poll_interval_s if poll_interval is None else poll_interval
        source = self._source
        while not self.token.wait(interval):
            if source is not None and source.is_file and self.backend.is_finished(source):
                self._drain(self.config.join_timeout_s)
                self.token.request(END_OF_CAPTURE)
                break
        self._mark_stop_requested()
        return self.token.reason

    def _drain(self, timeout: float) -> None:
        # frames already read from a finished capture still reach the handler
        channel, worker = self._channel, self._worker
        if channel is None or worker is None:
            return
        deadline = time.monotonic() + timeout
        while worker.delivered < channel.accepted - channel.dropped:
            if time.monotonic() >= deadline or self.token.wait(0.01):
                break

    def _mark_stop_requested(self) -> None:
        with self._lock:
            if self.state is SessionState.RUNNING:
                self.state = SessionState.STOP_REQUESTED
        # stop handing events to the handler right away
        if self._channel is not None:
            self._channel.close()
        _log.tag("SESS", f"{self.name}: stop requested ({self.token.reason})")

    # ────────────── teardown ──────────────
    def _shutdown_delivery(self) -> None:
        if self._channel is not None:
            self._channel.close()
        joined = True
        if self._worker is not None:
            joined = self._worker.join(timeout=self.config.join_timeout_s)
        # an in-flight handler finishes before the sink can be closed
        with self._handler_lock:
            self._delivering = False
        if not joined:
            self.tracker.record(
                "delivery",
                f"handler outlived the {self.config.join_timeout_s}s join timeout",
            )

    def _close_sink(self) -> None:
        if self.sink is not None and self._sink_open:
            self._sink_open = False
            ErrorTracker.run_cleanup(self.sink.close, key=f"sink.{self.sink.name}.close")

    def _release_source(self) -> None:
        if self._source is not None:
            source, self._source = self._source, None
            ErrorTracker.run_cleanup(lambda: self.backend.release(source), key="source.release")

    def stop(self, session: Optional[ConfiguredSession] = None) -> SessionStats:
        with self._lock:
            if self.state not in (SessionState.RUNNING, SessionState.STOP_REQUESTED):
                raise SessionStateError(
                    f"stop() needs a started session, session is {self.state.value}"
                )
            if session is not None and session is not self._session:
                raise SessionStateError("stop() got a session this controller did not start")
            # claim teardown before releasing the lock so it runs once
            self.state = SessionState.STOPPED

        if not self.token.is_cancelled():
            self.token.request("stop")
        source = self._session.source if self._session is not None else self._source
        # unblock an SDK thread waiting on a full channel before halting the pipeline
        if self._channel is not None:
            self._channel.close()
        if source is not None:
            ErrorTracker.run_cleanup(lambda: self.backend.stop(source), key="backend.stop")
        self._shutdown_delivery()
        self._close_sink()
        self._release_source()
        self._stopped_at = time.monotonic()

        stats = self.stats()
        self.tracker.summary()
        _log.tag(
            "SESS",
            f"{self.name}: stopped after {stats.duration_s:.1f}s, "
            f"{stats.delivered} delivered, {stats.dropped} dropped, {stats.errors} errors",
        )
        return stats

    def close(self) -> None:
        """Tear down whatever this controller holds, whichever state it is in."""
        if self.state in (SessionState.RUNNING, SessionState.STOP_REQUESTED):
            self.stop()
            return
        self._close_sink()
        self._release_source()

    def stats(self) -> SessionStats:
        end = self._stopped_at if self._stopped_at is not None else time.monotonic()
        duration = 0.0 if self._started_at is None else max(0.0, end - self._started_at)
        return SessionStats(
            received=self._received,
            delivered=self._worker.delivered if self._worker is not None else 0,
            dropped=self._channel.dropped if self._channel is not None else 0,
            errors=self.tracker.count(),
            duration_s=duration,
            stop_reason=self.token.reason,
        )

    def __enter__(self) -> "SessionController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = [
    "ConfiguredSession",
    "END_OF_CAPTURE",
    "FrameHandler",
    "SessionController",
    "SessionState",
    "SessionStats",
    "resolve_specs",
]
