# depthrec/session/channel.py
"""Bounded hand-off between the SDK delivery thread and one consumer thread."""

from __future__ import annotations

import threading
from queue import Empty, Full, Queue
from typing import Callable, Optional

from depthrec.cam.streams import FrameEvent
from depthrec.utils.error_tracker import ErrorTracker, error_scope
from depthrec.utils.logger import get_logger

_log = get_logger()

_CLOSED = object()


class FrameChannel:
    """Bounded queue of frame events.

    By default ``put`` never blocks the producer: when the channel is full the
    oldest pending event is discarded and counted in ``dropped``. With
    ``block=True`` the producer waits for room instead, so nothing is lost;
    ``close`` releases a waiting producer.
    """

    def __init__(self, maxsize: int = 30, *, block: bool = False) -> None:
        if maxsize < 1:
            raise ValueError(f"maxsize must be >= 1, got {maxsize}")
        self._queue: Queue = Queue(maxsize=maxsize)
        self._lock = threading.Lock()
        self._space = threading.Condition(self._lock)
        self._closed = False
        self.block = block
        self.accepted = 0
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, event: FrameEvent) -> bool:
        """Enqueue ``event``; False when the channel is (or gets) closed."""
        with self._lock:
            while self.block and not self._closed and self._queue.full():
                self._space.wait(timeout=0.1)
            if self._closed:
                return False
            while True:
                try:
                    self._queue.put_nowait(event)
                    break
                except Full:
                    try:
                        self._queue.get_nowait()
                        self.dropped += 1
                    except Empty:
                        pass
            self.accepted += 1
            return True

    def get(self, timeout: Optional[float] = None) -> Optional[FrameEvent]:
        """Next event, or None on timeout or once the channel is closed."""
        try:
            item = self._queue.get(timeout=timeout)
        except Empty:
            return None
        if item is _CLOSED:
            # keep the marker for any other reader
            self._queue.put_nowait(_CLOSED)
            return None
        with self._space:
            self._space.notify()
        return item

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> int:
        """Reject further puts, discard pending events; returns how many."""
        with self._lock:
            if self._closed:
                return 0
            self._closed = True
            discarded = 0
            while True:
                try:
                    self._queue.get_nowait()
                    discarded += 1
                except Empty:
                    break
            self._queue.put_nowait(_CLOSED)
            self._space.notify_all()
        return discarded


class DeliveryWorker:
    """Single consumer thread serializing handler invocations."""

    def __init__(
        self,
        channel: FrameChannel,
        handler: Callable[[FrameEvent], None],
        tracker: ErrorTracker,
        *,
        name: str = "depthrec-delivery",
        poll_s: float = 0.1,
    ) -> None:
        self._channel = channel
        self._handler = handler
        self._tracker = tracker
        self._poll_s = poll_s
        self._thread = threading.Thread(target=self._loop, name=name, daemon=True)
        self.delivered = 0

    def start(self) -> None:
        self._thread.start()

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def _loop(self) -> None:
        while True:
            event = self._channel.get(timeout=self._poll_s)
            if self._channel.closed:
                break
            if event is None:
                continue
            with error_scope(self._tracker, "handler"):
                self._handler(event)
            self.delivered += 1

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the thread to exit; False if it is still running."""
        if self._thread.ident is None:
            return True
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            _log.tag("DELIVER", f"consumer still busy after {timeout}s", level="warning")
            return False
        return True


__all__ = ["DeliveryWorker", "FrameChannel"]
