# depthrec/cam/protocols.py
"""Protocol interfaces for the acquisition and sink libraries.

The session controller only talks to these, so tests can swap the camera SDK
and OpenCV for in-memory fakes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional, Protocol, Sequence

from depthrec.cam.streams import AcquisitionSource, FrameEvent, StreamSpec

FrameCallback = Callable[[FrameEvent], None]


class AcquisitionBackend(Protocol):
    """Protocol for the depth-camera SDK boundary."""

    def open_device(self) -> AcquisitionSource:
        """Open the first enumerated device; raise NoDeviceFound if none."""
        ...

    def open_file(self, path: Path) -> AcquisitionSource:
        """Open a capture file; raise SourceUnavailable if it cannot be read."""
        ...

    def start(
        self,
        source: AcquisitionSource,
        specs: Sequence[StreamSpec],
        callback: FrameCallback,
        *,
        record_to: Optional[Path] = None,
        real_time: bool = True,
    ) -> None:
        """Activate ``specs`` and deliver frame events to ``callback``."""
        ...

    def stop(self, source: AcquisitionSource) -> None:
        """Halt delivery; no callback runs after this returns."""
        ...

    def release(self, source: AcquisitionSource) -> None:
        """Drop every handle the backend holds for ``source``."""
        ...

    def is_finished(self, source: AcquisitionSource) -> bool:
        """True once a file source has played to its end."""
        ...


class FrameSink(Protocol):
    """Protocol for frame destinations (display window, video file, log)."""

    name: str

    def open(self) -> None:
        """Acquire the sink; raise SinkOpenFailed when it is unusable."""
        ...

    def consume(self, event: FrameEvent) -> None:
        """Handle one frame event; called from the delivery consumer only."""
        ...

    def close(self) -> None:
        """Release the sink; called exactly once per opened sink."""
        ...


__all__ = ["AcquisitionBackend", "FrameCallback", "FrameSink"]
