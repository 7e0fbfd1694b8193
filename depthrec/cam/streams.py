# depthrec/cam/streams.py
"""Stream, source and frame-event types shared by backends, sessions and sinks."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Optional, Tuple

import numpy.typing as npt

from depthrec.config import StreamProfileConfig


class StreamKind(str, Enum):
    """Named data channel within a session; values follow ``rs.stream`` names."""

    DEPTH = "depth"
    COLOR = "color"
    INFRARED = "infrared"
    GYRO = "gyro"
    ACCEL = "accel"

    @classmethod
    def parse(cls, name: str) -> Optional["StreamKind"]:
        """Map an SDK stream name (``"stream.depth"`` or ``"depth"``) to a kind."""
        key = name.rsplit(".", 1)[-1].lower()
        for kind in cls:
            if kind.value == key:
                return kind
        return None


class SourceKind(str, Enum):
    LIVE = "live"
    FILE = "file"


@dataclass(frozen=True)
class StreamSpec:
    """One (kind, resolution, rate, format) tuple.

    ``None`` fields mean "whatever the source offers" and match anything.
    """

    kind: StreamKind
    width: Optional[int] = None
    height: Optional[int] = None
    fps: Optional[int] = None
    pixel_format: Optional[str] = None

    @classmethod
    def from_profile(cls, kind: StreamKind, profile: StreamProfileConfig) -> "StreamSpec":
        return cls(kind, profile.width, profile.height, profile.fps, profile.pixel_format)

    @property
    def is_explicit(self) -> bool:
        return None not in (self.width, self.height, self.fps, self.pixel_format)

    def matches(self, offered: "StreamSpec") -> bool:
        if self.kind is not offered.kind:
            return False
        for name in ("width", "height", "fps", "pixel_format"):
            want = getattr(self, name)
            if want is None:
                continue
            have = getattr(offered, name)
            if name == "pixel_format" and have is not None:
                if str(want).lower() != str(have).lower():
                    return False
            elif want != have:
                return False
        return True

    def describe(self) -> str:
        if not self.is_explicit:
            return self.kind.value
        return f"{self.kind.value} {self.width}x{self.height}@{self.fps} {self.pixel_format}"

    def as_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "width": self.width,
            "height": self.height,
            "fps": self.fps,
            "format": self.pixel_format,
        }


@dataclass(frozen=True)
class StreamSelection:
    """Set of streams requested for a session.

    ``specs`` empty together with ``all_offered`` means "activate every stream
    the source offers".
    """

    specs: Tuple[StreamSpec, ...] = ()
    all_offered: bool = False

    @classmethod
    def explicit(cls, *specs: StreamSpec) -> "StreamSelection":
        return cls(specs=tuple(specs))

    @classmethod
    def of_kinds(cls, *kinds: StreamKind) -> "StreamSelection":
        return cls(specs=tuple(StreamSpec(kind) for kind in kinds))

    @classmethod
    def everything(cls) -> "StreamSelection":
        return cls(all_offered=True)

    @property
    def kinds(self) -> Tuple[StreamKind, ...]:
        return tuple(spec.kind for spec in self.specs)

    def describe(self) -> str:
        if self.all_offered:
            return "all offered streams"
        return ", ".join(spec.describe() for spec in self.specs)


@dataclass
class AcquisitionSource:
    """A live device or a recorded capture, as opened by a backend."""

    kind: SourceKind
    label: str
    offered: Tuple[StreamSpec, ...]
    handle: Any = field(default=None, repr=False)
    path: Optional[Path] = None
    serial: Optional[str] = None
    duration_s: Optional[float] = None
    runtime: Any = field(default=None, repr=False)

    @property
    def is_file(self) -> bool:
        return self.kind is SourceKind.FILE

    @property
    def offered_kinds(self) -> Tuple[StreamKind, ...]:
        return unique_kinds(self.offered)

    def offers(self, request: StreamSpec) -> bool:
        return any(request.matches(spec) for spec in self.offered)


@dataclass(frozen=True)
class LiveDevice:
    """Descriptor for the first enumerated live device."""


@dataclass(frozen=True)
class CaptureFile:
    """Descriptor for a previously recorded capture file."""

    path: Path


SourceDescriptor = LiveDevice | CaptureFile


@dataclass(frozen=True)
class FrameEvent:
    """Frames available at one capture tick, keyed by stream kind."""

    index: int
    timestamp_ms: float
    frames: Mapping[StreamKind, npt.NDArray[Any]] = field(default_factory=dict)
    formats: Mapping[StreamKind, str] = field(default_factory=dict)

    def get(self, kind: StreamKind) -> Optional[npt.NDArray[Any]]:
        return self.frames.get(kind)

    def format_of(self, kind: StreamKind) -> Optional[str]:
        return self.formats.get(kind)

    def __contains__(self, kind: object) -> bool:
        return kind in self.frames

    def __iter__(self) -> Iterator[StreamKind]:
        return iter(self.frames)

    @property
    def kinds(self) -> Tuple[StreamKind, ...]:
        return tuple(self.frames)

    def shape_of(self, kind: StreamKind) -> Optional[Tuple[int, int]]:
        """Return (width, height) of a frame, or None when absent."""
        frame = self.frames.get(kind)
        if frame is None:
            return None
        return int(frame.shape[1]), int(frame.shape[0])


def unique_kinds(specs: Iterable[StreamSpec]) -> Tuple[StreamKind, ...]:
    out: list[StreamKind] = []
    for spec in specs:
        if spec.kind not in out:
            out.append(spec.kind)
    return tuple(out)


__all__ = [
    "AcquisitionSource",
    "CaptureFile",
    "FrameEvent",
    "LiveDevice",
    "SourceDescriptor",
    "SourceKind",
    "StreamKind",
    "StreamSelection",
    "StreamSpec",
    "unique_kinds",
]
