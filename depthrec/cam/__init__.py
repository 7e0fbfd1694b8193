# depthrec/cam/__init__.py
"""Camera sources, stream types and the RealSense backend."""

from __future__ import annotations

from .protocols import AcquisitionBackend, FrameCallback, FrameSink
from .realsense import RealSenseBackend
from .streams import (
    AcquisitionSource,
    CaptureFile,
    FrameEvent,
    LiveDevice,
    SourceDescriptor,
    SourceKind,
    StreamKind,
    StreamSelection,
    StreamSpec,
)

__all__ = [
    "AcquisitionBackend",
    "AcquisitionSource",
    "CaptureFile",
    "FrameCallback",
    "FrameEvent",
    "FrameSink",
    "LiveDevice",
    "RealSenseBackend",
    "SourceDescriptor",
    "SourceKind",
    "StreamKind",
    "StreamSelection",
    "StreamSpec",
]
