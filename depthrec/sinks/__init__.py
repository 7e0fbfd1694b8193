# depthrec/sinks/__init__.py
"""Frame sinks: OpenCV display, video file, and a frame log."""

from __future__ import annotations

from .display import DisplaySink
from .log import FrameLogSink
from .video import VideoFileSink

__all__ = ["DisplaySink", "FrameLogSink", "VideoFileSink"]
