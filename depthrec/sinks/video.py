# depthrec/sinks/video.py
"""Color stream to video container via ``cv2.VideoWriter``."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import cv2

from depthrec.cam.streams import FrameEvent, StreamKind
from depthrec.config import ConvertConfig
from depthrec.errors import SinkOpenFailed
from depthrec.sinks.imaging import fit_frame, to_bgr
from depthrec.utils.io import ensure_directory
from depthrec.utils.logger import get_logger
from depthrec.utils.progress import counter

_log = get_logger()


class VideoFileSink:
    """Writes every color frame; events without color are skipped."""

    name = "video"

    def __init__(
        self,
        path: Path,
        config: Optional[ConvertConfig] = None,
        *,
        expected_frames: Optional[int] = None,
        show_progress: bool = True,
    ) -> None:
        self.path = Path(path)
        self.config = config or ConvertConfig()
        self.expected_frames = expected_frames
        self.show_progress = show_progress
        self.writer: Any = None
        self.written = 0
        self.resized = 0
        self._progress: Any = None

    def open(self) -> None:
        try:
            ensure_directory(self.path.parent)
        except OSError as exc:
            raise SinkOpenFailed(f"Cannot create {self.path.parent}: {exc}") from exc
        fourcc = cv2.VideoWriter_fourcc(*self.config.fourcc)
        writer = cv2.VideoWriter(str(self.path), fourcc, float(self.config.fps), self.config.frame_size)
        if not writer.isOpened():
            writer.release()
            raise SinkOpenFailed(f"Cannot open {self.path} for writing ({self.config.fourcc})")
        self.writer = writer
        if self.show_progress:
            self._progress = counter(description="convert", total=self.expected_frames)
        _log.tag(
            "SINK",
            f"video {self.path.name}: {self.config.fourcc} {self.config.width}x{self.config.height}"
            f" @{self.config.fps:g}",
        )

    def consume(self, event: FrameEvent) -> None:
        color = event.get(StreamKind.COLOR)
        if color is None or self.writer is None:
            return
        bgr = to_bgr(color, event.format_of(StreamKind.COLOR))
        fitted = fit_frame(bgr, self.config.frame_size)
        if fitted is not bgr:
            self.resized += 1
        self.writer.write(fitted)
        self.written += 1
        if self._progress is not None:
            self._progress.update(1)

    def close(self) -> None:
        if self._progress is not None:
            self._progress.close()
            self._progress = None
        if self.writer is not None:
            self.writer.release()
            self.writer = None
        if self.resized:
            _log.tag("SINK", f"{self.resized} frames resized to {self.config.frame_size}", level="warning")
        _log.tag("SINK", f"video closed: {self.written} frames -> {self.path}")


__all__ = ["VideoFileSink"]
