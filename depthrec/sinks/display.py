# depthrec/sinks/display.py
"""On-screen playback of depth and color frames in OpenCV windows."""

from __future__ import annotations

from typing import Callable, Optional

import cv2

from depthrec.cam.streams import FrameEvent, StreamKind
from depthrec.config import PlaybackConfig
from depthrec.errors import SinkOpenFailed
from depthrec.sinks.imaging import HAS_CV2_GUI, depth_to_colormap, to_bgr
from depthrec.utils.logger import get_logger

_log = get_logger()

QUIT_KEYS = (27, ord("q"), ord("Q"))


class DisplaySink:
    """Shows depth as a JET colormap and color converted to BGR.

    ``on_quit`` fires when Q or ESC is pressed in either window.
    """

    name = "display"

    def __init__(
        self,
        config: Optional[PlaybackConfig] = None,
        on_quit: Optional[Callable[[], None]] = None,
    ) -> None:
        self.config = config or PlaybackConfig()
        self.on_quit = on_quit
        self.shown = 0

    @property
    def windows(self) -> tuple[str, str]:
        return (self.config.depth_window, self.config.color_window)

    def open(self) -> None:
        if not HAS_CV2_GUI:
            raise SinkOpenFailed("OpenCV was built without GUI support (opencv-python-headless?)")
        try:
            for window in self.windows:
                cv2.namedWindow(window, cv2.WINDOW_AUTOSIZE)
        except cv2.error as exc:
            raise SinkOpenFailed(f"Cannot open display windows: {exc}") from exc
        _log.tag("SINK", f"display windows {self.windows}")

    def consume(self, event: FrameEvent) -> None:
        depth = event.get(StreamKind.DEPTH)
        if depth is not None:
            cv2.imshow(self.config.depth_window, depth_to_colormap(depth, self.config.depth_viz_max_mm))

        color = event.get(StreamKind.COLOR)
        if color is not None:
            cv2.imshow(self.config.color_window, to_bgr(color, event.format_of(StreamKind.COLOR)))

        if depth is None and color is None:
            return
        self.shown += 1
        key = cv2.waitKey(self.config.wait_ms) & 0xFF
        if key in QUIT_KEYS and self.on_quit is not None:
            self.on_quit()

    def close(self) -> None:
        for window in self.windows:
            try:
                cv2.destroyWindow(window)
            except cv2.error:
                _log.debug(f"window {window} already closed")
        _log.tag("SINK", f"display closed after {self.shown} events")


__all__ = ["DisplaySink", "QUIT_KEYS"]
