# depthrec/sinks/log.py
"""Frame sink that only reports what arrives; used while the SDK records."""

from __future__ import annotations

from collections import Counter

from depthrec.cam.streams import FrameEvent, StreamKind
from depthrec.utils.logger import get_logger

_log = get_logger()

_REPORTED = (StreamKind.DEPTH, StreamKind.COLOR)


class FrameLogSink:
    name = "log"

    def __init__(self, log_every_n: int = 30) -> None:
        self.log_every_n = max(1, int(log_every_n))
        self.events = 0
        self.counts: Counter[StreamKind] = Counter()

    def open(self) -> None:
        self.events = 0
        self.counts.clear()

    def consume(self, event: FrameEvent) -> None:
        self.events += 1
        for kind in _REPORTED:
            size = event.shape_of(kind)
            if size is None:
                continue
            self.counts[kind] += 1
            _log.debug(f"{kind.value.capitalize()} frame: {size[0]}x{size[1]}")
        if self.events % self.log_every_n == 0:
            _log.tag(
                "REC",
                f"{self.events} events (depth={self.counts[StreamKind.DEPTH]}, "
                f"color={self.counts[StreamKind.COLOR]})",
            )

    def close(self) -> None:
        _log.tag("REC", f"frame log closed after {self.events} events")


__all__ = ["FrameLogSink"]
