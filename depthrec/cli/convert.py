# depthrec/cli/convert.py
"""Convert a ``.bag`` capture's color stream into an ``.mp4`` video."""

from __future__ import annotations

import sys
from typing import Optional

from depthrec.cam.protocols import AcquisitionBackend
from depthrec.cam.streams import AcquisitionSource, CaptureFile, StreamKind, StreamSelection
from depthrec.cli.common import attach_log_file, run_program
from depthrec.config import ConvertConfig, Settings
from depthrec.session.cancel import CancellationToken, interrupt_scope
from depthrec.session.controller import SessionController
from depthrec.sinks.video import VideoFileSink
from depthrec.utils.logger import get_logger

_log = get_logger()


def expected_frames(source: AcquisitionSource, config: ConvertConfig) -> Optional[int]:
    """Color frames a full conversion should write, from the recorded duration."""
    if not source.duration_s:
        return None
    fps = next(
        (spec.fps for spec in source.offered if spec.kind is StreamKind.COLOR and spec.fps),
        config.fps,
    )
    return max(1, int(round(source.duration_s * float(fps))))


def _convert(
    settings: Settings,
    token: CancellationToken,
    backend: Optional[AcquisitionBackend],
) -> int:
    paths = settings.paths
    controller = SessionController(backend, token=token, config=settings.session, name="convert")
    with interrupt_scope(token), controller:
        source = controller.open(CaptureFile(paths.capture_file))
        session = controller.configure(
            source,
            StreamSelection.of_kinds(StreamKind.COLOR),
            real_time=settings.convert.real_time,
        )
        sink = VideoFileSink(
            paths.video_file,
            settings.convert,
            expected_frames=expected_frames(source, settings.convert),
        )
        controller.sink = sink
        controller.start(session)
        attach_log_file(settings)
        _log.tag("CONV", f"Conversion started: {paths.capture_file.name} -> {paths.video_file.name}")
        reason = controller.run_until_cancelled()
        controller.stop(session)
    _log.tag("CONV", f"Conversion finished ({reason}). Output: {paths.video_file} ({sink.written} frames)")
    return 0


def main(
    *,
    settings: Optional[Settings] = None,
    backend: Optional[AcquisitionBackend] = None,
    token: Optional[CancellationToken] = None,
) -> int:
    return run_program(
        "convert",
        lambda cfg, tok: _convert(cfg, tok, backend),
        settings=settings,
        token=token,
    )


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())


__all__ = ["expected_frames", "main"]
