# depthrec/cli/playback.py
"""Play a ``.bag`` capture back in two OpenCV windows (Depth, Color)."""

from __future__ import annotations

import sys
from typing import Optional

from depthrec.cam.protocols import AcquisitionBackend
from depthrec.cam.streams import CaptureFile, StreamSelection
from depthrec.cli.common import attach_log_file, log_sidecar, run_program
from depthrec.config import Settings
from depthrec.session.cancel import CancellationToken, interrupt_scope
from depthrec.session.controller import SessionController
from depthrec.sinks.display import DisplaySink
from depthrec.utils.logger import get_logger

_log = get_logger()


def _playback(
    settings: Settings,
    token: CancellationToken,
    backend: Optional[AcquisitionBackend],
) -> int:
    paths = settings.paths
    sink = DisplaySink(settings.playback, on_quit=lambda: token.request("quit key"))
    controller = SessionController(
        backend, sink=sink, token=token, config=settings.session, name="playback"
    )
    with interrupt_scope(token), controller:
        source = controller.open(CaptureFile(paths.capture_file))
        log_sidecar(paths.sidecar_file)
        session = controller.configure(
            source, StreamSelection.everything(), real_time=settings.playback.real_time
        )
        controller.start(session)
        attach_log_file(settings)
        _log.tag("PLAY", "Playback started. Press Ctrl+C (or Q in a window) to stop...")
        reason = controller.run_until_cancelled()
        stats = controller.stop(session)
    _log.tag("PLAY", f"Playback finished ({reason}): {stats.delivered} frame events shown")
    return 0


def main(
    *,
    settings: Optional[Settings] = None,
    backend: Optional[AcquisitionBackend] = None,
    token: Optional[CancellationToken] = None,
) -> int:
    return run_program(
        "playback",
        lambda cfg, tok: _playback(cfg, tok, backend),
        settings=settings,
        token=token,
    )


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())


__all__ = ["main"]
