# depthrec/cli/record.py
"""Record synchronized depth + color from the first device into a ``.bag``.

Runs until Ctrl+C. The capture is written as ``<name>.bag.part`` and renamed
to ``<name>.bag`` only after a clean stop; a ``.part`` left behind by a killed
run is removed on the next start.
"""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from typing import Optional

from depthrec.cam.protocols import AcquisitionBackend
from depthrec.cam.streams import LiveDevice, StreamKind, StreamSelection, StreamSpec
from depthrec.cli.common import attach_log_file, run_program
from depthrec.config import Settings
from depthrec.errors import SinkOpenFailed
from depthrec.session.cancel import CancellationToken, interrupt_scope
from depthrec.session.controller import SessionController
from depthrec.sinks.log import FrameLogSink
from depthrec.utils.io import atomic_write_json, discard_partial, ensure_directory, promote_partial
from depthrec.utils.logger import get_logger

_log = get_logger()


def record_selection(settings: Settings) -> StreamSelection:
    return StreamSelection.explicit(
        StreamSpec.from_profile(StreamKind.DEPTH, settings.record.depth),
        StreamSpec.from_profile(StreamKind.COLOR, settings.record.color),
    )


def _record(
    settings: Settings,
    token: CancellationToken,
    backend: Optional[AcquisitionBackend],
) -> int:
    paths = settings.paths
    partial, final = paths.partial_capture_file, paths.capture_file
    sink = FrameLogSink(settings.record.log_every_n)
    controller = SessionController(
        backend, sink=sink, token=token, config=settings.session, name="record"
    )
    started_at = datetime.now(timezone.utc)
    with interrupt_scope(token), controller:
        source = controller.open(LiveDevice())
        session = controller.configure(source, record_selection(settings), record_to=partial)
        try:
            ensure_directory(paths.capture_dir)
        except OSError as exc:
            raise SinkOpenFailed(f"Cannot create {paths.capture_dir}: {exc}") from exc
        discard_partial(partial)
        attach_log_file(settings)

        controller.start(session)
        _log.tag("REC", f"Recording started. Saving to {final}")
        _log.tag("REC", "Press Ctrl+C to stop...")
        controller.run_until_cancelled()
        stats = controller.stop(session)

    if partial.exists():
        promote_partial(partial, final)
    else:
        _log.tag("REC", f"recorder left no file at {partial}", level="warning")
    atomic_write_json(
        paths.sidecar_file,
        {
            "device": source.label,
            "capture": final.name,
            "started_at": started_at.isoformat(),
            "streams": [spec.as_dict() for spec in session.specs],
            "session": stats.as_dict(),
            "frames": {kind.value: count for kind, count in sink.counts.items()},
        },
    )
    _log.tag("REC", f"Recording stopped. {stats.received} frame events -> {final}")
    return 0


def main(
    *,
    settings: Optional[Settings] = None,
    backend: Optional[AcquisitionBackend] = None,
    token: Optional[CancellationToken] = None,
) -> int:
    return run_program(
        "record",
        lambda cfg, tok: _record(cfg, tok, backend),
        settings=settings,
        token=token,
    )


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())


__all__ = ["main", "record_selection"]
