# depthrec/cli/common.py
"""Shared plumbing for the record / playback / convert programs."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from depthrec.config import Settings, get_settings
from depthrec.errors import SessionSetupError
from depthrec.session.cancel import CancellationToken
from depthrec.utils.io import load_json
from depthrec.utils.logger import configure, get_logger

_log = get_logger()

ProgramBody = Callable[[Settings, CancellationToken], int]


def attach_log_file(settings: Settings) -> Optional[Path]:
    """Add the file sink once setup succeeded, so a failed start leaves no files."""
    path = configure(level=settings.log_level, log_dir=settings.paths.logs_root)
    _log.tag("LOG", f"writing log to {path}", level="debug")
    return path


def run_program(
    name: str,
    body: ProgramBody,
    *,
    settings: Optional[Settings] = None,
    token: Optional[CancellationToken] = None,
) -> int:
    """Run ``body`` and map setup failures to process exit codes."""
    settings = settings or get_settings()
    configure(level=settings.log_level)
    token = token or CancellationToken()
    try:
        return body(settings, token)
    except SessionSetupError as exc:
        _log.tag(name.upper(), f"{type(exc).__name__}: {exc}", level="error")
        return exc.exit_code
    except RuntimeError as exc:
        # anything else the SDK raises during setup
        _log.tag(name.upper(), f"SDK error: {exc}", level="error")
        return 1


def log_sidecar(path: Path) -> Optional[dict]:
    """Log the metadata written next to a capture, when there is one."""
    if not path.is_file():
        return None
    try:
        meta = load_json(path)
    except (OSError, ValueError) as exc:
        _log.tag("META", f"unreadable sidecar {path.name}: {exc}", level="warning")
        return None
    streams = ", ".join(
        f"{s.get('kind')} {s.get('width')}x{s.get('height')}@{s.get('fps')}"
        for s in meta.get("streams", [])
    )
    _log.tag("META", f"{meta.get('device', '?')}: {streams}; {meta.get('session', {})}")
    return meta


__all__ = ["ProgramBody", "attach_log_file", "log_sidecar", "run_program"]
