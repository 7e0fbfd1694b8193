# depthrec/utils/logger.py
"""Single-source Loguru setup: console sink always, file sink on request."""

from __future__ import annotations

import inspect
import os
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO

from loguru import logger as _root_logger
from loguru._logger import Logger as LoguruLogger

from depthrec.config import LOG_FILE_PREFIX

_DEFAULT_LEVEL = os.environ.get("DEPTHREC_LOG_LEVEL", "INFO").upper()

_CONFIGURED = False
_LOGGER: Optional[LoguruLogger] = None
_LOG_FILE: Optional[Path] = None
_LOG_HANDLE: Optional[TextIO] = None


# ---------- sinks as callables ----------
def _console_sink(msg) -> None:
    r = msg.record
    module = r["extra"].get("module", r.get("name", "unknown"))
    # one record == one line
    print(f"{r['time']:%H:%M:%S} | {r['level'].name: <3.3} | {module} | {r['message']}")


def _make_file_sink(fh: TextIO):
    def _file_sink(msg) -> None:
        r = msg.record
        module = r["extra"].get("module", r.get("name", "unknown"))
        fh.write(
            f"{r['time'].isoformat()} | {r['level'].name} | {module} | {r['message']}\n"
        )
        fh.flush()

    return _file_sink


def _inject_extras(record) -> None:
    record["extra"].setdefault("module", record.get("name", "unknown"))


def _close_log_file() -> None:
    global _LOG_HANDLE
    if _LOG_HANDLE is not None:
        _LOG_HANDLE.close()
        _LOG_HANDLE = None


def _configure_logger(level: str | None = None, log_dir: Path | None = None) -> None:
    global _CONFIGURED, _LOGGER, _LOG_FILE, _LOG_HANDLE

    # drop every existing handler, including loguru's default stderr one
    _root_logger.remove()
    _close_log_file()
    _LOG_FILE = None

    logger = _root_logger.patch(_inject_extras)
    lvl = (level or _DEFAULT_LEVEL).upper()
    logger.add(_console_sink, level=lvl, catch=True)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        _LOG_FILE = log_dir / f"{LOG_FILE_PREFIX}_{timestamp}.log"
        _LOG_HANDLE = _LOG_FILE.open("a", encoding="utf-8")
        logger.add(_make_file_sink(_LOG_HANDLE), level=lvl, catch=True)

    _LOGGER = logger
    _CONFIGURED = True


def _caller_module_name() -> str | None:
    frame = inspect.currentframe()
    if frame is None or frame.f_back is None or frame.f_back.f_back is None:
        return None
    module = inspect.getmodule(frame.f_back.f_back)
    if module is None or module.__name__ == "__main__":
        return None
    return module.__name__


def get_logger(name: str | None = None) -> LoguruLogger:
    if not _CONFIGURED or _LOGGER is None:
        _configure_logger()

    module_name = name or _caller_module_name()
    bound = _LOGGER.bind(module=module_name or "unknown")  # type: ignore[union-attr]

    def _tag(label: str, msg: str | None = None, *args, level: str = "info") -> None:
        text = f"[{label}] " + (msg or "")
        method = getattr(bound, level, bound.info)
        if args:
            text = text.format(*args)
        method(text)

    setattr(bound, "tag", _tag)
    return bound


def configure(level: str | None = None, log_dir: Path | None = None) -> Path | None:
    """Reset sinks; returns the log file path when a file sink was added."""
    _configure_logger(level=level, log_dir=log_dir)
    return _LOG_FILE


def log_file() -> Path | None:
    return _LOG_FILE


__all__ = ["get_logger", "configure", "log_file"]
