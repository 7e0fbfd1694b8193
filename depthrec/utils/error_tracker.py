# depthrec/utils/error_tracker.py
"""Centralised error tracking for capture sessions."""

from __future__ import annotations

import threading
import traceback
from collections.abc import Callable
from contextlib import contextmanager
from dataclasses import dataclass, field

from depthrec.utils.logger import get_logger

CleanupFn = Callable[[], None]


@dataclass(slots=True)
class ErrorTracker:
    """Collect exceptions and contextual information during a session."""

    context: str = "ErrorTracker"
    errors: dict[str, list[str]] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    # ────────────── collection API ──────────────
    def record(self, key: str, message: str) -> None:
        logger = get_logger(self.context)
        logger.error(f"{key}: {message}")
        with self._lock:
            self.errors.setdefault(key, []).append(message)

    def count(self, key: str | None = None) -> int:
        with self._lock:
            if key is not None:
                return len(self.errors.get(key, []))
            return sum(len(messages) for messages in self.errors.values())

    def summary(self) -> dict[str, list[str]]:
        logger = get_logger(self.context)
        with self._lock:
            snapshot = {key: list(messages) for key, messages in self.errors.items()}
        if not snapshot:
            logger.info("No errors recorded")
            return {}
        for key, messages in snapshot.items():
            logger.warning(f"Encountered {len(messages)} issues for {key}")
        return snapshot

    # ────────────── best-effort helpers ──────────────

    @classmethod
    def report(
        cls,
        exc: BaseException,
        *,
        key: str = "exception",
        context: str | None = None,
    ) -> None:
        """Log an exception that must not interrupt teardown."""
        logger = get_logger(context or "ErrorTracker")
        logger.error(f"{key}: {type(exc).__name__}: {exc}")

    @classmethod
    def run_cleanup(cls, fn: CleanupFn, *, key: str = "cleanup") -> bool:
        """Run ``fn``; report and swallow its exception. True on success."""
        try:
            fn()
        except Exception as exc:
            cls.report(exc, key=key)
            return False
        return True


# ────────────── context manager API ──────────────


@contextmanager
def error_scope(tracker: ErrorTracker, key: str):
    """Record an exception raised inside the block under ``key`` and keep going."""
    try:
        yield
    except Exception as exc:
        tracker.record(key, f"{type(exc).__name__}: {exc}")
        get_logger(tracker.context).debug(f"Traceback:\n{traceback.format_exc()}")


__all__ = ["ErrorTracker", "error_scope"]
