# depthrec/session/cancel.py
"""Cooperative cancellation token and the interrupt handlers that trip it."""

from __future__ import annotations

import os
import signal
import threading
from contextlib import contextmanager
from types import FrameType
from typing import Callable, Iterator, Optional, Sequence

from depthrec.utils.logger import get_logger

_log = get_logger()

DEFAULT_SIGNALS: tuple[int, ...] = (signal.SIGINT, signal.SIGTERM)


class CancellationToken:
    """Observable stop flag shared by the run-loop and interrupt handlers.

    ``request`` only touches a ``threading.Event`` and plain attributes, so it
    is safe to call from a signal handler or the SDK's delivery thread.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: Optional[str] = None
        self._requests = 0

    def request(self, reason: str = "requested") -> None:
        self._requests += 1
        if self._reason is None:
            self._reason = reason
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block up to ``timeout`` seconds; True once cancelled."""
        return self._event.wait(timeout)

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    @property
    def requests(self) -> int:
        return self._requests

    def __bool__(self) -> bool:
        return self.is_cancelled()

    def __repr__(self) -> str:
        state = f"cancelled ({self._reason})" if self.is_cancelled() else "active"
        return f"CancellationToken({state})"


def install_interrupt_handler(
    token: CancellationToken,
    signals: Sequence[int] = DEFAULT_SIGNALS,
    *,
    force_after: int = 3,
) -> Callable[[], None]:
    """Route ``signals`` to ``token.request``; returns a restore callable.

    The ``force_after``-th signal exits the process immediately, for when
    teardown itself hangs.
    """
    received = [0]

    def _handler(signum: int, frame: FrameType | None) -> None:
        received[0] += 1
        if received[0] >= force_after:
            os._exit(128 + signum)
        token.request(signal.Signals(signum).name)

    previous: dict[int, object] = {}
    for sig in signals:
        try:
            previous[sig] = signal.signal(sig, _handler)
        except (ValueError, OSError) as exc:
            # not the main thread, or a signal this platform lacks
            _log.tag("SIG", f"cannot install handler for {sig}: {exc}", level="warning")

    def restore() -> None:
        for sig, old in previous.items():
            try:
                signal.signal(sig, old)  # type: ignore[arg-type]
            except (ValueError, OSError, TypeError) as exc:
                _log.tag("SIG", f"cannot restore handler for {sig}: {exc}", level="warning")
        previous.clear()

    if previous:
        _log.tag("SIG", f"interrupt handlers installed ({len(previous)})", level="debug")
    return restore


@contextmanager
def interrupt_scope(
    token: CancellationToken, signals: Sequence[int] = DEFAULT_SIGNALS
) -> Iterator[CancellationToken]:
    restore = install_interrupt_handler(token, signals)
    try:
        yield token
    finally:
        restore()


__all__ = [
    "CancellationToken",
    "DEFAULT_SIGNALS",
    "install_interrupt_handler",
    "interrupt_scope",
]
