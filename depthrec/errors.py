"""Setup-time failures of a capture session.

Every setup error is fatal: the programs report it and exit with the
matching ``exit_code`` without retrying.
"""

from __future__ import annotations

from typing import ClassVar


class SessionSetupError(RuntimeError):
    """Base class for errors raised while a session is being set up."""

    exit_code: ClassVar[int] = 1


class NoDeviceFound(SessionSetupError):
    exit_code: ClassVar[int] = 2


class SourceUnavailable(SessionSetupError):
    exit_code: ClassVar[int] = 3


class UnsupportedStream(SessionSetupError):
    exit_code: ClassVar[int] = 4


class SinkOpenFailed(SessionSetupError):
    exit_code: ClassVar[int] = 5


class SessionStateError(RuntimeError):
    """Lifecycle operation invoked in a state that does not allow it."""


__all__ = [
    "SessionSetupError",
    "NoDeviceFound",
    "SourceUnavailable",
    "UnsupportedStream",
    "SinkOpenFailed",
    "SessionStateError",
]
