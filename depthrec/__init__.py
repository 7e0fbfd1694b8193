# depthrec/__init__.py
"""Record, play back and convert RealSense depth + color captures."""

from __future__ import annotations

from depthrec.config import Settings, get_settings
from depthrec.session import CancellationToken, SessionController, SessionState

__all__ = [
    "CancellationToken",
    "SessionController",
    "SessionState",
    "Settings",
    "get_settings",
]
