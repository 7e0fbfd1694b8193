# depthrec/session/__init__.py
"""Session lifecycle controller, cancellation and frame delivery."""

from __future__ import annotations

from .cancel import CancellationToken, install_interrupt_handler, interrupt_scope
from .channel import DeliveryWorker, FrameChannel
from .controller import (
    END_OF_CAPTURE,
    ConfiguredSession,
    SessionController,
    SessionState,
    SessionStats,
    resolve_specs,
)

__all__ = [
    "END_OF_CAPTURE",
    "CancellationToken",
    "ConfiguredSession",
    "DeliveryWorker",
    "FrameChannel",
    "SessionController",
    "SessionState",
    "SessionStats",
    "install_interrupt_handler",
    "interrupt_scope",
    "resolve_specs",
]
