# depthrec/utils/__init__.py
"""Utility package re-exporting shared helpers for depthrec."""

from depthrec.utils.error_tracker import ErrorTracker, error_scope
from depthrec.utils.io import (
    atomic_write_json,
    discard_partial,
    ensure_directory,
    load_json,
    promote_partial,
)
from depthrec.utils.logger import configure, get_logger
from depthrec.utils.progress import counter

__all__ = [
    "ErrorTracker",
    "atomic_write_json",
    "configure",
    "counter",
    "discard_partial",
    "ensure_directory",
    "error_scope",
    "get_logger",
    "load_json",
    "promote_partial",
]
