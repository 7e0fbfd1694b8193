# depthrec/utils/io.py
"""File IO helpers with atomic JSON writes."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Any

from depthrec.utils.logger import get_logger

LOGGER = get_logger(__name__)


def ensure_directory(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def _atomic_write(path: Path, content: str) -> None:
    ensure_directory(path.parent)
    with tempfile.NamedTemporaryFile("w", delete=False, dir=path.parent, encoding="utf-8") as tmp:
        tmp.write(content)
        tmp_path = Path(tmp.name)
    tmp_path.replace(path)
    LOGGER.debug("Wrote file {} atomically", path)


def atomic_write_json(path: Path, data: Any, *, indent: int = 2) -> None:
    payload = json.dumps(data, indent=indent, sort_keys=True)
    _atomic_write(path, payload)


def load_json(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def discard_partial(path: Path) -> bool:
    """Remove a leftover partial output file; True when one was found."""
    if not path.exists():
        return False
    LOGGER.warning("Found partial output {} from an interrupted run; removing it", path)
    path.unlink()
    return True


def promote_partial(partial: Path, final: Path) -> Path:
    """Move a completed partial output into its final name."""
    partial.replace(final)
    LOGGER.debug("Promoted {} -> {}", partial, final)
    return final


__all__ = [
    "atomic_write_json",
    "discard_partial",
    "ensure_directory",
    "load_json",
    "promote_partial",
]
