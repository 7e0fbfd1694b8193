# depthrec/utils/progress.py
"""Shared tqdm wrappers to ensure consistent progress indicators."""

from __future__ import annotations

from tqdm.auto import tqdm

BAR_FORMAT = "{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]"


def counter(*, description: str | None = None, total: int | None = None, unit: str = "frame") -> tqdm:
    """Manually advanced bar for work driven by callbacks rather than a loop."""
    return tqdm(
        desc=description,
        total=total,
        unit=unit,
        leave=False,
        bar_format=BAR_FORMAT if total else None,
    )


__all__ = ["counter"]
