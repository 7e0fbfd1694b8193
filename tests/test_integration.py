# tests/test_integration.py
"""Integration smoke tests."""

from __future__ import annotations

import pytest

from depthrec.config import Settings


def test_config_import_smoke() -> None:
    """Smoke test: import and instantiate main config."""
    from depthrec import get_settings

    settings = get_settings()
    assert isinstance(settings, Settings)


def test_programs_import_smoke() -> None:
    """Smoke test: every program exposes a ``main`` entry point."""
    from depthrec.cli import convert, playback, record

    for module in (record, playback, convert):
        assert callable(module.main)


@pytest.mark.slow
def test_full_config_structure() -> None:
    """Comprehensive test of config structure."""
    from depthrec.config import get_settings

    settings = get_settings()

    for section in ("paths", "session", "record", "playback", "convert"):
        assert hasattr(settings, section)
    assert settings.record.depth.fps == settings.record.color.fps
    assert settings.convert.frame_size == (settings.record.color.width, settings.record.color.height)
