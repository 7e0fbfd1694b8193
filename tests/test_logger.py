# tests/test_logger.py
"""Tests for the loguru setup."""

from __future__ import annotations

from pathlib import Path

from depthrec.utils.logger import configure, get_logger, log_file


def test_console_only_by_default(tmp_path: Path) -> None:
    assert configure(level="INFO") is None
    assert log_file() is None


def test_file_sink_receives_tagged_messages(tmp_path: Path) -> None:
    path = configure(level="DEBUG", log_dir=tmp_path / "logs")

    assert path is not None
    assert log_file() == path
    assert path.parent == tmp_path / "logs"
    assert path.name.startswith("depthrec_")

    get_logger("tests.logger").tag("REC", "frame {} of {}", 3, 10)
    configure(level="DEBUG")

    text = path.read_text(encoding="utf-8")
    assert "tests.logger" in text
    assert "[REC] frame 3 of 10" in text


def test_level_filters_debug(tmp_path: Path) -> None:
    path = configure(level="WARNING", log_dir=tmp_path)

    get_logger("tests.logger").debug("hidden")
    get_logger("tests.logger").tag("SESS", "shown", level="warning")
    configure(level="DEBUG")

    text = path.read_text(encoding="utf-8")
    assert "hidden" not in text
    assert "[SESS] shown" in text
