# tests/test_config.py
"""Tests for centralized configuration module."""

from __future__ import annotations

from pathlib import Path

import pytest

from depthrec.config import (
    CAPTURE_SUFFIX,
    PARTIAL_SUFFIX,
    SESSION_POLL_INTERVAL_S,
    PathsConfig,
    Settings,
    get_settings,
)


def test_constants_are_defined() -> None:
    """Verify that constants are defined and have expected types."""
    assert CAPTURE_SUFFIX == ".bag"
    assert PARTIAL_SUFFIX == ".part"
    assert SESSION_POLL_INTERVAL_S == 1.0


def test_get_settings_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Defaults follow $HOME and the fixed stream constants."""
    for key in (
        "DEPTHREC_CAPTURE_DIR",
        "DEPTHREC_LOGS_ROOT",
        "DEPTHREC_CAPTURE_NAME",
        "DEPTHREC_POLL_INTERVAL",
        "DEPTHREC_CHANNEL_SIZE",
        "DEPTHREC_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))

    settings = get_settings()

    assert isinstance(settings, Settings)
    assert settings.paths.capture_dir == tmp_path / "depthrec" / "captures"
    assert settings.paths.logs_root == settings.paths.capture_dir / "logs"
    assert settings.paths.capture_file.name == "record_video.bag"
    assert settings.paths.video_file.name == "record_video.mp4"
    assert settings.record.depth.as_tuple() == (640, 480, 15, "z16")
    assert settings.record.color.as_tuple() == (640, 480, 15, "rgb8")
    assert settings.convert.fourcc == "avc1"
    assert settings.convert.frame_size == (640, 480)
    assert settings.convert.fps == 15.0
    assert settings.playback.depth_viz_max_mm == 10000.0
    assert settings.session.poll_interval_s == 1.0
    assert settings.log_level == "INFO"


def test_get_settings_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Environment variables override paths and session timing."""
    monkeypatch.setenv("DEPTHREC_CAPTURE_DIR", str(tmp_path / "caps"))
    monkeypatch.setenv("DEPTHREC_LOGS_ROOT", str(tmp_path / "logs"))
    monkeypatch.setenv("DEPTHREC_CAPTURE_NAME", "run42")
    monkeypatch.setenv("DEPTHREC_POLL_INTERVAL", "0.25")
    monkeypatch.setenv("DEPTHREC_CHANNEL_SIZE", "5")
    monkeypatch.setenv("DEPTHREC_LOG_LEVEL", "debug")

    settings = get_settings()

    assert settings.paths.capture_file == tmp_path / "caps" / "run42.bag"
    assert settings.paths.logs_root == tmp_path / "logs"
    assert settings.session.poll_interval_s == 0.25
    assert settings.session.channel_size == 5
    assert settings.log_level == "DEBUG"


def test_paths_derived_names(tmp_path: Path) -> None:
    """Partial, sidecar and video files sit next to the capture."""
    paths = PathsConfig(capture_dir=tmp_path, logs_root=tmp_path / "logs", capture_name="x")

    assert paths.capture_file == tmp_path / "x.bag"
    assert paths.partial_capture_file == tmp_path / "x.bag.part"
    assert paths.sidecar_file == tmp_path / "x.json"
    assert paths.video_file == tmp_path / "x.mp4"


def test_settings_immutability() -> None:
    """Test that Settings is frozen and immutable."""
    settings = get_settings()

    with pytest.raises(Exception):  # FrozenInstanceError
        settings.paths = None  # type: ignore
