"""Centralized configuration for the depthrec capture tools.

All constants, settings, and configuration dataclasses are defined here.
Modules should import from this single source of truth.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Final, Tuple

# ============================================================================
# ENVIRONMENT HELPERS
# ============================================================================


def _env_path(key: str, default: Path) -> Path:
    """Resolve path from environment variable with fallback."""
    value = os.getenv(key)
    return Path(value).expanduser() if value else default


def _env_str(key: str, default: str) -> str:
    """Resolve string from environment variable with fallback."""
    value = os.getenv(key)
    return value if value is not None else default


def _env_int(key: str, default: int) -> int:
    """Resolve integer from environment variable with fallback."""
    value = os.getenv(key)
    return int(value) if value is not None else default


def _env_float(key: str, default: float) -> float:
    """Resolve float from environment variable with fallback."""
    value = os.getenv(key)
    return float(value) if value is not None else default


def _home_dir() -> Path:
    return Path(os.getenv("HOME") or Path.home())


# ============================================================================
# STREAM CONSTANTS
# ============================================================================

DEPTH_WIDTH: Final[int] = 640
DEPTH_HEIGHT: Final[int] = 480
DEPTH_FPS: Final[int] = 15
DEPTH_FORMAT: Final[str] = "z16"

COLOR_WIDTH: Final[int] = 640
COLOR_HEIGHT: Final[int] = 480
COLOR_FPS: Final[int] = 15
COLOR_FORMAT: Final[str] = "rgb8"

# ============================================================================
# SESSION CONSTANTS
# ============================================================================

SESSION_POLL_INTERVAL_S: Final[float] = 1.0
SESSION_CHANNEL_SIZE: Final[int] = 30
SESSION_JOIN_TIMEOUT_S: Final[float] = 5.0
RECORD_LOG_EVERY_N: Final[int] = 30

# ============================================================================
# DISPLAY / VIDEO CONSTANTS
# ============================================================================

DEPTH_VIZ_MAX_MM: Final[float] = 10000.0
DISPLAY_DEPTH_WINDOW: Final[str] = "Depth"
DISPLAY_COLOR_WINDOW: Final[str] = "Color"
DISPLAY_WAIT_MS: Final[int] = 1

VIDEO_FOURCC: Final[str] = "avc1"
VIDEO_FPS: Final[float] = 15.0
VIDEO_WIDTH: Final[int] = 640
VIDEO_HEIGHT: Final[int] = 480

# ============================================================================
# FILE NAMING CONSTANTS
# ============================================================================

CAPTURE_NAME_DEFAULT: Final[str] = "record_video"
CAPTURE_SUFFIX: Final[str] = ".bag"
PARTIAL_SUFFIX: Final[str] = ".part"
VIDEO_SUFFIX: Final[str] = ".mp4"
SIDECAR_SUFFIX: Final[str] = ".json"
LOG_FILE_PREFIX: Final[str] = "depthrec"

# ============================================================================
# ENUMS
# ============================================================================


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# ============================================================================
# DATACLASSES - Configuration Sections
# ============================================================================


@dataclass(frozen=True)
class StreamProfileConfig:
    """Requested profile of one video stream."""

    width: int
    height: int
    fps: int
    pixel_format: str

    def as_tuple(self) -> Tuple[int, int, int, str]:
        """Return profile as (width, height, fps, format)."""
        return (self.width, self.height, self.fps, self.pixel_format)


@dataclass(frozen=True)
class PathsConfig:
    """File system paths configuration."""

    capture_dir: Path
    logs_root: Path
    capture_name: str = CAPTURE_NAME_DEFAULT

    @property
    def capture_file(self) -> Path:
        return self.capture_dir / f"{self.capture_name}{CAPTURE_SUFFIX}"

    @property
    def partial_capture_file(self) -> Path:
        return self.capture_dir / f"{self.capture_name}{CAPTURE_SUFFIX}{PARTIAL_SUFFIX}"

    @property
    def video_file(self) -> Path:
        return self.capture_dir / f"{self.capture_name}{VIDEO_SUFFIX}"

    @property
    def sidecar_file(self) -> Path:
        return self.capture_dir / f"{self.capture_name}{SIDECAR_SUFFIX}"


@dataclass(frozen=True)
class SessionConfig:
    """Session lifecycle timing."""

    poll_interval_s: float = SESSION_POLL_INTERVAL_S
    channel_size: int = SESSION_CHANNEL_SIZE
    join_timeout_s: float = SESSION_JOIN_TIMEOUT_S


@dataclass(frozen=True)
class RecordConfig:
    """Live recording stream selection."""

    depth: StreamProfileConfig = field(
        default_factory=lambda: StreamProfileConfig(
            DEPTH_WIDTH, DEPTH_HEIGHT, DEPTH_FPS, DEPTH_FORMAT
        )
    )
    color: StreamProfileConfig = field(
        default_factory=lambda: StreamProfileConfig(
            COLOR_WIDTH, COLOR_HEIGHT, COLOR_FPS, COLOR_FORMAT
        )
    )
    log_every_n: int = RECORD_LOG_EVERY_N


@dataclass(frozen=True)
class PlaybackConfig:
    """On-screen playback configuration."""

    depth_viz_max_mm: float = DEPTH_VIZ_MAX_MM
    depth_window: str = DISPLAY_DEPTH_WINDOW
    color_window: str = DISPLAY_COLOR_WINDOW
    wait_ms: int = DISPLAY_WAIT_MS
    real_time: bool = True


@dataclass(frozen=True)
class ConvertConfig:
    """Capture-to-video conversion configuration."""

    fourcc: str = VIDEO_FOURCC
    fps: float = VIDEO_FPS
    width: int = VIDEO_WIDTH
    height: int = VIDEO_HEIGHT
    real_time: bool = False

    @property
    def frame_size(self) -> Tuple[int, int]:
        return (self.width, self.height)


# ============================================================================
# MAIN CONFIGURATION
# ============================================================================


@dataclass(frozen=True)
class Settings:
    """Main application configuration.

    All subsystem configurations are aggregated here.
    Instances are immutable (frozen=True) to prevent accidental mutation.
    """

    paths: PathsConfig
    session: SessionConfig
    record: RecordConfig
    playback: PlaybackConfig
    convert: ConvertConfig
    log_level: str = LogLevel.INFO.value


def get_settings() -> Settings:
    """Factory function to create Settings with environment variable overrides.

    Environment variables:
        DEPTHREC_CAPTURE_DIR: Directory holding capture and video files
        DEPTHREC_LOGS_ROOT: Logs directory
        DEPTHREC_CAPTURE_NAME: Base name of the capture file
        DEPTHREC_POLL_INTERVAL: Run-loop polling interval in seconds
        DEPTHREC_CHANNEL_SIZE: Pending frame events kept per session
        DEPTHREC_LOG_LEVEL: Logging level
    """
    capture_dir = _env_path("DEPTHREC_CAPTURE_DIR", _home_dir() / "depthrec" / "captures")
    logs_root = _env_path("DEPTHREC_LOGS_ROOT", capture_dir / "logs")

    paths = PathsConfig(
        capture_dir=capture_dir,
        logs_root=logs_root,
        capture_name=_env_str("DEPTHREC_CAPTURE_NAME", CAPTURE_NAME_DEFAULT),
    )

    session = SessionConfig(
        poll_interval_s=_env_float("DEPTHREC_POLL_INTERVAL", SESSION_POLL_INTERVAL_S),
        channel_size=_env_int("DEPTHREC_CHANNEL_SIZE", SESSION_CHANNEL_SIZE),
    )

    return Settings(
        paths=paths,
        session=session,
        record=RecordConfig(),
        playback=PlaybackConfig(),
        convert=ConvertConfig(),
        log_level=_env_str("DEPTHREC_LOG_LEVEL", LogLevel.INFO.value).upper(),
    )


# ============================================================================
# MODULE EXPORTS
# ============================================================================

__all__ = [
    # Factory
    "get_settings",
    # Main config
    "Settings",
    # Config sections
    "StreamProfileConfig",
    "PathsConfig",
    "SessionConfig",
    "RecordConfig",
    "PlaybackConfig",
    "ConvertConfig",
    # Enums
    "LogLevel",
    # Constants (selected for external use)
    "CAPTURE_SUFFIX",
    "PARTIAL_SUFFIX",
    "SESSION_POLL_INTERVAL_S",
]
