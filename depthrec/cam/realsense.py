# depthrec/cam/realsense.py
"""Intel RealSense acquisition backend: live devices and ``.bag`` captures."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

import numpy as np

try:  # pragma: no cover - optional dependency
    import pyrealsense2 as rs
except Exception:  # noqa: BLE001
    rs = None  # type: ignore

from depthrec.cam.protocols import FrameCallback
from depthrec.cam.streams import (
    AcquisitionSource,
    FrameEvent,
    SourceKind,
    StreamKind,
    StreamSpec,
)
from depthrec.errors import NoDeviceFound, SessionSetupError, SourceUnavailable
from depthrec.utils.error_tracker import ErrorTracker
from depthrec.utils.logger import get_logger

_log = get_logger()


@dataclass(slots=True)
class _Runtime:
    pipeline: Any
    profile: Any
    playback: Any = None


def _require_rs() -> None:
    if rs is None:
        raise SessionSetupError("pyrealsense2 is not available")


def _enum_name(value: Any) -> str:
    # pybind11 enums expose .name; str() gives "stream.depth"
    name = getattr(value, "name", None)
    return str(name if name is not None else value).rsplit(".", 1)[-1].lower()


def _spec_from_profile(profile: Any) -> Optional[StreamSpec]:
    kind = StreamKind.parse(_enum_name(profile.stream_type()))
    if kind is None:
        return None
    fmt = _enum_name(profile.format())
    fps = int(profile.fps())
    if profile.is_video_stream_profile():
        video = profile.as_video_stream_profile()
        return StreamSpec(kind, int(video.width()), int(video.height()), fps, fmt)
    return StreamSpec(kind, None, None, fps, fmt)


def _offered_streams(device: Any) -> tuple[StreamSpec, ...]:
    specs: list[StreamSpec] = []
    for sensor in device.query_sensors():
        for profile in sensor.get_stream_profiles():
            spec = _spec_from_profile(profile)
            if spec is not None and spec not in specs:
                specs.append(spec)
    return tuple(specs)


def _device_info(device: Any, field: Any) -> Optional[str]:
    if device.supports(field):
        return str(device.get_info(field))
    return None


def _frame_data(frame: Any) -> np.ndarray:
    if frame.is_motion_frame():
        data = frame.as_motion_frame().get_motion_data()
        return np.array([data.x, data.y, data.z], dtype=np.float32)
    # SDK recycles frame memory once the callback returns
    return np.asanyarray(frame.get_data()).copy()


def to_frame_event(frame: Any) -> FrameEvent:
    """Bundle an SDK frame or frameset into a :class:`FrameEvent`."""
    members = frame.as_frameset() if frame.is_frameset() else [frame]
    frames: dict[StreamKind, np.ndarray] = {}
    formats: dict[StreamKind, str] = {}
    for member in members:
        profile = member.get_profile()
        kind = StreamKind.parse(_enum_name(profile.stream_type()))
        if kind is None or kind in frames:
            continue
        frames[kind] = _frame_data(member)
        formats[kind] = _enum_name(profile.format())
    return FrameEvent(
        index=int(frame.get_frame_number()),
        timestamp_ms=float(frame.get_timestamp()),
        frames=frames,
        formats=formats,
    )


class RealSenseBackend:
    """pyrealsense2 pipeline lifecycle behind the AcquisitionBackend protocol."""

    def open_device(self) -> AcquisitionSource:
        _require_rs()
        ctx = rs.context()
        devices = ctx.query_devices()
        if len(devices) == 0:
            raise NoDeviceFound("No RealSense device found")
        device = devices[0]
        name = _device_info(device, rs.camera_info.name) or "RealSense"
        serial = _device_info(device, rs.camera_info.serial_number)
        offered = _offered_streams(device)
        label = f"{name} #{serial}" if serial else name
        _log.tag("RS2", f"device {label}: {len(offered)} stream profiles")
        return AcquisitionSource(
            kind=SourceKind.LIVE,
            label=label,
            offered=offered,
            handle=device,
            serial=serial,
        )

    def open_file(self, path: Path) -> AcquisitionSource:
        _require_rs()
        path = Path(path)
        if not path.is_file():
            raise SourceUnavailable(f"Capture file not found: {path}")
        ctx = rs.context()
        try:
            playback = ctx.load_device(str(path))
        except RuntimeError as exc:
            raise SourceUnavailable(f"Cannot open capture file {path}: {exc}") from exc
        try:
            offered = _offered_streams(playback)
            duration = float(playback.get_duration().total_seconds())
        finally:
            # the probe device only lists streams; the pipeline opens its own
            ErrorTracker.run_cleanup(lambda: ctx.unload_device(str(path)), key="unload")
        _log.tag("RS2", f"capture {path.name}: {', '.join(s.describe() for s in offered)}")
        return AcquisitionSource(
            kind=SourceKind.FILE,
            label=str(path),
            offered=offered,
            path=path,
            duration_s=duration,
        )

    def start(
        self,
        source: AcquisitionSource,
        specs: Sequence[StreamSpec],
        callback: FrameCallback,
        *,
        record_to: Optional[Path] = None,
        real_time: bool = True,
    ) -> None:
        _require_rs()
        pipeline = rs.pipeline()
        cfg = rs.config()
        if source.is_file:
            cfg.enable_device_from_file(str(source.path), repeat_playback=False)
        elif source.serial:
            cfg.enable_device(source.serial)
        for spec in specs:
            stream = getattr(rs.stream, spec.kind.value)
            if spec.is_explicit:
                cfg.enable_stream(
                    stream,
                    spec.width,
                    spec.height,
                    getattr(rs.format, str(spec.pixel_format).lower()),
                    spec.fps,
                )
            else:
                cfg.enable_stream(stream)
        if record_to is not None:
            cfg.enable_record_to_file(str(record_to))

        def _on_frame(frame: Any) -> None:
            try:
                event = to_frame_event(frame)
            except RuntimeError as exc:
                ErrorTracker.report(exc, key="decode")
                return
            callback(event)

        try:
            profile = pipeline.start(cfg, _on_frame)
        except RuntimeError as exc:
            raise SessionSetupError(f"Pipeline start failed: {exc}") from exc

        playback = None
        if source.is_file:
            playback = profile.get_device().as_playback()
            playback.set_real_time(bool(real_time))
        source.runtime = _Runtime(pipeline=pipeline, profile=profile, playback=playback)
        _log.tag(
            "RS2",
            f"pipeline started: {', '.join(s.describe() for s in specs)}"
            + (f" -> {record_to}" if record_to is not None else ""),
        )

    def stop(self, source: AcquisitionSource) -> None:
        runtime: Optional[_Runtime] = source.runtime
        if runtime is None:
            _log.debug("RealSense pipeline already stopped")
            return
        runtime.pipeline.stop()
        # recorder flushes the .bag when its device handle goes away
        runtime.playback = None
        runtime.profile = None
        _log.tag("RS2", "pipeline stopped")

    def release(self, source: AcquisitionSource) -> None:
        source.runtime = None
        source.handle = None

    def is_finished(self, source: AcquisitionSource) -> bool:
        runtime: Optional[_Runtime] = source.runtime
        if rs is None or runtime is None or runtime.playback is None:
            return False
        return runtime.playback.current_status() == rs.playback_status.stopped


__all__ = ["RealSenseBackend", "to_frame_event"]
