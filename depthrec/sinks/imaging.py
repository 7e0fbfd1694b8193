# depthrec/sinks/imaging.py
"""OpenCV conversions from SDK pixel layouts to displayable BGR images."""

from __future__ import annotations

from typing import Optional, Tuple

import cv2
import numpy as np

# opencv-python-headless ships the module without GUI support
HAS_CV2_GUI = hasattr(cv2, "namedWindow")

_TO_BGR = {
    "rgb8": cv2.COLOR_RGB2BGR,
    "rgba8": cv2.COLOR_RGBA2BGR,
    "bgra8": cv2.COLOR_BGRA2BGR,
    "yuyv": cv2.COLOR_YUV2BGR_YUYV,
    "uyvy": cv2.COLOR_YUV2BGR_UYVY,
    "y8": cv2.COLOR_GRAY2BGR,
    "mono8": cv2.COLOR_GRAY2BGR,
}


def to_bgr(image: np.ndarray, pixel_format: Optional[str] = "rgb8") -> np.ndarray:
    """Convert a color frame to OpenCV's BGR order.

    Frames without a known format are treated as RGB, which is what the
    recorder requests.
    """
    fmt = (pixel_format or "rgb8").lower()
    if fmt == "bgr8":
        return image
    code = _TO_BGR.get(fmt, cv2.COLOR_RGB2BGR)
    return cv2.cvtColor(image, code)


def depth_to_colormap(depth: np.ndarray, max_mm: float = 10000.0) -> np.ndarray:
    """Scale raw 16-bit depth to 8 bits (saturating at ``max_mm``) and apply JET."""
    depth8 = cv2.convertScaleAbs(depth, alpha=255.0 / float(max_mm))
    return cv2.applyColorMap(depth8, cv2.COLORMAP_JET)


def fit_frame(image: np.ndarray, size: Tuple[int, int]) -> np.ndarray:
    """Resize to ``size`` (width, height) when the image does not already match."""
    width, height = size
    if image.shape[1] == width and image.shape[0] == height:
        return image
    return cv2.resize(image, (width, height), interpolation=cv2.INTER_AREA)


__all__ = ["HAS_CV2_GUI", "depth_to_colormap", "fit_frame", "to_bgr"]
