"""
Utility functions and helpers for the Car Nav Module.
"""

import logging
import math
import time
import numpy as np
from typing import Optional

logger = logging.getLogger(__name__)


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value between min and max."""
    return max(min_val, min(max_val, value))


def normalize_angle(angle: float) -> float:
    """Wrap an angle in radians into (-pi, pi]."""
    while angle > math.pi:
        angle -= 2.0 * math.pi
    while angle <= -math.pi:
        angle += 2.0 * math.pi
    return angle


class IntervalTimer:
    """
    Wall-clock cadence gate.

    ``due()`` only checks; ``mark()`` restarts the interval, normally once
    the guarded work has finished. The first check is always due. Uses the
    monotonic clock unless a timestamp is supplied.
    """

    def __init__(self, interval_sec: float):
        """
        Initialize the timer.

        Args:
            interval_sec: Minimum time between marks in seconds
        """
        self._interval = interval_sec
        self._last_time: Optional[float] = None

    def due(self, now: Optional[float] = None) -> bool:
        """Check if the interval has elapsed since the last mark."""
        if self._last_time is None:
            return True
        current = time.monotonic() if now is None else now
        return current - self._last_time >= self._interval

    def mark(self, now: Optional[float] = None) -> None:
        """Restart the interval at ``now``."""
        self._last_time = time.monotonic() if now is None else now

    def reset(self) -> None:
        """Make the next call to ``due`` fire immediately."""
        self._last_time = None

    @property
    def interval(self) -> float:
        return self._interval


def generate_aruco_marker(
    marker_id: int,
    dictionary: str = "DICT_4X4_50",
    size_pixels: int = 200,
    border_bits: int = 1
) -> np.ndarray:
    """
    Render a printable ArUco marker.

    Args:
        marker_id: ID within the dictionary (the car is 9, landmarks 11-14)
        dictionary: Name from ``ARUCO_DICT_MAP``
        size_pixels: Edge length of the square image
        border_bits: Width of the black border, in marker cells

    Returns:
        Single-channel uint8 image
    """
    import cv2.aruco as aruco

    from ..vision.marker_detector import ARUCO_DICT_MAP

    if dictionary not in ARUCO_DICT_MAP:
        raise ValueError(f"Unsupported ArUco dictionary {dictionary!r}")

    return aruco.generateImageMarker(
        aruco.getPredefinedDictionary(ARUCO_DICT_MAP[dictionary]),
        marker_id,
        size_pixels,
        borderBits=border_bits,
    )


def save_aruco_marker(
    marker_id: int,
    output_path: str,
    dictionary: str = "DICT_4X4_50",
    size_pixels: int = 200
) -> None:
    """Write a marker image (see ``generate_aruco_marker``) to ``output_path``."""
    import cv2

    if not cv2.imwrite(output_path, generate_aruco_marker(marker_id, dictionary, size_pixels)):
        raise IOError(f"Could not write marker image to {output_path}")
    logger.info(f"Marker {marker_id} written to {output_path}")


def create_default_config_file(filepath: str) -> None:
    """Write a JSON config file holding every default value."""
    from ..core.config import Config

    Config().save(filepath)
