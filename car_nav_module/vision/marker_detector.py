"""
Fiducial detection for the overhead cameras.

Every ArUco marker in a frame is reduced to a MarkerObservation; deciding
which IDs are the car and which are quadrant landmarks is left to the
frame fuser.
"""

import cv2
import cv2.aruco as aruco
import numpy as np
import time
import logging
from typing import Dict

from ..core.interfaces import IMarkerDetector, MarkerObservation, DetectionError
from ..core.config import VisionConfig
from .pose_estimator import estimate_marker_pose

logger = logging.getLogger(__name__)


# Predefined square dictionaries, e.g. "DICT_4X4_50" -> aruco.DICT_4X4_50
ARUCO_DICT_MAP: Dict[str, int] = {
    f"DICT_{bits}X{bits}_{count}": getattr(aruco, f"DICT_{bits}X{bits}_{count}")
    for bits in (4, 5, 6, 7)
    for count in (50, 100, 250, 1000)
}


def build_aruco_detector(dictionary: str) -> "aruco.ArucoDetector":
    """Create an OpenCV 4.7+ ArucoDetector for a named dictionary."""
    if dictionary not in ARUCO_DICT_MAP:
        raise ValueError(
            f"Unsupported ArUco dictionary {dictionary!r}, "
            f"expected one of {sorted(ARUCO_DICT_MAP)}"
        )
    marker_dict = aruco.getPredefinedDictionary(ARUCO_DICT_MAP[dictionary])
    return aruco.ArucoDetector(marker_dict, aruco.DetectorParameters())


class MarkerDetector(IMarkerDetector):
    """
    Detects car and landmark markers and converts them to planar poses.

    Example:
        >>> detector = MarkerDetector(config.vision)
        >>> car = detector.detect(frame).get(config.vision.car_marker_id)
    """

    def __init__(self, config: VisionConfig):
        self.config = config
        self._aruco = build_aruco_detector(config.aruco_dictionary)

        self._frames_processed = 0
        self._busy_seconds = 0.0

        logger.info(f"Marker detector ready ({config.aruco_dictionary})")

    def detect(self, frame: np.ndarray) -> Dict[int, MarkerObservation]:
        """
        Find all markers in a frame.

        Args:
            frame: BGR or single-channel image

        Returns:
            Observations keyed by marker ID. If an ID shows up twice, the
            later detection wins.

        Raises:
            DetectionError: If OpenCV rejects the frame
        """
        if frame is None or frame.size == 0:
            logger.warning("Skipping detection on an empty frame")
            return {}

        started = time.perf_counter()
        try:
            if frame.ndim == 2:
                gray = frame
            else:
                gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
            corner_sets, ids, _ = self._aruco.detectMarkers(gray)
        except cv2.error as e:
            raise DetectionError(f"ArUco detection failed: {e}") from e
        elapsed = time.perf_counter() - started

        self._frames_processed += 1
        self._busy_seconds += elapsed

        if ids is None:
            return {}

        seen_at = time.time()
        observations: Dict[int, MarkerObservation] = {}
        for marker_id, quad in zip(ids.flatten(), corner_sets):
            observation = estimate_marker_pose(
                int(marker_id),
                quad[0],
                heading_offset=self.config.heading_offset_rad,
                timestamp=seen_at,
            )
            observations[observation.marker_id] = observation

        logger.debug(
            f"Markers {sorted(observations)} found in {elapsed * 1000:.1f}ms"
        )
        return observations

    @property
    def average_detection_time_ms(self) -> float:
        if not self._frames_processed:
            return 0.0
        return 1000.0 * self._busy_seconds / self._frames_processed

    def reset_stats(self) -> None:
        self._frames_processed = 0
        self._busy_seconds = 0.0
