"""
Fusion of marker observations from several cameras into one car pose.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from ..core.interfaces import IMarkerDetector, MarkerObservation, DetectionError
from ..core.quadrant_tracker import QuadrantTracker

logger = logging.getLogger(__name__)


@dataclass
class FusionResult:
    """Result of fusing one tick's camera frames."""
    car: Optional[MarkerObservation] = None
    frame_width: Optional[int] = None
    frame_height: Optional[int] = None
    target_seen: bool = False
    frames_used: int = 0

    @property
    def has_dimensions(self) -> bool:
        return self.frame_width is not None and self.frame_height is not None


class FrameFuser:
    """
    Merges detections from frames given in camera priority order.

    Every landmark seen in any frame updates the tracker. The car pose
    comes from the first frame that saw the car, unless a later frame saw
    both the car and the target quadrant's landmark, in which case that
    frame wins. Frame dimensions follow the same preference.
    """

    def __init__(
        self,
        detector: IMarkerDetector,
        tracker: QuadrantTracker,
        car_marker_id: int
    ):
        self._detector = detector
        self._tracker = tracker
        self.car_marker_id = car_marker_id

    def fuse(self, frames: Sequence[Optional[np.ndarray]]) -> FusionResult:
        """
        Fuse the frames of one tick.

        Args:
            frames: Frames in camera priority order; None for a camera that
                produced nothing this tick

        Returns:
            FusionResult, with ``car`` None if no frame saw the car
        """
        result = FusionResult()

        for index, frame in enumerate(frames):
            if frame is None:
                continue

            try:
                observations = self._detector.detect(frame)
            except DetectionError as e:
                logger.error(f"Detection error on frame {index + 1}: {e}")
                continue

            result.frames_used += 1
            frame_car = observations.get(self.car_marker_id)
            found = False

            for marker_id, observation in observations.items():
                if self._tracker.update_landmark(observation) is None:
                    continue
                if self._tracker.is_target_landmark(marker_id):
                    found = True

            if result.car is None or (frame_car is not None and found):
                result.car = frame_car

            if result.frame_width is None or found:
                result.frame_height, result.frame_width = frame.shape[:2]

            result.target_seen = result.target_seen or found

        return result
