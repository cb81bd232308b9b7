"""
Quadrant landmark memory and target bookkeeping.
"""

import logging
import time
from typing import Optional, Dict, Tuple

from .config import VisionConfig
from .interfaces import Quadrant, MarkerObservation

logger = logging.getLogger(__name__)


class QuadrantTracker:
    """
    Remembers where each quadrant landmark was last seen and which
    quadrant is the current target.

    Landmark slots are overwritten whenever the marker is seen and never
    cleared. With ``landmark_max_age_sec`` set, a slot older than that is
    ignored when resolving the target centre but still kept.
    """

    def __init__(self, config: VisionConfig):
        self.config = config
        self._landmark_ids: Dict[Quadrant, int] = {
            Quadrant[name]: int(marker_id)
            for name, marker_id in config.landmark_ids.items()
        }
        self._quadrant_by_id: Dict[int, Quadrant] = {
            marker_id: quadrant for quadrant, marker_id in self._landmark_ids.items()
        }
        self._landmarks: Dict[Quadrant, Optional[MarkerObservation]] = {
            quadrant: None for quadrant in Quadrant
        }
        self._target: Optional[Quadrant] = None

    @staticmethod
    def classify(x: float, y: float, width: float, height: float) -> Quadrant:
        return Quadrant.from_position(x, y, width, height)

    @property
    def target(self) -> Optional[Quadrant]:
        return self._target

    def set_target(self, quadrant: Quadrant) -> bool:
        """Set the target quadrant. Returns True if it changed."""
        if quadrant == self._target:
            return False
        self._target = quadrant
        return True

    def landmark_id(self, quadrant: Quadrant) -> Optional[int]:
        return self._landmark_ids.get(quadrant)

    def quadrant_for_marker(self, marker_id: int) -> Optional[Quadrant]:
        return self._quadrant_by_id.get(marker_id)

    def is_target_landmark(self, marker_id: int) -> bool:
        return (
            self._target is not None
            and self._landmark_ids.get(self._target) == marker_id
        )

    def update_landmark(self, observation: MarkerObservation) -> Optional[Quadrant]:
        """
        Store a landmark observation.

        Returns:
            The quadrant the marker belongs to, or None if it is not a landmark
        """
        quadrant = self._quadrant_by_id.get(observation.marker_id)
        if quadrant is None:
            return None

        self._landmarks[quadrant] = observation
        logger.debug(
            f"found pos of {quadrant.name}: "
            f"({observation.center_x:.1f},{observation.center_y:.1f})"
        )
        return quadrant

    def landmark(self, quadrant: Quadrant) -> Optional[MarkerObservation]:
        return self._landmarks.get(quadrant)

    def is_fresh(self, observation: MarkerObservation, now: Optional[float] = None) -> bool:
        """Apply the configured landmark expiry."""
        max_age = self.config.landmark_max_age_sec
        if max_age is None:
            return True
        current = time.time() if now is None else now
        return current - observation.timestamp <= max_age

    def target_centre(self, now: Optional[float] = None) -> Optional[Tuple[float, float]]:
        """
        Resolve the steering target.

        Returns:
            Last known centroid of the target quadrant's landmark, or None if
            there is no target, the landmark was never seen, or it expired
        """
        if self._target is None:
            return None

        observation = self._landmarks.get(self._target)
        if observation is None:
            return None

        if not self.is_fresh(observation, now):
            logger.warning(
                f"Landmark for {self._target.name} is stale "
                f"(age {(time.time() if now is None else now) - observation.timestamp:.1f}s)"
            )
            return None

        return observation.position
