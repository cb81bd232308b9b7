"""
Abstract base classes and shared types for the Car Nav Module.

These define the contracts that concrete implementations must follow,
enabling dependency injection and easier testing.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Tuple, Dict
from enum import Enum
import time
import numpy as np


class Quadrant(Enum):
    """The four regions of the arena, split at the frame midlines."""
    TOP_LEFT = "TOP_LEFT"
    TOP_RIGHT = "TOP_RIGHT"
    BOTTOM_LEFT = "BOTTOM_LEFT"
    BOTTOM_RIGHT = "BOTTOM_RIGHT"

    @classmethod
    def from_position(
        cls,
        x: float,
        y: float,
        width: float,
        height: float
    ) -> "Quadrant":
        """
        Classify a pixel position against the frame midlines.

        A point lying exactly on a midline belongs to the right/bottom side.

        Args:
            x, y: Position in image pixel coordinates
            width, height: Frame dimensions in pixels

        Returns:
            The quadrant containing the point
        """
        right = x >= width / 2.0
        bottom = y >= height / 2.0

        if bottom:
            return cls.BOTTOM_RIGHT if right else cls.BOTTOM_LEFT
        return cls.TOP_RIGHT if right else cls.TOP_LEFT

    @classmethod
    def parse(cls, text: str) -> Optional["Quadrant"]:
        """
        Parse an external quadrant code.

        Accepts legacy numeric marker IDs, compass codes, "Q1".."Q4",
        position numbers and full names, case-insensitively.

        Returns:
            The matching quadrant, or None if the code is not recognized
        """
        if text is None:
            return None
        return QUADRANT_ALIASES.get(text.strip().upper())


QUADRANT_ALIASES: Dict[str, Quadrant] = {
    "13": Quadrant.TOP_LEFT,
    "TL": Quadrant.TOP_LEFT,
    "Q1": Quadrant.TOP_LEFT,
    "1": Quadrant.TOP_LEFT,
    "TOP_LEFT": Quadrant.TOP_LEFT,
    "11": Quadrant.TOP_RIGHT,
    "TR": Quadrant.TOP_RIGHT,
    "Q2": Quadrant.TOP_RIGHT,
    "2": Quadrant.TOP_RIGHT,
    "TOP_RIGHT": Quadrant.TOP_RIGHT,
    "14": Quadrant.BOTTOM_LEFT,
    "BL": Quadrant.BOTTOM_LEFT,
    "Q3": Quadrant.BOTTOM_LEFT,
    "3": Quadrant.BOTTOM_LEFT,
    "BOTTOM_LEFT": Quadrant.BOTTOM_LEFT,
    "12": Quadrant.BOTTOM_RIGHT,
    "BR": Quadrant.BOTTOM_RIGHT,
    "Q4": Quadrant.BOTTOM_RIGHT,
    "4": Quadrant.BOTTOM_RIGHT,
    "BOTTOM_RIGHT": Quadrant.BOTTOM_RIGHT,
}


class TickState(Enum):
    """Outcome of one control loop tick, in precedence order."""
    NO_TARGET = "no_target"
    CAR_MISSING = "car_missing"
    TARGET_UNRESOLVABLE = "target_unresolvable"
    ARRIVED = "arrived"
    STEERING = "steering"


class DetectionError(RuntimeError):
    """Raised when the marker detector fails on a frame."""


@dataclass
class MarkerObservation:
    """Data class representing one detected marker's position and heading."""
    marker_id: int
    center_x: float
    center_y: float
    heading: float  # radians, image coordinates
    corners: Optional[np.ndarray] = None  # 4x2 array of corner coordinates
    timestamp: float = field(default_factory=time.time)

    @property
    def position(self) -> Tuple[float, float]:
        return (self.center_x, self.center_y)


@dataclass
class DriveCmd:
    """Normalized speed plus turn-in-place flag sent to the car."""
    speed: float
    flip: bool

    def to_payload(self) -> dict:
        return {"speed": float(self.speed), "flip": bool(self.flip)}


class IMarkerDetector(ABC):
    """Interface for marker detection implementations."""

    @abstractmethod
    def detect(self, frame: np.ndarray) -> Dict[int, MarkerObservation]:
        """
        Detect markers in the given frame.

        Args:
            frame: BGR image as numpy array

        Returns:
            Mapping of marker ID to its observation

        Raises:
            DetectionError: If the detector invocation fails
        """
        pass


class IFrameProvider(ABC):
    """Interface for a single camera yielding one frame per request."""

    name: str = "camera"

    @abstractmethod
    async def get_frame(self) -> Optional[np.ndarray]:
        """Fetch the current frame, or None if unavailable this tick."""
        pass


class IActuator(ABC):
    """Interface for the car's drive endpoint."""

    @abstractmethod
    async def send_command(self, command: DriveCmd) -> bool:
        """Dispatch a drive command. Returns True on success."""
        pass


class ITargetSource(ABC):
    """Interface for the component that supplies the target quadrant."""

    @abstractmethod
    async def poll_if_due(self, now: Optional[float] = None) -> Optional[Quadrant]:
        """Refresh the target if the poll interval elapsed; return current target."""
        pass
