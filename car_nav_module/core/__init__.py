"""
Core module containing configuration, interfaces, tracking and the control loop.
"""

from .config import (
    Config,
    EndpointConfig,
    CameraConfig,
    VisionConfig,
    CommunicationConfig,
    SteeringConfig,
    LoopConfig,
)
from .interfaces import (
    Quadrant,
    TickState,
    DetectionError,
    MarkerObservation,
    DriveCmd,
    IMarkerDetector,
    IFrameProvider,
    IActuator,
    ITargetSource,
)
from .quadrant_tracker import QuadrantTracker
from .control_loop import ControlLoop, LoopStatus, TickDecision, evaluate_tick
from .car_nav_module import CarNavModule

__all__ = [
    # Main module
    "CarNavModule",
    # Config
    "Config",
    "EndpointConfig",
    "CameraConfig",
    "VisionConfig",
    "CommunicationConfig",
    "SteeringConfig",
    "LoopConfig",
    # Data classes
    "Quadrant",
    "TickState",
    "DetectionError",
    "MarkerObservation",
    "DriveCmd",
    # Interfaces
    "IMarkerDetector",
    "IFrameProvider",
    "IActuator",
    "ITargetSource",
    # Implementation
    "QuadrantTracker",
    "ControlLoop",
    "LoopStatus",
    "TickDecision",
    "evaluate_tick",
]
