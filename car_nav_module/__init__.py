"""
Car Nav Module

This module drives a marker-tagged car to the arena quadrant assigned by
an external oracle. It handles:
- ArUco marker detection in overhead camera frames
- Fusion of several cameras into one car pose
- Memory of the four quadrant landmark positions
- Polling of the target oracle
- Steering commands sent to the car's drive endpoint
"""

__version__ = "1.0.0"

from .core.car_nav_module import CarNavModule
from .core.config import Config
from .core.control_loop import ControlLoop
from .vision.marker_detector import MarkerDetector
from .communication.oracle_client import OracleClient
from .communication.actuator_client import ActuatorClient

__all__ = [
    "CarNavModule",
    "Config",
    "ControlLoop",
    "MarkerDetector",
    "OracleClient",
    "ActuatorClient",
]
