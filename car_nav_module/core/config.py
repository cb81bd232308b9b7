"""
Configuration management for the Car Nav Module.

This module provides centralized configuration handling with support for
environment variables, config files, and command line overrides. The
configuration is built once at startup and passed down to every component.
"""

import os
import json
import logging
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any, List
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class EndpointConfig:
    """An HTTP endpoint with its static authorization token."""

    url: str = ""
    auth_token: str = ""


def _default_camera_endpoints() -> List[EndpointConfig]:
    return [
        EndpointConfig(url="http://hackathon-11-camera.local:50051/frame"),
        EndpointConfig(url="http://hackathon-12-camera.local:50051/frame"),
    ]


@dataclass
class CameraConfig:
    """Configuration for the overhead cameras, in fusion priority order."""

    endpoints: List[EndpointConfig] = field(default_factory=_default_camera_endpoints)


def _default_landmark_ids() -> Dict[str, int]:
    return {
        "TOP_LEFT": 13,
        "TOP_RIGHT": 11,
        "BOTTOM_LEFT": 14,
        "BOTTOM_RIGHT": 12,
    }


@dataclass
class VisionConfig:
    """Configuration for marker detection and pose estimation."""

    aruco_dictionary: str = "DICT_4X4_50"
    car_marker_id: int = 9
    landmark_ids: Dict[str, int] = field(default_factory=_default_landmark_ids)
    # Added to the marker heading to match how the marker is mounted
    heading_offset_rad: float = 0.0
    # None keeps landmark positions indefinitely
    landmark_max_age_sec: Optional[float] = None


@dataclass
class CommunicationConfig:
    """Configuration for the oracle and car endpoints."""

    car: EndpointConfig = field(
        default_factory=lambda: EndpointConfig(url="http://hackathon-9-car.local:5000")
    )
    oracle: EndpointConfig = field(
        default_factory=lambda: EndpointConfig(url="http://192.168.0.56:31415/quadrant")
    )
    request_timeout_sec: float = 5.0
    oracle_poll_interval_sec: float = 2.0
    # Fixed target code used instead of querying the oracle
    oracle_override: Optional[str] = None


@dataclass
class SteeringConfig:
    """Configuration for the steering control law."""

    angle_tolerance_rad: float = 0.50
    # Flip to -1.0 if the car turns the wrong way
    turn_polarity: float = 1.0
    turn_speed: float = 0.20
    min_drive_speed: float = 0.45
    max_drive_speed: float = 0.85
    speed_divisor_px: float = 300.0
    search_spin_speed: float = 0.45


@dataclass
class LoopConfig:
    """Configuration for the control loop cadence and thresholds."""

    tick_interval_sec: float = 0.1
    arrival_radius_px: float = 50.0
    miss_threshold: int = 3


def _csv(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


@dataclass
class Config:
    """
    Main configuration container for the Car Nav Module.

    Aggregates all sub-configurations and provides methods for loading
    from files or environment variables.

    Usage:
        # Load default configuration
        config = Config()

        # Load from file
        config = Config.from_file("/path/to/config.json")

        # Load with environment overrides
        config = Config.from_environment()
    """

    camera: CameraConfig = field(default_factory=CameraConfig)
    vision: VisionConfig = field(default_factory=VisionConfig)
    communication: CommunicationConfig = field(default_factory=CommunicationConfig)
    steering: SteeringConfig = field(default_factory=SteeringConfig)
    loop: LoopConfig = field(default_factory=LoopConfig)

    # General settings
    log_level: str = "INFO"
    debug_mode: bool = False

    @classmethod
    def from_file(cls, filepath: str) -> "Config":
        """Load configuration from a JSON file."""
        path = Path(filepath)
        if not path.exists():
            logger.warning(f"Config file not found: {filepath}, using defaults")
            return cls()

        try:
            with open(path, "r") as f:
                data = json.load(f)
            return cls._from_dict(data)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse config file: {e}")
            raise ValueError(f"Invalid JSON in config file: {filepath}")

    @classmethod
    def from_environment(cls, base: Optional["Config"] = None) -> "Config":
        """Load configuration with environment variable overrides."""
        config = base if base is not None else cls()

        # Map environment variables to config fields
        env_mappings = {
            "CARNAV_LOG_LEVEL": ("log_level", str),
            "CARNAV_DEBUG_MODE": ("debug_mode", lambda x: x.lower() == "true"),
            "CARNAV_CAR_URL": ("communication.car.url", str),
            "CARNAV_CAR_AUTH": ("communication.car.auth_token", str),
            "CARNAV_ORACLE_URL": ("communication.oracle.url", str),
            "CARNAV_ORACLE_AUTH": ("communication.oracle.auth_token", str),
            "CARNAV_ORACLE_OVERRIDE": ("communication.oracle_override", str),
            "CARNAV_CAR_MARKER_ID": ("vision.car_marker_id", int),
            "CARNAV_TURN_POLARITY": ("steering.turn_polarity", float),
        }

        for env_var, (attr_path, converter) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                config._set_nested_attr(attr_path, converter(value))
                logger.debug(f"Config override from env: {env_var}={value}")

        camera_urls = os.environ.get("CARNAV_CAMERA_URLS")
        if camera_urls is not None:
            auths = _csv(os.environ.get("CARNAV_CAMERA_AUTHS", ""))
            config.camera.endpoints = [
                EndpointConfig(url=url, auth_token=auths[i] if i < len(auths) else "")
                for i, url in enumerate(_csv(camera_urls))
            ]
            logger.debug(f"Config override from env: CARNAV_CAMERA_URLS={camera_urls}")

        return config

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary."""
        config = cls()

        # Update sub-configs if present
        if "camera" in data:
            endpoints = data["camera"].get("endpoints")
            if endpoints is not None:
                config.camera = CameraConfig(
                    endpoints=[EndpointConfig(**e) for e in endpoints]
                )
        if "vision" in data:
            config.vision = VisionConfig(**data["vision"])
        if "communication" in data:
            comm = dict(data["communication"])
            for key in ("car", "oracle"):
                if key in comm:
                    comm[key] = EndpointConfig(**comm[key])
            config.communication = CommunicationConfig(**comm)
        if "steering" in data:
            config.steering = SteeringConfig(**data["steering"])
        if "loop" in data:
            config.loop = LoopConfig(**data["loop"])

        # Update top-level settings
        for key in ["log_level", "debug_mode"]:
            if key in data:
                setattr(config, key, data[key])

        return config

    def _set_nested_attr(self, attr_path: str, value: Any) -> None:
        """Set a nested attribute using dot notation."""
        parts = attr_path.split(".")
        obj = self
        for part in parts[:-1]:
            obj = getattr(obj, part)
        setattr(obj, parts[-1], value)

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration to dictionary."""
        return {
            "camera": asdict(self.camera),
            "vision": asdict(self.vision),
            "communication": asdict(self.communication),
            "steering": asdict(self.steering),
            "loop": asdict(self.loop),
            "log_level": self.log_level,
            "debug_mode": self.debug_mode,
        }

    def save(self, filepath: str) -> None:
        """Save configuration to a JSON file."""
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Configuration saved to {filepath}")
