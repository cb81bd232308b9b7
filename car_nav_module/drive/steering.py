"""
Steering control law: turn in place until roughly facing the target,
then drive forward at a speed proportional to the remaining distance.
"""

import logging
import math
from typing import Tuple

from ..core.config import SteeringConfig
from ..core.interfaces import DriveCmd
from ..utils import clamp, normalize_angle

logger = logging.getLogger(__name__)


def heading_error(
    position: Tuple[float, float],
    heading: float,
    target: Tuple[float, float]
) -> float:
    """Angle from the current heading to the bearing of the target, in (-pi, pi]."""
    desired = math.atan2(target[1] - position[1], target[0] - position[0])
    return normalize_angle(desired - heading)


def search_spin(config: SteeringConfig) -> DriveCmd:
    """Command that sweeps the car around to find its marker."""
    return DriveCmd(speed=config.search_spin_speed * config.turn_polarity, flip=True)


def hold() -> DriveCmd:
    return DriveCmd(speed=0.0, flip=False)


def steer(
    position: Tuple[float, float],
    heading: float,
    target: Tuple[float, float],
    config: SteeringConfig
) -> DriveCmd:
    """
    Compute a drive command to steer from ``position``/``heading`` toward ``target``.

    Args:
        position: Car centroid in image pixels
        heading: Car heading in radians
        target: Target centroid in image pixels
        config: Steering configuration

    Returns:
        A turn-in-place command (``flip=True``, speed +/- ``turn_speed``) when
        the heading error exceeds the tolerance, otherwise a forward command
        with speed clamped into [min_drive_speed, max_drive_speed]
    """
    dx = target[0] - position[0]
    dy = target[1] - position[1]
    dist = math.hypot(dx, dy)
    err = heading_error(position, heading, target)

    logger.debug(f"steer: dist={dist:.0f}px err={err:.2f}rad")

    if abs(err) > config.angle_tolerance_rad:
        direction = -1.0 if err > 0 else 1.0
        speed = direction * config.turn_speed * config.turn_polarity
        logger.debug(f"steer: turning (speed={speed:.2f}, flip=true)")
        return DriveCmd(speed=speed, flip=True)

    speed = clamp(
        dist / config.speed_divisor_px,
        config.min_drive_speed,
        config.max_drive_speed,
    )
    logger.debug(f"steer: driving forward (speed={speed:.2f}, flip=false)")
    return DriveCmd(speed=speed, flip=False)
