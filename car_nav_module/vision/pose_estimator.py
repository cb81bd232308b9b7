"""
Planar pose of a square fiducial from its four image corners.
"""

import math
import time
from typing import Optional

import numpy as np

from ..core.interfaces import MarkerObservation
from ..utils import normalize_angle


def estimate_marker_pose(
    marker_id: int,
    corners: np.ndarray,
    heading_offset: float = 0.0,
    timestamp: Optional[float] = None
) -> MarkerObservation:
    """
    Compute a marker's centroid and heading.

    The heading points from the marker centre toward the midpoint of its
    top edge (corner 0 to corner 1), plus ``heading_offset``.

    Args:
        marker_id: Detected marker ID
        corners: 4x2 corners ordered top-left, top-right, bottom-right, bottom-left
        heading_offset: Mounting correction in radians
        timestamp: Observation time, defaults to now

    Returns:
        MarkerObservation in image pixel coordinates
    """
    pts = np.asarray(corners, dtype=np.float64).reshape(4, 2)

    cx = float(pts[:, 0].mean())
    cy = float(pts[:, 1].mean())

    fx = float((pts[0, 0] + pts[1, 0]) / 2.0)
    fy = float((pts[0, 1] + pts[1, 1]) / 2.0)

    heading = math.atan2(fy - cy, fx - cx)
    if heading_offset:
        heading = normalize_angle(heading + heading_offset)

    return MarkerObservation(
        marker_id=int(marker_id),
        center_x=cx,
        center_y=cy,
        heading=heading,
        corners=pts,
        timestamp=time.time() if timestamp is None else timestamp,
    )
