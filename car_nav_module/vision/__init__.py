"""
Vision module containing cameras, marker detection and frame fusion.
"""

from .marker_detector import MarkerDetector, ARUCO_DICT_MAP
from .pose_estimator import estimate_marker_pose
from .camera_manager import CameraManager, HttpCameraProvider, decode_jpeg
from .frame_fuser import FrameFuser, FusionResult

__all__ = [
    "MarkerDetector",
    "ARUCO_DICT_MAP",
    "estimate_marker_pose",
    "CameraManager",
    "HttpCameraProvider",
    "decode_jpeg",
    "FrameFuser",
    "FusionResult",
]
