"""
Tests for ArUco detection on synthesized frames.
"""

import math

import cv2
import numpy as np
import pytest

from car_nav_module.core.config import VisionConfig
from car_nav_module.utils import generate_aruco_marker
from car_nav_module.vision.marker_detector import MarkerDetector


def place(canvas, marker, top, left):
    size = marker.shape[0]
    canvas[top:top + size, left:left + size] = marker
    return canvas


def white_canvas(height=480, width=640):
    return np.full((height, width), 255, dtype=np.uint8)


class TestMarkerDetector:

    def setup_method(self):
        self.config = VisionConfig()
        self.detector = MarkerDetector(self.config)

    def test_detects_car_marker_centre_and_heading(self):
        marker = generate_aruco_marker(9, "DICT_4X4_50", 100)
        frame = cv2.cvtColor(place(white_canvas(), marker, 100, 200), cv2.COLOR_GRAY2BGR)

        observations = self.detector.detect(frame)

        assert 9 in observations
        car = observations[9]
        assert car.center_x == pytest.approx(250, abs=2.0)
        assert car.center_y == pytest.approx(150, abs=2.0)
        assert car.heading == pytest.approx(-math.pi / 2, abs=0.05)

    def test_rotated_marker_heading(self):
        marker = cv2.rotate(
            generate_aruco_marker(9, "DICT_4X4_50", 100), cv2.ROTATE_90_CLOCKWISE
        )
        frame = place(white_canvas(), marker, 200, 300)

        car = self.detector.detect(frame)[9]

        assert car.heading == pytest.approx(0.0, abs=0.05)

    def test_detects_several_markers(self):
        canvas = white_canvas()
        place(canvas, generate_aruco_marker(9, "DICT_4X4_50", 80), 60, 60)
        place(canvas, generate_aruco_marker(13, "DICT_4X4_50", 80), 300, 450)

        observations = self.detector.detect(canvas)

        assert set(observations) == {9, 13}
        assert observations[13].center_x == pytest.approx(490, abs=2.0)

    def test_heading_offset_applied(self):
        detector = MarkerDetector(VisionConfig(heading_offset_rad=math.pi / 2))
        frame = place(white_canvas(), generate_aruco_marker(9, "DICT_4X4_50", 100), 100, 200)

        car = detector.detect(frame)[9]

        assert car.heading == pytest.approx(0.0, abs=0.05)

    def test_blank_frame(self):
        assert self.detector.detect(white_canvas()) == {}

    def test_empty_frame(self):
        assert self.detector.detect(np.zeros((0, 0, 3), dtype=np.uint8)) == {}

    def test_unknown_dictionary(self):
        with pytest.raises(ValueError):
            MarkerDetector(VisionConfig(aruco_dictionary="DICT_9X9_1"))

    def test_statistics(self):
        self.detector.detect(white_canvas())
        assert self.detector.average_detection_time_ms >= 0.0
        self.detector.reset_stats()
        assert self.detector.average_detection_time_ms == 0.0
