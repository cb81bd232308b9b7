"""
Tests for configuration loading.
"""

import json

import pytest

from car_nav_module.core.config import Config, EndpointConfig


class TestConfig:

    def test_defaults(self):
        config = Config()
        assert config.vision.car_marker_id == 9
        assert config.vision.aruco_dictionary == "DICT_4X4_50"
        assert config.vision.landmark_ids["TOP_LEFT"] == 13
        assert config.vision.landmark_max_age_sec is None
        assert config.steering.angle_tolerance_rad == 0.5
        assert config.loop.tick_interval_sec == 0.1
        assert config.communication.request_timeout_sec == 5.0
        assert config.communication.oracle_poll_interval_sec == 2.0
        assert len(config.camera.endpoints) == 2

    def test_save_and_load(self, tmp_path):
        config = Config()
        config.steering.turn_polarity = -1.0
        config.camera.endpoints = [EndpointConfig("http://cam/frame", "abc")]
        config.communication.car = EndpointConfig("http://car", "xyz")
        path = tmp_path / "config.json"

        config.save(str(path))
        loaded = Config.from_file(str(path))

        assert loaded.steering.turn_polarity == -1.0
        assert loaded.camera.endpoints == [EndpointConfig("http://cam/frame", "abc")]
        assert loaded.communication.car.auth_token == "xyz"
        assert loaded.to_dict() == config.to_dict()

    def test_partial_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"loop": {"arrival_radius_px": 30.0}, "debug_mode": True}))

        config = Config.from_file(str(path))

        assert config.loop.arrival_radius_px == 30.0
        assert config.loop.miss_threshold == 3
        assert config.debug_mode is True

    def test_missing_file_uses_defaults(self, tmp_path):
        config = Config.from_file(str(tmp_path / "nope.json"))
        assert config.vision.car_marker_id == 9

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with pytest.raises(ValueError):
            Config.from_file(str(path))

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("CARNAV_CAR_MARKER_ID", "5")
        monkeypatch.setenv("CARNAV_CAR_AUTH", "374744")
        monkeypatch.setenv("CARNAV_TURN_POLARITY", "-1")
        monkeypatch.setenv("CARNAV_ORACLE_OVERRIDE", "TL")
        monkeypatch.setenv("CARNAV_DEBUG_MODE", "true")
        monkeypatch.setenv("CARNAV_CAMERA_URLS", "http://a/frame, http://b/frame")
        monkeypatch.setenv("CARNAV_CAMERA_AUTHS", "111")

        config = Config.from_environment()

        assert config.vision.car_marker_id == 5
        assert config.communication.car.auth_token == "374744"
        assert config.steering.turn_polarity == -1.0
        assert config.communication.oracle_override == "TL"
        assert config.debug_mode is True
        assert config.camera.endpoints == [
            EndpointConfig("http://a/frame", "111"),
            EndpointConfig("http://b/frame", ""),
        ]

    def test_environment_applies_over_base(self, monkeypatch):
        monkeypatch.setenv("CARNAV_CAR_URL", "http://other-car")
        base = Config()
        base.loop.miss_threshold = 7

        config = Config.from_environment(base)

        assert config.loop.miss_threshold == 7
        assert config.communication.car.url == "http://other-car"
