"""
Shared fixtures and fakes for the Car Nav Module tests.
"""

import asyncio
from typing import Dict, List, Optional

import numpy as np
import pytest

from car_nav_module.core.config import Config, VisionConfig
from car_nav_module.core.interfaces import (
    DetectionError,
    DriveCmd,
    IActuator,
    IMarkerDetector,
    ITargetSource,
    MarkerObservation,
    Quadrant,
)
from car_nav_module.core.quadrant_tracker import QuadrantTracker


CAR_ID = 9
TL_ID, TR_ID, BL_ID, BR_ID = 13, 11, 14, 12


def run(coro):
    """Drive a coroutine to completion."""
    return asyncio.run(coro)


def obs(marker_id: int, x: float, y: float, heading: float = 0.0,
        timestamp: float = 0.0) -> MarkerObservation:
    return MarkerObservation(marker_id=marker_id, center_x=x, center_y=y,
                             heading=heading, timestamp=timestamp)


def blank_frame(height: int = 480, width: int = 640) -> np.ndarray:
    return np.zeros((height, width, 3), dtype=np.uint8)


class FakeDetector(IMarkerDetector):
    """Returns canned observations per frame object; ``None`` means raise."""

    def __init__(self):
        self._results: Dict[int, Optional[List[MarkerObservation]]] = {}
        self.calls = 0

    def set(self, frame: np.ndarray, observations: Optional[List[MarkerObservation]]):
        self._results[id(frame)] = observations

    def detect(self, frame):
        self.calls += 1
        result = self._results.get(id(frame), [])
        if result is None:
            raise DetectionError("detector exploded")
        return {o.marker_id: o for o in result}


class FakeTargetSource(ITargetSource):
    def __init__(self, tracker: QuadrantTracker, target: Optional[Quadrant] = None):
        self._tracker = tracker
        self.target = target
        self.polls = 0

    async def poll_if_due(self, now=None):
        self.polls += 1
        if self.target is not None:
            self._tracker.set_target(self.target)
        return self._tracker.target


class FakeCameraManager:
    def __init__(self, frames=None):
        self.frames = list(frames or [])
        self.calls = 0

    async def get_frames(self):
        self.calls += 1
        return list(self.frames)


class FakeActuator(IActuator):
    def __init__(self, succeed: bool = True):
        self.commands: List[DriveCmd] = []
        self.succeed = succeed

    async def send_command(self, command):
        self.commands.append(command)
        return self.succeed


class FakeHttp:
    """Stands in for HttpEndpointClient, replaying canned bodies."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.requests = []

    def bind_session(self, session):
        pass

    async def request(self, method, json_body=None):
        self.requests.append((method, json_body))
        if not self.responses:
            return None
        return self.responses.pop(0)


@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def tracker() -> QuadrantTracker:
    return QuadrantTracker(VisionConfig())
