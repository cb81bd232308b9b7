"""
Control loop for driving the car to the assigned quadrant.

This module runs the fixed-rate tick: poll the oracle, fuse the camera
frames, decide what to do, and dispatch the resulting drive command.
The decision itself is a pure function so its precedence can be tested
without any I/O.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .config import Config
from .interfaces import (
    DriveCmd,
    IActuator,
    ITargetSource,
    MarkerObservation,
    Quadrant,
    TickState,
)
from .quadrant_tracker import QuadrantTracker
from ..drive.steering import steer, search_spin, hold
from ..vision.camera_manager import CameraManager
from ..vision.frame_fuser import FrameFuser, FusionResult

logger = logging.getLogger(__name__)


@dataclass
class TickDecision:
    """What one tick decided to do."""
    state: TickState
    command: Optional[DriveCmd] = None
    miss_count: int = 0
    distance: Optional[float] = None


@dataclass
class LoopStatus:
    """Status of the control loop."""
    is_running: bool = False
    ticks: int = 0
    miss_count: int = 0
    last_state: Optional[TickState] = None
    target: Optional[Quadrant] = None
    last_command: Optional[DriveCmd] = None
    dispatch_failures: int = 0


def evaluate_tick(
    target: Optional[Quadrant],
    car: Optional[MarkerObservation],
    target_centre: Optional[Tuple[float, float]],
    miss_count: int,
    config: Config
) -> TickDecision:
    """
    Decide the tick outcome.

    Precedence: NO_TARGET, CAR_MISSING, TARGET_UNRESOLVABLE, ARRIVED,
    STEERING. The miss counter is incremented while the car is missing
    and reset whenever the car is seen.

    Args:
        target: Current target quadrant, None if not yet assigned
        car: Fused car observation, None if not detected
        target_centre: Target landmark centroid, None if unknown
        miss_count: Consecutive ticks without the car so far
        config: Module configuration

    Returns:
        TickDecision with the command to dispatch, if any
    """
    if target is None:
        return TickDecision(TickState.NO_TARGET, None, miss_count)

    if car is None:
        miss_count += 1
        command = None
        if miss_count > config.loop.miss_threshold:
            command = search_spin(config.steering)
        return TickDecision(TickState.CAR_MISSING, command, miss_count)

    if target_centre is None:
        return TickDecision(TickState.TARGET_UNRESOLVABLE, None, 0)

    dist = math.hypot(
        car.center_x - target_centre[0],
        car.center_y - target_centre[1],
    )

    if dist < config.loop.arrival_radius_px:
        return TickDecision(TickState.ARRIVED, hold(), 0, dist)

    command = steer(car.position, car.heading, target_centre, config.steering)
    return TickDecision(TickState.STEERING, command, 0, dist)


class ControlLoop:
    """
    Drives the car toward the target quadrant's landmark.

    Each tick:
    1. Poll the oracle (rate limited by the oracle client itself)
    2. With no target yet, do nothing else
    3. Fetch every camera frame and fuse the detections
    4. Evaluate the tick state and dispatch its command

    The loop owns the miss counter; landmarks and target live in the
    QuadrantTracker. Everything runs on one event loop task.

    Example:
        >>> loop = ControlLoop(config, oracle, cameras, fuser, tracker, actuator)
        >>> await loop.run(shutdown_event)
    """

    def __init__(
        self,
        config: Config,
        target_source: ITargetSource,
        camera_manager: CameraManager,
        fuser: FrameFuser,
        tracker: QuadrantTracker,
        actuator: IActuator
    ):
        """
        Initialize the control loop.

        Args:
            config: Module configuration
            target_source: Oracle client supplying the target
            camera_manager: Cameras in priority order
            fuser: Frame fuser bound to the detector and tracker
            tracker: Landmark memory and target holder
            actuator: Car drive endpoint
        """
        self.config = config
        self._target_source = target_source
        self._camera_manager = camera_manager
        self._fuser = fuser
        self._tracker = tracker
        self._actuator = actuator

        self._miss_count = 0
        self._status = LoopStatus()

        logger.info("ControlLoop initialized")

    @property
    def miss_count(self) -> int:
        return self._miss_count

    async def tick(self) -> TickDecision:
        """Run a single control tick."""
        target = await self._target_source.poll_if_due()
        self._status.target = target

        if target is None:
            logger.debug("Waiting for first oracle response...")
            decision = evaluate_tick(None, None, None, self._miss_count, self.config)
            self._record(decision)
            return decision

        frames = await self._camera_manager.get_frames()
        fusion = self._fuser.fuse(frames)

        target_centre = None
        if fusion.car is not None:
            target_centre = self._tracker.target_centre()

        decision = evaluate_tick(
            target, fusion.car, target_centre, self._miss_count, self.config
        )
        self._miss_count = decision.miss_count
        self._log_decision(decision, target, fusion, target_centre)

        if decision.command is not None:
            if not await self._actuator.send_command(decision.command):
                self._status.dispatch_failures += 1

        self._record(decision)
        return decision

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """
        Tick at the configured interval until stopped.

        Args:
            stop_event: Optional event that ends the loop when set
        """
        self._status.is_running = True
        logger.info(
            f"Control loop running every {self.config.loop.tick_interval_sec * 1000:.0f}ms"
        )

        try:
            while self._status.is_running:
                if stop_event is not None and stop_event.is_set():
                    break

                try:
                    await self.tick()
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.exception(f"Control loop error: {e}")

                await asyncio.sleep(self.config.loop.tick_interval_sec)
        finally:
            self._status.is_running = False
            logger.info("Control loop stopped")

    def stop(self) -> None:
        """Ask the loop to exit after the current tick."""
        self._status.is_running = False

    def get_status(self) -> LoopStatus:
        """Get current loop status."""
        return self._status

    def _record(self, decision: TickDecision) -> None:
        self._status.ticks += 1
        self._status.miss_count = self._miss_count
        self._status.last_state = decision.state
        if decision.command is not None:
            self._status.last_command = decision.command

    def _log_decision(
        self,
        decision: TickDecision,
        target: Quadrant,
        fusion: FusionResult,
        target_centre: Optional[Tuple[float, float]]
    ) -> None:
        state = decision.state

        if state is TickState.CAR_MISSING:
            logger.warning(f"Car marker not found in frame (miss #{decision.miss_count})")
            if decision.command is not None:
                logger.debug("Spinning to find marker...")
            return

        if state is TickState.TARGET_UNRESOLVABLE:
            logger.error(f"Couldn't find target location for {target.name}")
            return

        logger.info(f"distance {decision.distance:.1f} from {target.name}")

        if state is TickState.ARRIVED:
            logger.info(f"In target {target.name}, holding position")
            return

        car = fusion.car
        car_quad = "?"
        if fusion.has_dimensions:
            car_quad = self._tracker.classify(
                car.center_x, car.center_y, fusion.frame_width, fusion.frame_height
            ).name
        logger.info(
            f"pos=({car.center_x:.0f},{car.center_y:.0f}) hdg={car.heading:.2f}rad | "
            f"{car_quad}->{target.name} | "
            f"speed={decision.command.speed:.2f} flip={decision.command.flip}"
        )
