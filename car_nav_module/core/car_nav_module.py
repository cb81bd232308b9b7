"""
Main Car Nav Module orchestrator.

This is the primary entry point for the navigation process, wiring the
cameras, detector, oracle, car and control loop together and managing
their lifecycle.
"""

import asyncio
import logging
import signal
from typing import Optional

import aiohttp

from .config import Config
from .control_loop import ControlLoop, LoopStatus
from .quadrant_tracker import QuadrantTracker
from ..drive.steering import hold
from ..vision.marker_detector import MarkerDetector
from ..vision.camera_manager import CameraManager
from ..vision.frame_fuser import FrameFuser
from ..communication.oracle_client import OracleClient
from ..communication.actuator_client import ActuatorClient

logger = logging.getLogger(__name__)


class CarNavModule:
    """
    Main orchestrator for the Car Nav Module.

    This class initializes and coordinates all subsystems:
    - Camera Manager (HTTP cameras)
    - Marker Detector (ArUco)
    - Quadrant Tracker and Frame Fuser
    - Oracle Client
    - Actuator Client
    - Control Loop

    Attributes:
        config: Module configuration
        camera_manager: Camera management interface
        marker_detector: Marker detection interface
        tracker: Landmark memory and target holder
        oracle_client: Target oracle client
        actuator_client: Car drive client
        control_loop: Fixed-rate control loop

    Example:
        >>> config = Config.from_file("config.json")
        >>> module = CarNavModule(config)
        >>> await module.run()
    """

    def __init__(self, config: Config):
        """
        Initialize the Car Nav Module.

        Args:
            config: Module configuration settings
        """
        self.config = config

        # Configure logging
        self._setup_logging()

        timeout = config.communication.request_timeout_sec

        # Initialize subsystems
        self.camera_manager = CameraManager.from_config(config.camera, timeout)
        self.marker_detector = MarkerDetector(config.vision)
        self.tracker = QuadrantTracker(config.vision)
        self.fuser = FrameFuser(
            self.marker_detector, self.tracker, config.vision.car_marker_id
        )
        self.oracle_client = OracleClient(config.communication, self.tracker)
        self.actuator_client = ActuatorClient(config.communication)

        self.control_loop = ControlLoop(
            config,
            self.oracle_client,
            self.camera_manager,
            self.fuser,
            self.tracker,
            self.actuator_client,
        )

        self._session: Optional[aiohttp.ClientSession] = None
        self._shutdown_event: Optional[asyncio.Event] = None

        logger.info("CarNavModule initialized")

    def _setup_logging(self) -> None:
        """Configure logging based on config."""
        log_level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=log_level,
            format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        if self.config.debug_mode:
            logging.getLogger("car_nav_module").setLevel(logging.DEBUG)

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        def signal_handler(sig):
            logger.info(f"Received signal {sig.name}, shutting down...")
            self.request_shutdown()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, signal_handler, sig)
            except NotImplementedError:
                logger.debug(f"Signal handler for {sig.name} not supported here")

    async def start(self) -> None:
        """Open the shared HTTP session used by every endpoint client."""
        logger.info("Starting CarNavModule...")

        self._session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(
                total=self.config.communication.request_timeout_sec
            )
        )
        self.camera_manager.bind_session(self._session)
        self.oracle_client.http.bind_session(self._session)
        self.actuator_client.http.bind_session(self._session)

        logger.info("CarNavModule started")

    async def stop(self) -> None:
        """Stop the car and release resources."""
        logger.info("Stopping CarNavModule...")

        self.control_loop.stop()

        if self._session is not None:
            await self.actuator_client.send_command(hold())
            await self._session.close()

        self.camera_manager.bind_session(None)
        self.oracle_client.http.bind_session(None)
        self.actuator_client.http.bind_session(None)
        self._session = None

        logger.info("CarNavModule stopped")

    def request_shutdown(self) -> None:
        """Ask the running module to stop after the current tick."""
        if self._shutdown_event is not None:
            self._shutdown_event.set()
        self.control_loop.stop()

    async def run(self) -> None:
        """
        Run the control loop until shutdown is requested.

        This is a blocking call that runs the main event loop.
        """
        self._shutdown_event = asyncio.Event()
        self._setup_signal_handlers()

        await self.start()
        try:
            await self.control_loop.run(self._shutdown_event)
        finally:
            await self.stop()

    def get_status(self) -> LoopStatus:
        """Get current control loop status."""
        return self.control_loop.get_status()
