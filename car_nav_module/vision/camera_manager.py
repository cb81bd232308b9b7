"""
Camera Manager implementation for the networked overhead cameras.

Each camera is an HTTP endpoint returning one JPEG still per request.
The manager keeps the cameras in fusion priority order.
"""

import asyncio
import logging
from typing import Optional, List, Sequence

import aiohttp
import cv2
import numpy as np

from ..core.interfaces import IFrameProvider
from ..core.config import CameraConfig, EndpointConfig
from ..communication.http_client import HttpEndpointClient

logger = logging.getLogger(__name__)


def decode_jpeg(data: bytes) -> Optional[np.ndarray]:
    """Decode an encoded still image into a BGR frame, or None if it is invalid."""
    if not data:
        return None
    try:
        frame = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
    except cv2.error:
        return None
    if frame is None or frame.size == 0:
        return None
    return frame


class HttpCameraProvider(IFrameProvider):
    """A single camera served over HTTP."""

    def __init__(
        self,
        name: str,
        endpoint: EndpointConfig,
        timeout_sec: float = 5.0
    ):
        self.name = name
        self._client = HttpEndpointClient(endpoint, timeout_sec)

    def bind_session(self, session: Optional[aiohttp.ClientSession]) -> None:
        self._client.bind_session(session)

    async def get_frame(self) -> Optional[np.ndarray]:
        """Fetch and decode the current frame from the camera."""
        data = await self._client.request("GET")
        if data is None:
            logger.error(f"{self.name} failed: no frame")
            return None

        frame = decode_jpeg(data)
        if frame is None:
            logger.error(f"{self.name} failed: could not decode image ({len(data)} bytes)")
            return None

        logger.debug(f"Frame from {self.name} ({frame.shape[1]}x{frame.shape[0]})")
        return frame


class CameraManager:
    """
    Manager for the overhead cameras.

    Fetches one frame from every camera per tick. Fetches run concurrently
    but results are always returned in camera priority order, with None in
    place of a camera that failed.

    Example:
        >>> manager = CameraManager.from_config(config.camera, timeout_sec=5.0)
        >>> frames = await manager.get_frames()
    """

    def __init__(self, providers: Sequence[IFrameProvider]):
        """
        Initialize the camera manager.

        Args:
            providers: Frame providers in fusion priority order
        """
        self._providers: List[IFrameProvider] = list(providers)

        logger.info(
            f"CameraManager initialized with {len(self._providers)} camera(s): "
            f"{[p.name for p in self._providers]}"
        )

    @classmethod
    def from_config(cls, config: CameraConfig, timeout_sec: float = 5.0) -> "CameraManager":
        providers = [
            HttpCameraProvider(f"camera{i + 1}", endpoint, timeout_sec)
            for i, endpoint in enumerate(config.endpoints)
        ]
        return cls(providers)

    @property
    def providers(self) -> List[IFrameProvider]:
        return list(self._providers)

    def bind_session(self, session: Optional[aiohttp.ClientSession]) -> None:
        """Share one HTTP session across all HTTP cameras."""
        for provider in self._providers:
            if isinstance(provider, HttpCameraProvider):
                provider.bind_session(session)

    async def get_frames(self) -> List[Optional[np.ndarray]]:
        """Get the latest frame from every camera, in priority order."""
        if not self._providers:
            return []
        return list(await asyncio.gather(
            *(provider.get_frame() for provider in self._providers)
        ))
