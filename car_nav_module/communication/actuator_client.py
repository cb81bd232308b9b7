"""
Client for the car's drive endpoint.
"""

import logging
from typing import Optional

from ..core.interfaces import IActuator, DriveCmd
from ..core.config import CommunicationConfig
from .http_client import HttpEndpointClient

logger = logging.getLogger(__name__)


class ActuatorClient(IActuator):
    """
    Sends drive commands to the car as ``PUT {"speed": float, "flip": bool}``.
    """

    def __init__(
        self,
        config: CommunicationConfig,
        http_client: Optional[HttpEndpointClient] = None
    ):
        self.config = config
        self._http = http_client or HttpEndpointClient(
            config.car, config.request_timeout_sec
        )
        self._commands_sent = 0
        self._failures = 0

        logger.info(f"ActuatorClient initialized (url={config.car.url})")

    @property
    def http(self) -> HttpEndpointClient:
        return self._http

    async def send_command(self, command: DriveCmd) -> bool:
        """
        Dispatch a drive command.

        Returns:
            True if the car accepted the command
        """
        logger.debug(f"send_cmd: speed={command.speed:.2f} flip={command.flip}")

        if await self._http.request("PUT", command.to_payload()) is None:
            self._failures += 1
            logger.error("Drive command failed")
            return False

        self._commands_sent += 1
        return True

    @property
    def statistics(self) -> dict:
        return {
            "commands_sent": self._commands_sent,
            "failures": self._failures,
        }
