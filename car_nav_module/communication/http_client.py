"""
HTTP plumbing shared by the camera, oracle and car clients.

Every endpoint is a single URL guarded by a static Authorization token.
Failures are logged and reported as None so the control loop can treat
them as "no data this tick".
"""

import asyncio
import logging
from typing import Optional, Any

import aiohttp

from ..core.config import EndpointConfig

logger = logging.getLogger(__name__)


class HttpEndpointClient:
    """
    HTTP client bound to one endpoint.

    Uses a shared ``aiohttp.ClientSession`` when one has been bound, and a
    short-lived session per request otherwise.
    """

    def __init__(
        self,
        endpoint: EndpointConfig,
        timeout_sec: float = 5.0,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize HTTP client.

        Args:
            endpoint: URL and authorization token
            timeout_sec: Total timeout for a single request
            session: Optional shared client session
        """
        self.endpoint = endpoint
        self.timeout_sec = timeout_sec
        self._session = session

    def bind_session(self, session: Optional[aiohttp.ClientSession]) -> None:
        """Use the given shared session for subsequent requests."""
        self._session = session

    @property
    def url(self) -> str:
        return self.endpoint.url

    def _headers(self) -> dict:
        if not self.endpoint.auth_token:
            return {}
        return {"Authorization": self.endpoint.auth_token}

    async def request(
        self,
        method: str,
        json_body: Optional[Any] = None
    ) -> Optional[bytes]:
        """
        Perform one request against the endpoint.

        Returns:
            The response body, or None on transport error or non-2xx status
        """
        try:
            if self._session is not None and not self._session.closed:
                return await self._send(self._session, method, json_body)

            async with aiohttp.ClientSession() as session:
                return await self._send(session, method, json_body)

        except asyncio.TimeoutError:
            logger.error(f"{method} {self.url} timed out after {self.timeout_sec}s")
            return None
        except aiohttp.ClientError as e:
            logger.error(f"{method} {self.url} failed: {e}")
            return None

    async def _send(
        self,
        session: aiohttp.ClientSession,
        method: str,
        json_body: Optional[Any]
    ) -> Optional[bytes]:
        async with session.request(
            method,
            self.url,
            headers=self._headers(),
            json=json_body,
            timeout=aiohttp.ClientTimeout(total=self.timeout_sec)
        ) as response:
            if not 200 <= response.status < 300:
                logger.error(f"{method} {self.url} failed: {response.status}")
                return None
            return await response.read()
