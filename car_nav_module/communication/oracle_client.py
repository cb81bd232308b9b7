"""
Target Oracle client.

This module polls the assignment service that names the quadrant the car
should drive to, on its own cadence independent of the control tick.
"""

import inspect
import json
import logging
from typing import Optional, Callable, Any, List

from ..core.interfaces import ITargetSource, Quadrant
from ..core.config import CommunicationConfig
from ..core.quadrant_tracker import QuadrantTracker
from ..utils import IntervalTimer
from .http_client import HttpEndpointClient

logger = logging.getLogger(__name__)


def parse_oracle_response(body: str) -> Optional[Quadrant]:
    """
    Parse an oracle response body.

    Accepts a JSON string, a JSON object with a "quadrant" (or "target")
    string field, or plain text.

    Returns:
        The named quadrant, or None if the code is not recognized
    """
    raw = body.strip()

    try:
        value = json.loads(body)
    except ValueError:
        value = None

    if isinstance(value, str):
        raw = value
    elif isinstance(value, dict):
        field = value.get("quadrant")
        if field is None:
            field = value.get("target")
        if isinstance(field, str):
            raw = field

    return Quadrant.parse(raw)


class OracleClient(ITargetSource):
    """
    Client for the target assignment oracle.

    Polls at most once per ``oracle_poll_interval_sec``. A failed poll
    (transport error, bad status, unknown code) is logged and leaves the
    current target untouched. Only a change of target is announced.

    Attributes:
        config: Communication configuration settings

    Example:
        >>> oracle = OracleClient(config.communication, tracker)
        >>> target = await oracle.poll_if_due()
    """

    def __init__(
        self,
        config: CommunicationConfig,
        tracker: QuadrantTracker,
        http_client: Optional[HttpEndpointClient] = None
    ):
        """
        Initialize the oracle client.

        Args:
            config: Communication configuration settings
            tracker: Holder of the current target quadrant
            http_client: Optional client for the oracle endpoint

        Raises:
            ValueError: If an override code is configured but not recognized
        """
        self.config = config
        self._tracker = tracker
        self._http = http_client or HttpEndpointClient(
            config.oracle, config.request_timeout_sec
        )
        self._timer = IntervalTimer(config.oracle_poll_interval_sec)
        self._target_callbacks: List[Callable[[Quadrant], Any]] = []

        self._override: Optional[Quadrant] = None
        if config.oracle_override is not None:
            self._override = Quadrant.parse(config.oracle_override)
            if self._override is None:
                raise ValueError(f"Unknown oracle override: {config.oracle_override!r}")

        # Statistics
        self._polls = 0
        self._failures = 0

        if self._override is not None:
            logger.info(f"OracleClient using fixed target {self._override.name}")
        else:
            logger.info(f"OracleClient initialized (url={config.oracle.url})")

    @property
    def http(self) -> HttpEndpointClient:
        return self._http

    def register_target_callback(self, callback: Callable[[Quadrant], Any]) -> None:
        """
        Register callback for target changes.

        Args:
            callback: Function to call with the new quadrant
        """
        self._target_callbacks.append(callback)
        logger.debug(f"Registered target callback: {callback}")

    async def query(self) -> Optional[Quadrant]:
        """Ask the oracle for the current quadrant once."""
        if self._override is not None:
            return self._override

        body = await self._http.request("GET")
        if body is None:
            logger.error("Oracle poll failed: no response")
            return None

        text = body.decode("utf-8", errors="replace")
        logger.debug(f"Oracle raw response: {text!r}")

        quadrant = parse_oracle_response(text)
        if quadrant is None:
            logger.error(f"Oracle poll failed: unknown quadrant response: {text!r}")
        return quadrant

    async def poll_if_due(self, now: Optional[float] = None) -> Optional[Quadrant]:
        """
        Poll the oracle if the poll interval has elapsed since the last
        poll finished.

        Returns:
            The current target after the poll, None until one is known
        """
        if not self._timer.due(now):
            return self._tracker.target

        self._polls += 1
        try:
            quadrant = await self.query()
        finally:
            # Cadence runs from the end of the request
            self._timer.mark(now)
        if quadrant is None:
            self._failures += 1
            return self._tracker.target

        if self._tracker.set_target(quadrant):
            logger.info(f"New target quadrant: {quadrant.name}")
            await self._notify_target_change(quadrant)
        else:
            logger.debug(f"Oracle: still {quadrant.name}")

        return self._tracker.target

    async def _notify_target_change(self, quadrant: Quadrant) -> None:
        for callback in self._target_callbacks:
            try:
                if inspect.iscoroutinefunction(callback):
                    await callback(quadrant)
                else:
                    callback(quadrant)
            except Exception as e:
                logger.error(f"Target callback error: {e}")

    @property
    def statistics(self) -> dict:
        """Get polling statistics."""
        return {
            "polls": self._polls,
            "failures": self._failures,
            "target": self._tracker.target.name if self._tracker.target else None,
        }
