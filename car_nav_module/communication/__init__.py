"""
Communication module for the oracle and car endpoints.
"""

from .http_client import HttpEndpointClient
from .oracle_client import OracleClient, parse_oracle_response
from .actuator_client import ActuatorClient

__all__ = [
    "HttpEndpointClient",
    "OracleClient",
    "parse_oracle_response",
    "ActuatorClient",
]
