"""
Magrathea NTS API client.

Redirects and deactivates non-geographic numbers over the Magrathea
line-based provisioning protocol.
"""

from .client import ConnectionState, ProvisioningSession, connect
from .config import SessionConfig
from .destinations import Destination, DestinationKind, validate_destination
from .exceptions import (
    MagratheaError, ProtocolError, ConnectionError, AuthenticationError,
    ValidationError, NotConnectedError, ConfigurationError,
    ServerDisconnectionError, TimeoutError
)

__all__ = [
    "ConnectionState",
    "ProvisioningSession",
    "connect",
    "SessionConfig",
    "Destination",
    "DestinationKind",
    "validate_destination",
    "MagratheaError",
    "ProtocolError",
    "ConnectionError",
    "AuthenticationError",
    "ValidationError",
    "NotConnectedError",
    "ConfigurationError",
    "ServerDisconnectionError",
    "TimeoutError",
]
