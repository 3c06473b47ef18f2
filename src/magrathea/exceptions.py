"""
Custom exceptions for the Magrathea NTS API client.
"""

from typing import Optional


class MagratheaError(Exception):
    """Base exception for all Magrathea client errors."""
    pass


class ProtocolError(MagratheaError):
    """Raised when the server answers a command with a failure status line."""

    def __init__(self, message: str, response: Optional[str] = None):
        super().__init__(message)
        self.response = response


class ConnectionError(MagratheaError):
    """Raised when the transport cannot be opened or breaks."""
    pass


class AuthenticationError(MagratheaError):
    """Raised when the server rejects the AUTH credentials."""

    def __init__(self, message: str, response: Optional[str] = None):
        super().__init__(message)
        self.response = response


class ValidationError(MagratheaError):
    """Raised when a destination fails validation before any I/O."""
    pass


class NotConnectedError(MagratheaError):
    """Raised when a command needs an authenticated connection and has none."""
    pass


class ConfigurationError(MagratheaError):
    """Raised when session settings are unknown or malformed."""
    pass


class ServerDisconnectionError(ConnectionError):
    """Raised when server disconnects unexpectedly."""
    pass


class TimeoutError(ConnectionError):
    """Raised when connection or operation times out."""
    pass
