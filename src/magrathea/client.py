"""
Magrathea NTS API provisioning client.

This module implements the session used to redirect and deactivate
non-geographic numbers on the Magrathea provisioning server.
"""

import socket
from enum import Enum
from typing import Any, Mapping, Optional, Union
from .config import SessionConfig
from .destinations import validate_destination
from .protocol import CommandLine, Commands, LINE_TERMINATOR, ProtocolHandler, StatusLine
from .exceptions import (
    MagratheaError, ConnectionError, AuthenticationError, NotConnectedError,
    ProtocolError, ServerDisconnectionError, TimeoutError, ValidationError
)
from ..utils.logging import setup_logger


DEFAULT_TIMEOUT = 10.0
RECV_SIZE = 4096
MAX_LINE_LENGTH = 8192
GREETING = "GREETING"


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class ProvisioningSession:
    """
    An authenticated session with the Magrathea NTS API.

    The session owns its socket. It connects when created (unless
    ``auto_connect`` is false) and sends QUIT when disconnected, closed,
    used as a context manager or garbage collected.

    Every failing operation raises a MagratheaError subclass and stores its
    message, readable through last_error(). Successful calls leave the stored
    message untouched.
    """

    def __init__(
        self,
        config: Union[SessionConfig, Mapping[str, Any], None] = None,
        timeout: float = DEFAULT_TIMEOUT,
        auto_connect: bool = True,
    ):
        self.socket: Optional[socket.socket] = None
        self.state = ConnectionState.DISCONNECTED
        if isinstance(config, SessionConfig):
            self.config = config
        else:
            self.config = SessionConfig.from_mapping(config)
        self.timeout = timeout
        self.protocol_handler = ProtocolHandler()
        self.logger = setup_logger(__name__)
        self._error_message: Optional[str] = None
        self._buffer = b""

        if auto_connect:
            self.connect()

    def __enter__(self) -> "ProvisioningSession":
        if self.socket is None:
            self.connect()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        if exc_type is None:
            self.close()
            return
        # Keep the body's exception, not the teardown's
        try:
            self.close()
        except MagratheaError as e:
            self.logger.warning(f"Error closing session after {exc_type.__name__}: {e}")

    def __del__(self):
        if getattr(self, "state", None) is ConnectionState.CONNECTED:
            try:
                self.disconnect()
            except MagratheaError as e:
                self.logger.warning(f"Error during teardown: {e}")

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    def last_error(self) -> Optional[str]:
        """Return the message of the most recent failure, if any."""
        return self._error_message

    def _fail(self, error: MagratheaError, error_type: str) -> MagratheaError:
        """Record a failure and hand the error back for raising."""
        self._error_message = str(error)
        self.logger.error(f"{error_type}: {error}")
        return error

    def _transport_failure(self, error: MagratheaError, error_type: str) -> MagratheaError:
        """Drop a broken stream, a session cannot recover from it."""
        self._close_socket()
        return self._fail(error, error_type)

    def _close_socket(self) -> None:
        if self.socket is not None:
            try:
                self.socket.close()
            except socket.error as e:
                self.logger.warning(f"Error closing socket: {e}")
        self.socket = None
        self.state = ConnectionState.DISCONNECTED
        self._buffer = b""

    def _require_connection(self) -> None:
        if self.state is not ConnectionState.CONNECTED or self.socket is None:
            raise self._fail(NotConnectedError("Not connected to Magrathea API"), "not_connected")

    def connect(self) -> None:
        """
        Open the stream, check the greeting and authenticate.

        Raises:
            ConnectionError: If the stream cannot be opened or breaks
            ProtocolError: If the greeting line is not a success status
            AuthenticationError: If the credentials are rejected
        """
        address = self.config.address
        if self.socket is not None:
            raise self._fail(ConnectionError(f"Already connected to {address}"), "already_connected")

        try:
            self.logger.info(f"Connecting to {address}")
            self.socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            self.socket.settimeout(self.timeout)
            self.socket.connect((self.config.server, self.config.port))
        except socket.timeout as e:
            raise self._transport_failure(
                TimeoutError(f"Timeout while connecting to {address}: {e}"), "connection_timeout"
            ) from e
        except socket.error as e:
            raise self._transport_failure(
                ConnectionError(f"Failed to connect to {address}: {e}"), "connection_failed"
            ) from e

        try:
            greeting = self._receive_line(GREETING)
            if not greeting.ok:
                raise self._fail(
                    ProtocolError(f"Error during connection. API returned: {greeting.text}", greeting.text),
                    "greeting_rejected"
                )
            self.authenticate()
        except MagratheaError:
            self._close_socket()
            raise

        self.logger.info("Connection established")

    def authenticate(self) -> bool:
        """
        Send the AUTH line with the configured credentials.

        Returns:
            bool: True if authentication successful

        Raises:
            AuthenticationError: If the server rejects the credentials
        """
        if self.socket is None:
            raise self._fail(NotConnectedError("Not connected to Magrathea API"), "not_connected")

        try:
            auth_line = self.protocol_handler.create_auth_line(
                self.config.username, self.config.password.get_secret_value()
            )
        except ValidationError as e:
            raise self._fail(e, "validation_failed")

        self._send_line(auth_line)
        response = self._receive_line(Commands.AUTH)
        if not response.ok:
            raise self._fail(
                AuthenticationError(f"Error during authentication. API returned: {response.text}", response.text),
                "authentication_failed"
            )

        self.state = ConnectionState.CONNECTED
        self.logger.info("Authentication successful")
        return True

    def disconnect(self) -> bool:
        """
        Send QUIT and close the stream.

        Returns:
            bool: True once the stream is closed

        Raises:
            NotConnectedError: If there is no open connection
            ConnectionError: If closing the socket fails
        """
        self._require_connection()

        quit_line = self.protocol_handler.create_quit_line()
        try:
            self.socket.sendall(quit_line.encode())
            self.logger.info(f"Sent {quit_line.redacted()}")
        except socket.error as e:
            self.logger.warning(f"Error sending QUIT: {e}")

        try:
            self.socket.close()
        except socket.error as e:
            raise self._fail(ConnectionError(f"Error during disconnect: {e}"), "disconnect_failed") from e
        finally:
            self.socket = None
            self.state = ConnectionState.DISCONNECTED
            self._buffer = b""

        self.logger.info("Disconnected from server")
        return True

    def close(self) -> None:
        """Disconnect if still connected; a no-op otherwise."""
        if self.state is ConnectionState.CONNECTED:
            self.disconnect()
        else:
            self._close_socket()

    def set_redirect(self, number, target, index=1, kind="L") -> bool:
        """
        Redirect a non-geographic number to a destination.

        Args:
            number: Number to redirect, reduced to its digits
            target: Destination, validated according to kind
            index: Redirect slot (1, 2 or 3), reduced to its digits
            kind: Destination type, one of L, F, V, S, s

        Returns:
            bool: True if the server accepted the redirect

        Raises:
            ValidationError: If the destination is malformed (nothing is sent)
            NotConnectedError: If the session is not connected
            ProtocolError: If the server answers with a failure status
        """
        try:
            destination = validate_destination(target, kind)
            set_line = self.protocol_handler.create_set_line(number, index, destination)
        except ValidationError as e:
            raise self._fail(e, "validation_failed")

        self._require_connection()
        self._send_line(set_line)
        response = self._receive_line(Commands.SET)
        if not response.ok:
            raise self._fail(
                ProtocolError(f"Error during SET command. API returned: {response.text}", response.text),
                "command_failed"
            )
        return True

    def deactivate(self, number) -> bool:
        """
        Deactivate a non-geographic number.

        The number is sent exactly as given.

        Returns:
            bool: True if the server accepted the deactivation

        Raises:
            NotConnectedError: If the session is not connected
            ProtocolError: If the server answers with a failure status
        """
        self._require_connection()
        try:
            deac_line = self.protocol_handler.create_deac_line(number)
        except ValidationError as e:
            raise self._fail(e, "validation_failed")

        self._send_line(deac_line)
        response = self._receive_line(Commands.DEAC)
        if not response.ok:
            raise self._fail(
                ProtocolError(f"Error during deactivation. API returned: {response.text}", response.text),
                "command_failed"
            )
        return True

    def _send_line(self, line: CommandLine) -> None:
        """
        Send a command line to the server.

        Raises:
            NotConnectedError: If there is no socket
            ConnectionError: If sending fails
        """
        if self.socket is None:
            raise self._fail(NotConnectedError("Not connected to Magrathea API"), "not_connected")

        try:
            self.socket.sendall(line.encode())
        except socket.timeout:
            raise self._transport_failure(
                TimeoutError(f"Timeout while sending {line.verb}"), "send_timeout"
            ) from None
        except socket.error as e:
            raise self._transport_failure(
                ConnectionError(f"Failed to send {line.verb}: {e}"), "send_failed"
            ) from e

        self.logger.info(f"Sent {line.redacted()}")

    def _receive_line(self, command: str) -> StatusLine:
        """
        Receive exactly one status line.

        Bytes following the line terminator stay buffered for the next read.

        Args:
            command: Command the line answers, for logs and errors

        Raises:
            TimeoutError: If the server does not answer in time
            ServerDisconnectionError: If the server closes the stream first
            ConnectionError: If receiving fails
            ProtocolError: If the line outgrows MAX_LINE_LENGTH
        """
        while LINE_TERMINATOR not in self._buffer:
            try:
                chunk = self.socket.recv(RECV_SIZE)
            except socket.timeout:
                raise self._transport_failure(
                    TimeoutError(f"Timeout while waiting for {command} response"), "receive_timeout"
                ) from None
            except socket.error as e:
                raise self._transport_failure(
                    ConnectionError(f"Failed to receive {command} response: {e}"), "receive_failed"
                ) from e

            if not chunk:
                if self._buffer:
                    # Final line without terminator
                    break
                raise self._transport_failure(
                    ServerDisconnectionError(f"Server disconnected while waiting for {command} response"),
                    "server_disconnected"
                )
            self._buffer += chunk
            if LINE_TERMINATOR not in self._buffer and len(self._buffer) > MAX_LINE_LENGTH:
                raise self._transport_failure(
                    ProtocolError(f"{command} response exceeds {MAX_LINE_LENGTH} bytes without a line terminator"),
                    "line_too_long"
                )

        raw, _, self._buffer = self._buffer.partition(LINE_TERMINATOR)
        status = StatusLine.decode(raw)
        self.logger.info(f"Received {command} response: {status.text}")
        return status


def connect(
    config: Union[SessionConfig, Mapping[str, Any], None] = None,
    timeout: float = DEFAULT_TIMEOUT,
    **settings: Any,
) -> ProvisioningSession:
    """
    Open an authenticated session.

    Keyword settings (server, port, username, password) override those in
    ``config``.

    Raises:
        ConfigurationError: On unknown or invalid settings
        ConnectionError: If the stream cannot be opened
        ProtocolError: If the greeting is rejected
        AuthenticationError: If the credentials are rejected
    """
    if isinstance(config, SessionConfig):
        config = config.model_copy()
        config.update(**settings)
    else:
        config = SessionConfig.from_mapping({**(config or {}), **settings})
    return ProvisioningSession(config, timeout=timeout)
