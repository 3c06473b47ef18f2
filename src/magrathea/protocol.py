"""
Magrathea NTS API line protocol.

This module handles the framing of command lines sent to the server and the
parsing of the single status line returned for each of them.

Client -> server:  VERB ARG ARG ... \\n
Server -> client:  <status digit(s)> <free text>\\n

A status line whose first character is '0' signals success, anything else
is a failure and the whole line is kept for diagnostics.
"""

import re
from typing import Tuple

from .destinations import Destination, strip_non_digits
from .exceptions import ValidationError


LINE_TERMINATOR = b"\n"
ENCODING = "utf-8"
SUCCESS_PREFIX = "0"
REDACTED = "****"

_STATUS_CODE = re.compile(r"\d+")


# Protocol Commands
class Commands:
    AUTH = "AUTH"
    SET = "SET"
    DEAC = "DEAC"
    QUIT = "QUIT"


class CommandLine:
    """
    A single command sent to the server.

    Arguments are joined with single spaces. A line break inside an argument
    would start a second command, so it is rejected.
    """

    def __init__(self, verb: str, *args: str, secret_args: Tuple[int, ...] = ()):
        self.verb = verb
        self.args = tuple(str(arg) for arg in args)
        self.secret_args = secret_args
        for arg in self.args:
            if "\n" in arg or "\r" in arg:
                raise ValidationError(f"Line break in {verb} argument")

    @property
    def text(self) -> str:
        return " ".join((self.verb,) + self.args)

    def redacted(self) -> str:
        """Command text with secret arguments masked, safe for logs."""
        args = tuple(
            REDACTED if i in self.secret_args else arg
            for i, arg in enumerate(self.args)
        )
        return " ".join((self.verb,) + args)

    def encode(self) -> bytes:
        return self.text.encode(ENCODING) + LINE_TERMINATOR

    def __repr__(self) -> str:
        return f"CommandLine({self.redacted()!r})"


class StatusLine:
    """A status line received from the server."""

    def __init__(self, text: str):
        self.text = text

    @property
    def ok(self) -> bool:
        return self.text.startswith(SUCCESS_PREFIX)

    @property
    def code(self) -> str:
        """Leading digit run of the line, empty if the line has none."""
        match = _STATUS_CODE.match(self.text)
        return match.group(0) if match else ""

    @classmethod
    def decode(cls, data: bytes) -> "StatusLine":
        """
        Decode a raw line from the wire.

        Args:
            data: Line bytes, with or without the terminator

        Returns:
            StatusLine: Parsed line with the terminator stripped
        """
        return cls(data.decode(ENCODING, errors="replace").rstrip("\r\n"))

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"StatusLine({self.text!r})"


class ProtocolHandler:
    """
    Builds the command lines for a session.
    """

    def create_auth_line(self, username: str, password: str) -> CommandLine:
        """Create an AUTH command line, the password is masked in logs."""
        return CommandLine(Commands.AUTH, username, password, secret_args=(1,))

    def create_set_line(self, number, index, destination: Destination) -> CommandLine:
        """Create a SET command line, number and index are reduced to digits."""
        return CommandLine(
            Commands.SET,
            strip_non_digits(number),
            strip_non_digits(index),
            destination.wire,
        )

    def create_deac_line(self, number) -> CommandLine:
        """Create a DEAC command line, the number is sent as given."""
        return CommandLine(Commands.DEAC, number)

    def create_quit_line(self) -> CommandLine:
        return CommandLine(Commands.QUIT)
