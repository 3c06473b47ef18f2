"""
Tests for the Magrathea NTS API line protocol.
"""

import pytest
from src.magrathea.destinations import Destination, DestinationKind
from src.magrathea.exceptions import ValidationError
from src.magrathea.protocol import (
    CommandLine, Commands, ProtocolHandler, StatusLine, LINE_TERMINATOR
)


class TestCommandLine:
    """Test cases for CommandLine."""

    def test_encode(self):
        """Test a command is joined with spaces and newline terminated."""
        line = CommandLine(Commands.SET, "08001234567", "1", "442035550100")

        assert line.text == "SET 08001234567 1 442035550100"
        assert line.encode() == b"SET 08001234567 1 442035550100\n"
        assert line.encode().endswith(LINE_TERMINATOR)

    def test_encode_without_arguments(self):
        """Test a bare verb."""
        assert CommandLine(Commands.QUIT).encode() == b"QUIT\n"

    def test_arguments_are_stringified(self):
        """Test non-string arguments."""
        assert CommandLine(Commands.SET, 1, 2).text == "SET 1 2"

    def test_redacted_masks_secret_arguments(self):
        """Test secret arguments never reach logs."""
        line = CommandLine(Commands.AUTH, "user", "hunter2", secret_args=(1,))

        assert line.redacted() == "AUTH user ****"
        assert line.text == "AUTH user hunter2"
        assert "hunter2" not in repr(line)

    @pytest.mark.parametrize("arg", ["a\nb", "a\rb", "\n"])
    def test_line_break_rejected(self, arg):
        """Test an argument cannot start a second command."""
        with pytest.raises(ValidationError):
            CommandLine(Commands.DEAC, arg)


class TestStatusLine:
    """Test cases for StatusLine."""

    @pytest.mark.parametrize("raw,ok", [
        (b"0 OK\n", True),
        (b"0\n", True),
        (b"00 Done", True),
        (b"1 UNKNOWN NUMBER\n", False),
        (b"9 Error\n", False),
        (b" 0 leading space\n", False),
        (b"\n", False),
        (b"OK\n", False),
    ])
    def test_success_is_first_character_zero(self, raw, ok):
        """Test only a leading '0' signals success."""
        assert StatusLine.decode(raw).ok is ok

    def test_decode_strips_terminator(self):
        """Test CRLF and LF are stripped."""
        assert StatusLine.decode(b"1 UNKNOWN NUMBER\r\n").text == "1 UNKNOWN NUMBER"
        assert StatusLine.decode(b"0 OK\n").text == "0 OK"
        assert StatusLine.decode(b"0 OK").text == "0 OK"

    def test_decode_invalid_utf8(self):
        """Test undecodable bytes are replaced instead of failing."""
        status = StatusLine.decode(b"1 bad \xff byte\n")

        assert not status.ok
        assert status.text.startswith("1 bad ")

    def test_code(self):
        """Test the leading digit run."""
        assert StatusLine("0 OK").code == "0"
        assert StatusLine("12 Invalid index").code == "12"
        assert StatusLine("ERROR").code == ""

    def test_str(self):
        assert str(StatusLine("1 Nope")) == "1 Nope"


class TestProtocolHandler:
    """Test cases for ProtocolHandler."""

    def setup_method(self):
        self.handler = ProtocolHandler()

    def test_create_auth_line(self):
        line = self.handler.create_auth_line("user", "pw")

        assert line.encode() == b"AUTH user pw\n"
        assert line.redacted() == "AUTH user ****"

    def test_create_set_line_strips_number_and_index(self):
        """Test SET digit-strips the number and the index."""
        destination = Destination(DestinationKind.LANDLINE, "442035550100")

        line = self.handler.create_set_line("0800-123 4567", " 2 ", destination)

        assert line.text == "SET 08001234567 2 442035550100"

    def test_create_set_line_keeps_leading_zero_of_number(self):
        """Test the source number is not country-coded."""
        destination = Destination(DestinationKind.VOICEMAIL, "a@b.co")

        line = self.handler.create_set_line("02035550100", 1, destination)

        assert line.text == "SET 02035550100 1 V:a@b.co"

    def test_create_deac_line_sends_number_as_given(self):
        """Test DEAC leaves the number untouched."""
        line = self.handler.create_deac_line("0800 123 4567")

        assert line.text == "DEAC 0800 123 4567"

    def test_create_quit_line(self):
        assert self.handler.create_quit_line().encode() == b"QUIT\n"
