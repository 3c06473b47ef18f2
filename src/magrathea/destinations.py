"""
Redirect destination validation and normalization.

A destination is the target a non-geographic number is redirected to. Each
destination kind has its own validation rule and its own wire form, e.g. a
UK landline is sent in international format and a voicemail box is sent as
``V:<email>``.
"""

import re
from dataclasses import dataclass
from enum import Enum

from .exceptions import ValidationError


class DestinationKind(str, Enum):
    """Destination types understood by the SET command."""
    LANDLINE = "L"
    FAX = "F"
    VOICEMAIL = "V"
    SMS = "S"
    SHORT_MESSAGE = "s"


# UK geographic numbers only: 01/02 followed by at least six more digits
LANDLINE_PATTERN = re.compile(r"0[12]\d{6,}")
EMAIL_PATTERN = re.compile(
    r"[a-zA-Z](?:\.?[a-zA-Z0-9_-])*@(?:[a-zA-Z0-9_-]+\.)+[a-zA-Z]{2,6}"
)
IDENTIFIER_PATTERN = re.compile(r"[a-zA-Z0-9]+@[a-zA-Z0-9]+")

COUNTRY_CODE = "44"

_NON_DIGITS = re.compile(r"\D")


@dataclass(frozen=True)
class Destination:
    """A validated redirect target."""
    kind: DestinationKind
    value: str

    @property
    def wire(self) -> str:
        """Protocol-ready form used in a SET line."""
        if self.kind is DestinationKind.LANDLINE:
            return self.value
        return f"{self.kind.value}:{self.value}"


def strip_non_digits(value) -> str:
    """Remove every non-digit character from ``value``."""
    return _NON_DIGITS.sub("", str(value))


def normalize_landline(raw: str) -> str:
    """
    Convert a UK landline to the international form expected by the API.

    Args:
        raw: Number in any human format, e.g. "0203 555 0100"

    Returns:
        str: Digits with the leading 0 replaced by 44, e.g. "442035550100"

    Raises:
        ValidationError: If the number is not a 01/02 landline
    """
    digits = strip_non_digits(raw)
    if not LANDLINE_PATTERN.fullmatch(digits):
        raise ValidationError(f"Invalid destination for type 'L': {raw!r}")
    return COUNTRY_CODE + digits[1:]


def _parse_kind(kind) -> DestinationKind:
    try:
        return DestinationKind(kind)
    except ValueError:
        raise ValidationError(f"Invalid destination type '{kind}'.") from None


def validate_destination(raw: str, kind="L") -> Destination:
    """
    Validate a raw target for the given destination kind.

    Args:
        raw: Target as supplied by the caller
        kind: Destination kind flag (L, F, V, S or s)

    Returns:
        Destination: The normalized destination

    Raises:
        ValidationError: If the kind is unknown or the target is malformed
    """
    destination_kind = _parse_kind(kind)
    target = str(raw)

    if destination_kind is DestinationKind.LANDLINE:
        return Destination(destination_kind, normalize_landline(target))

    if destination_kind in (DestinationKind.FAX, DestinationKind.VOICEMAIL):
        valid = EMAIL_PATTERN.fullmatch(target) is not None
    else:
        # Loose match, but whitespace would split the SET line
        valid = (
            IDENTIFIER_PATTERN.search(target) is not None
            and not any(ch.isspace() for ch in target)
        )

    if not valid:
        raise ValidationError(
            f"Invalid destination for type '{destination_kind.value}': {target!r}"
        )
    return Destination(destination_kind, target)
