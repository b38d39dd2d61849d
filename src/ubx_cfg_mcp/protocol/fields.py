"""Wire field types and their little-endian encoders.

Every payload slot of a CFG message has one of the types below. Integers
are written little-endian at their declared width and wrap to it, so
``-1`` in a ``U1`` slot becomes ``0xFF`` just as ``0xFFFFFFFF`` in an
``I4`` slot becomes ``-1``. ``S32`` is a fixed 32-byte ASCII string,
left-justified and padded with spaces.

``U8`` exists in the receiver's type system and in the key dictionary,
but no encoder is implemented for it; :func:`encode_field` rejects it
with :class:`UnsupportedFieldType`.
"""

from __future__ import annotations

import re
import struct
from enum import IntEnum

from .errors import MalformedInput, UnsupportedFieldType

HEX_PREFIX = "0x"
S32_SIZE = 32

_DECIMAL_RE = re.compile(r"[+-]?[0-9]+")
_HEX_RE = re.compile(r"0x[0-9A-Fa-f]+")


class FieldType(IntEnum):
    """Wire representation of one payload slot."""

    U1 = 1
    U2 = 2
    U4 = 3
    U8 = 4
    I1 = 5
    I2 = 6
    I4 = 7
    R4 = 8
    R8 = 9
    S32 = 10

    @property
    def width(self) -> int:
        """Number of payload bytes the field occupies."""
        return _WIDTHS[self]

    @property
    def is_integer(self) -> bool:
        return self not in (FieldType.R4, FieldType.R8, FieldType.S32)

    @property
    def is_float(self) -> bool:
        return self in (FieldType.R4, FieldType.R8)


_WIDTHS: dict[FieldType, int] = {
    FieldType.U1: 1,
    FieldType.U2: 2,
    FieldType.U4: 4,
    FieldType.U8: 8,
    FieldType.I1: 1,
    FieldType.I2: 2,
    FieldType.I4: 4,
    FieldType.R4: 4,
    FieldType.R8: 8,
    FieldType.S32: S32_SIZE,
}


def parse_number(token: str, field_type: FieldType) -> int | float:
    """Convert a numeric token for ``field_type``.

    ``0x<hex>`` is read as an unsigned 32-bit literal for every numeric
    type. Otherwise the token is a decimal integer for integer types or
    a decimal float for ``R4``/``R8``.

    Raises:
        MalformedInput: If the token is not a number of the expected form.
    """
    if _HEX_RE.fullmatch(token):
        value = int(token[len(HEX_PREFIX):], 16) & 0xFFFFFFFF
        return float(value) if field_type.is_float else value

    if field_type.is_float:
        try:
            return float(token)
        except ValueError:
            raise MalformedInput(
                f"Expected a decimal number for {field_type.name}, got {token!r}"
            ) from None

    if not _DECIMAL_RE.fullmatch(token):
        raise MalformedInput(
            f"Expected an integer for {field_type.name}, got {token!r}"
        )
    try:
        return int(token)
    except ValueError:
        # int() refuses decimal strings past sys.get_int_max_str_digits()
        raise MalformedInput(
            f"Integer for {field_type.name} has too many digits ({len(token)})"
        ) from None


def encode_field(field_type: FieldType, token: str | None) -> bytes:
    """Serialize one token at the width of ``field_type``.

    A ``None`` token encodes the type's zero value (an all-space string
    for ``S32``).

    Raises:
        MalformedInput: If the token cannot be converted.
        UnsupportedFieldType: For ``U8``.
    """
    if field_type is FieldType.U8:
        raise UnsupportedFieldType("U8 fields have no encoder")

    if field_type is FieldType.S32:
        text = token or ""
        try:
            raw = text.encode("ascii")
        except UnicodeEncodeError:
            raise MalformedInput(f"S32 value must be ASCII, got {text!r}") from None
        return raw[:S32_SIZE].ljust(S32_SIZE, b" ")

    if field_type is FieldType.R4:
        value = parse_number(token, field_type) if token is not None else 0.0
        try:
            return struct.pack("<f", value)
        except OverflowError:
            raise MalformedInput(f"{token!r} is out of range for R4") from None

    if field_type is FieldType.R8:
        value = parse_number(token, field_type) if token is not None else 0.0
        return struct.pack("<d", value)

    # Remaining types are integers; signed and unsigned wrap identically.
    value = parse_number(token, field_type) if token is not None else 0
    width = field_type.width
    return (value & ((1 << (8 * width)) - 1)).to_bytes(width, "little")
