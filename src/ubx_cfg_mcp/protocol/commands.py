"""CFG command families and the command-line compiler.

A command line names a CFG message family followed by its positional
arguments, for example::

    CFG-RATE 1000 1 1
    CFG-VALSET 0 1 0 0 CFG-TMODE-MODE 2

Generic families encode each argument at the width of the matching
field in :data:`COMMAND_SPECS`. ``VALSET`` has its own grammar: four
one-byte header values, a configuration key name and one value typed by
the key dictionary.

The message layouts follow the u-blox receiver protocol descriptions
(M8 and F9 generations). CFG-DOSC and CFG-ESRC are not supported.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from .config_keys import lookup_key
from .errors import (
    BadArgumentCount,
    BufferTooSmall,
    CommandError,
    MalformedInput,
    UnknownCommand,
)
from .fields import FieldType, encode_field
from .framing import build_frame

logger = logging.getLogger(__name__)

CFG_PREFIX = "CFG-"
MAX_TOKENS = 32
MAX_LINE_LENGTH = 1024
MAX_FRAME_SIZE = 1024  # fits the largest frame a 32-token line can produce

VALSET = "VALSET"
VALSET_TOKENS = 7   # name + 4 header values + key + value
VALSET_HEADER = 4

U1, U2, U4 = FieldType.U1, FieldType.U2, FieldType.U4
I1, I2, I4 = FieldType.I1, FieldType.I2, FieldType.I4
R4, R8, S32 = FieldType.R4, FieldType.R8, FieldType.S32


@dataclass(frozen=True)
class CommandSpec:
    """Sub-id and argument layout of one CFG message family."""

    name: str
    sub_id: int
    fields: tuple[FieldType, ...]

    @property
    def payload_size(self) -> int:
        """Payload length when exactly the declared fields are given."""
        return sum(f.width for f in self.fields)

    def to_dict(self) -> dict:
        return {
            "name": CFG_PREFIX + self.name,
            "id": f"0x{self.sub_id:02X}",
            "fields": [f.name for f in self.fields],
        }


def _spec(name: str, sub_id: int, *fields: FieldType) -> tuple[str, CommandSpec]:
    return name, CommandSpec(name, sub_id, fields)


COMMAND_SPECS: Mapping[str, CommandSpec] = MappingProxyType(dict([
    # portid res0 res1 mode baudrate inmask outmask flags
    _spec("PRT", 0x00, U1, U1, U2, U4, U4, U2, U2, U2, U2),
    # vendid prodid res1 res2 power flags vstr pstr serino
    _spec("USB", 0x1B, U2, U2, U2, U2, U2, U2, S32, S32, S32),
    # msgid rate0 .. rate6
    _spec("MSG", 0x01, U1, U1, U1, U1, U1, U1, U1, U1),
    # filter version numsv flags
    _spec("NMEA", 0x17, U1, U1, U1, U1),
    # meas nav time
    _spec("RATE", 0x08, U2, U2, U2),
    # clear_mask save_mask load_mask [dev_mask]
    _spec("CFG", 0x09, U4, U4, U4, U1),
    # interval length status time_ref res adelay rdelay udelay
    _spec("TP", 0x07, U4, U4, I1, U1, U2, I2, I2, I4),
    _spec("NAV2", 0x1A, U1, U1, U2, U1, U1, U1, U1, I4, U1, U1, U1, U1, U1, U1,
          U2, U2, U2, U2, U2, U1, U1, U2, U4, U4),
    # maja flat dx dy dz rotx roty rotz scale
    _spec("DAT", 0x06, R8, R8, R4, R4, R4, R4, R4, R4, R4),
    # protocolid res0 res1 res2 mask0 .. mask5
    _spec("INF", 0x02, U1, U1, U1, U1, U1, U1, U1, U1, U1, U1),
    # navbbr reset res
    _spec("RST", 0x04, U2, U1, U1),
    # gpsmode lpmode
    _spec("RXM", 0x11, U1, U1),
    # flags pins
    _spec("ANT", 0x13, U2, U2),
    # flags treacq tacq treacqoff tacqoff ton toff res basetow
    _spec("FXN", 0x0E, U4, U4, U4, U4, U4, U4, U4, U4),
    # mode usage maxsbas res scanmode
    _spec("SBAS", 0x16, U1, U1, U1, U1, U4),
    # key0 .. key5
    _spec("LIC", 0x80, U2, U2, U2, U2, U2, U2),
    # intid rate flags
    _spec("TM", 0x10, U4, U4, U4),
    # ch res0 res1 rate flags
    _spec("TM2", 0x19, U1, U1, U2, U4, U4),
    # tmode posx posy posz posvar svinmindur svinvarlimit
    _spec("TMODE", 0x1D, U4, I4, I4, I4, U4, U4, U4),
    _spec("EKF", 0x12, U1, U1, U1, U1, U4, U2, U2, U1, U1, U2),
    _spec("GNSS", 0x3E, U1, U1, U1, U1, U1, U1, U1, U1, U4),
    # conf conf2
    _spec("ITFM", 0x39, U4, U4),
    # ver flag min_int time_thr speed_thr pos_thr
    _spec("LOGFILTER", 0x47, U1, U1, U2, U2, U2, U4),
    _spec("NAV5", 0x24, U2, U1, U1, I4, U4, I1, U1, U2, U2, U2, U2, U1, U1, U1,
          U1, U1, U1, U2, U1, U1, U1, U1, U1, U1),
    _spec("NAVX5", 0x23, U2, U2, U4, U1, U1, U1, U1, U1, U1, U1, U1, U1, U1, U2,
          U1, U1, U1, U1, U1, U1, U1, U1, U1, U1, U2),
    _spec("ODO", 0x1E, U1, U1, U1, U1, U1, U1, U1, U1, U1),
    _spec("PM2", 0x3B, U1, U1, U1, U1, U4, U4, U4, U4, U2, U2),
    # ver rsv1 rsv2 rsv3 state
    _spec("PWR", 0x57, U1, U1, U1, U1, U4),
    # flag data
    _spec("RINV", 0x34, U1, U1),
    _spec("SMGR", 0x62, U1, U1, U2, U2, U1, U1, U2, U2, U2, U2, U4),
    _spec("TMODE2", 0x36, U1, U1, U2, I4, I4, I4, U4, U4, U4),
    _spec("TMODE3", 0x71, U1, U1, U2, I4, I4, I4, U4, U4, U4),
    _spec("TPS", 0x31, U1, U1, U1, U1, I2, I2, U4, U4, U4, U4, I4, U4),
    _spec("TXSLOT", 0x53, U1, U1, U1, U1, U4, U4, U4, U4, U4),
    # ver layer res0 res1 key [key ...]
    _spec("VALDEL", 0x8C, U1, U1, U1, U1),
    # ver layer pos key [key ...]
    _spec("VALGET", 0x8B, U1, U1, U2),
    # ver layer res0 res1; key and value are encoded separately
    _spec(VALSET, 0x8A, U1, U1, U1, U1),
]))


def tokenize(line: str) -> list[str]:
    """Split a command line into at most :data:`MAX_TOKENS` tokens.

    Runs of spaces separate tokens; a trailing line terminator is ignored.

    Raises:
        MalformedInput: On a line that is not a string or is longer than
            :data:`MAX_LINE_LENGTH`, an empty line, too many tokens, or a
            first token without the ``CFG-`` prefix.
    """
    if not isinstance(line, str):
        raise MalformedInput(f"Command must be a string, got {type(line).__name__}")
    if len(line) > MAX_LINE_LENGTH:
        raise MalformedInput(f"Command too long ({len(line)} > {MAX_LINE_LENGTH} characters)")
    tokens =[t for t in line.rstrip("\r\n").split(" ") if t]
    if not tokens:
        raise MalformedInput("Empty command")
    if len(tokens) > MAX_TOKENS:
        raise MalformedInput(f"Too many tokens ({len(tokens)} > {MAX_TOKENS})")
    if not tokens[0].startswith(CFG_PREFIX):
        raise MalformedInput(f"Command must start with '{CFG_PREFIX}', got {tokens[0]!r}")
    return tokens


def resolve_command(token: str) -> CommandSpec:
    """Look up the family named by a ``CFG-`` token.

    Raises:
        UnknownCommand: If the family is not supported.
    """
    name = token[len(CFG_PREFIX):] if token.startswith(CFG_PREFIX) else token
    try:
        return COMMAND_SPECS[name]
    except KeyError:
        raise UnknownCommand(f"Unknown command family {token!r}") from None


def encode_arguments(spec: CommandSpec, args: list[str]) -> bytes:
    """Encode positional arguments against a family's field list.

    Missing trailing arguments take the zero value of their field.
    Arguments beyond the declared fields reuse the last declared type.
    """
    payload = bytearray()
    count = max(len(spec.fields), len(args))
    for i in range(count):
        field_type = spec.fields[min(i, len(spec.fields) - 1)]
        token = args[i] if i < len(args) else None
        payload += encode_field(field_type, token)
    return bytes(payload)


def encode_valset(args: list[str]) -> bytes:
    """Encode ``ver layer res0 res1 CFG-<KEY> value``.

    Raises:
        BadArgumentCount: Unless exactly six arguments are given.
        UnknownKey: If the key name is not in the dictionary.
    """
    if len(args) != VALSET_TOKENS - 1:
        raise BadArgumentCount(
            f"CFG-{VALSET} takes {VALSET_TOKENS - 1} arguments "
            f"(ver layer res0 res1 key value), got {len(args)}"
        )
    header, key_name, value = args[:VALSET_HEADER], args[VALSET_HEADER], args[VALSET_HEADER + 1]
    entry = lookup_key(key_name)

    payload = bytearray()
    for token in header:
        payload += encode_field(FieldType.U1, token)
    payload += entry.key.to_bytes(4, "little")
    payload += encode_field(entry.type, value)
    return bytes(payload)


def compile_command(line: str) -> bytes:
    """Compile one command line into a complete UBX-CFG frame.

    Args:
        line: ``CFG-<FAMILY> arg1 arg2 ...``

    Returns:
        The frame bytes.

    Raises:
        CommandError: Any validation failure (see :mod:`.errors`).
    """
    tokens = tokenize(line)
    spec = resolve_command(tokens[0])
    args = tokens[1:]

    if spec.name == VALSET:
        payload = encode_valset(args)
    else:
        payload = encode_arguments(spec, args)

    return build_frame(spec.sub_id, payload)


def compile_into(line: str, buffer: bytearray) -> int:
    """Compile ``line`` into a caller-owned buffer.

    Returns:
        Number of bytes written, or ``0`` if ``line`` is not a string,
        could not be compiled or does not fit in ``buffer``. Buffer contents past the
        returned length are not meaningful.
    """
    try:
        frame = compile_command(line)
        if len(frame) > len(buffer):
            raise BufferTooSmall(
                f"Frame of {len(frame)} bytes does not fit in {len(buffer)}-byte buffer"
            )
    except CommandError as e:
        logger.debug("Cannot compile %r: %s", line, e)
        return 0

    buffer[: len(frame)] = frame
    return len(frame)
