"""Tests for the command-line compiler."""

import struct

import pytest

from ubx_cfg_mcp.protocol.commands import (
    COMMAND_SPECS,
    MAX_FRAME_SIZE,
    MAX_LINE_LENGTH,
    MAX_TOKENS,
    compile_command,
    compile_into,
    encode_arguments,
    resolve_command,
    tokenize,
)
from ubx_cfg_mcp.protocol.errors import (
    BadArgumentCount,
    CommandError,
    MalformedInput,
    UnknownCommand,
    UnknownKey,
    UnsupportedFieldType,
)
from ubx_cfg_mcp.protocol.fields import FieldType
from ubx_cfg_mcp.protocol.framing import parse_frame, verify_frame
from ubx_cfg_mcp.utils.checksum import ubx_checksum


def _hex(text: str) -> bytes:
    return bytes.fromhex(text)


# ─── Tokenizer / dispatcher ──────────────────────────────────────────

def test_tokenize_splits_on_spaces():
    assert tokenize("CFG-RATE 1000 1 1") == ["CFG-RATE", "1000", "1", "1"]


def test_tokenize_collapses_repeated_spaces_and_newline():
    assert tokenize("CFG-RATE  1000 1\r\n") == ["CFG-RATE", "1000", "1"]


@pytest.mark.parametrize("line", ["", "   ", "RATE 1000", "cfg-RATE 1000"])
def test_tokenize_malformed(line):
    with pytest.raises(MalformedInput):
        tokenize(line)


def test_tokenize_token_limit():
    """32 tokens are accepted, 33 are not."""
    assert len(tokenize("CFG-MSG" + " 1" * (MAX_TOKENS - 1))) == MAX_TOKENS
    with pytest.raises(MalformedInput):
        tokenize("CFG-MSG" + " 1" * MAX_TOKENS)


def test_tokenize_line_length_limit():
    line = "CFG-RATE 1000 1 "
    assert tokenize(line + "1" * (MAX_LINE_LENGTH - len(line)))[-1].startswith("1")
    with pytest.raises(MalformedInput):
        tokenize(line + "1" * (MAX_LINE_LENGTH - len(line) + 1))


@pytest.mark.parametrize("line", [None, b"CFG-RATE 1000 1 1", 42])
def test_tokenize_rejects_non_string(line):
    with pytest.raises(MalformedInput):
        tokenize(line)


def test_resolve_command():
    spec = resolve_command("CFG-RATE")
    assert spec.sub_id == 0x08
    assert spec.fields == (FieldType.U2, FieldType.U2, FieldType.U2)


def test_resolve_unknown_command():
    with pytest.raises(UnknownCommand):
        resolve_command("CFG-FOO")


def test_command_table():
    """One entry per family, each keyed by its own name."""
    assert len(COMMAND_SPECS) == 37
    for name, spec in COMMAND_SPECS.items():
        assert spec.name == name
        assert spec.fields
    assert len({spec.sub_id for spec in COMMAND_SPECS.values()}) == 37
    assert COMMAND_SPECS["VALSET"].sub_id == 0x8A
    assert COMMAND_SPECS["VALGET"].sub_id == 0x8B
    assert COMMAND_SPECS["VALDEL"].sub_id == 0x8C
    assert COMMAND_SPECS["TMODE3"].sub_id == 0x71


def test_command_table_read_only():
    with pytest.raises(TypeError):
        COMMAND_SPECS["NEW"] = COMMAND_SPECS["RATE"]


# ─── VALSET ──────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "line, expected",
    [
        (
            "CFG-VALSET 0 1 0 0 CFG-TMODE-MODE 0",
            "b5 62 06 8a 09 00 00 01 00 00 01 00 03 20 00 be 7f",
        ),
        (
            "CFG-VALSET 0 1 0 0 CFG-TMODE-MODE 2",
            "b5 62 06 8a 09 00 00 01 00 00 01 00 03 20 02 c0 81",
        ),
        (
            "CFG-VALSET 0 1 0 0 CFG-TMODE-POS_TYPE 1",
            "b5 62 06 8a 09 00 00 01 00 00 02 00 03 20 01 c0 85",
        ),
        (
            "CFG-VALSET 0 1 0 0 CFG-TMODE-LAT 209600040",
            "b5 62 06 8a 0c 00 00 01 00 00 09 00 03 40 28 3e 7e 0c d9 25",
        ),
        (
            "CFG-VALSET 0 1 0 0 CFG-TMODE-LON 1057684480",
            "b5 62 06 8a 0c 00 00 01 00 00 0a 00 03 40 00 fc 0a 3f 2f 12",
        ),
        (
            "CFG-VALSET 0 1 0 0 CFG-TMODE-HEIGHT -100",
            "b5 62 06 8a 0c 00 00 01 00 00 0b 00 03 40 9c ff ff ff 84 3d",
        ),
    ],
)
def test_valset_known_frames(line, expected):
    assert compile_command(line) == _hex(expected)


def test_valset_hex_value_matches_decimal():
    assert compile_command("CFG-VALSET 0 1 0 0 CFG-RATE-MEAS 0x3E8") == compile_command(
        "CFG-VALSET 0 1 0 0 CFG-RATE-MEAS 1000"
    )


def test_valset_u2_value():
    frame = compile_command("CFG-VALSET 0 1 0 0 CFG-RATE-MEAS 1000")
    parsed = parse_frame(frame)
    assert parsed.payload == _hex("00 01 00 00 01 00 21 30 e8 03")


def test_valset_float_value():
    frame = compile_command("CFG-VALSET 0 1 0 0 CFG-NAVSPG-USRDAT_MAJA 6378137.0")
    parsed = parse_frame(frame)
    assert parsed.payload[4:8] == (0x50110062).to_bytes(4, "little")
    assert parsed.payload[8:] == struct.pack("<d", 6378137.0)


def test_valset_header_hex():
    """Header values take hex too."""
    frame = compile_command("CFG-VALSET 0x00 0x07 0 0 CFG-TMODE-MODE 1")
    assert parse_frame(frame).payload[:4] == b"\x00\x07\x00\x00"


@pytest.mark.parametrize(
    "line",
    [
        "CFG-VALSET 0 1 0 0 CFG-TMODE-MODE",
        "CFG-VALSET 0 1 0 0 CFG-TMODE-MODE 1 2",
        "CFG-VALSET 0 1 0 0",
        "CFG-VALSET",
    ],
)
def test_valset_wrong_argument_count(line):
    with pytest.raises(BadArgumentCount):
        compile_command(line)


def test_valset_unknown_key():
    with pytest.raises(UnknownKey):
        compile_command("CFG-VALSET 0 1 0 0 CFG-NOT-A-KEY 1")


def test_valset_key_without_prefix():
    with pytest.raises(UnknownKey):
        compile_command("CFG-VALSET 0 1 0 0 TMODE-MODE 1")


def test_valset_u8_key_rejected():
    with pytest.raises(UnsupportedFieldType):
        compile_command("CFG-VALSET 0 1 0 0 CFG-SBAS-PRNSCANMASK 1")


def test_valset_bad_value():
    with pytest.raises(MalformedInput):
        compile_command("CFG-VALSET 0 1 0 0 CFG-TMODE-MODE fixed")


# ─── Generic families ────────────────────────────────────────────────

def test_compile_rate():
    assert compile_command("CFG-RATE 1000 1 1") == _hex(
        "b5 62 06 08 06 00 e8 03 01 00 01 00 01 39"
    )


def test_missing_arguments_default_to_zero():
    """CFG-CFG with three masks leaves dev_mask at zero."""
    parsed = parse_frame(compile_command("CFG-CFG 0 0xFFFF 0"))
    assert parsed.msg_id == 0x09
    assert parsed.payload == _hex("00 00 00 00 ff ff 00 00 00 00 00 00 00")


def test_no_arguments_encodes_zero_payload():
    parsed = parse_frame(compile_command("CFG-TMODE"))
    assert parsed.payload == b"\x00" * COMMAND_SPECS["TMODE"].payload_size


def test_surplus_arguments_reuse_last_field_type():
    """ANT is U2 U2; a third argument is written as U2 as well."""
    parsed = parse_frame(compile_command("CFG-ANT 1 2 3"))
    assert parsed.payload == _hex("01 00 02 00 03 00")


def test_surplus_arguments_valdel():
    parsed = parse_frame(compile_command("CFG-VALDEL 0 1 0 0 5 6"))
    assert parsed.payload == _hex("00 01 00 00 05 06")


def test_msg_signed_and_hex():
    parsed = parse_frame(compile_command("CFG-MSG 0xF0 0x00 1"))
    assert parsed.payload == _hex("f0 00 01 00 00 00 00 00")


def test_tp_signed_fields():
    parsed = parse_frame(compile_command("CFG-TP 1000000 100000 -1 0 0 -50 0 -1"))
    payload = parsed.payload
    assert payload[8] == 0xFF
    assert payload[12:14] == _hex("ce ff")
    assert payload[16:20] == _hex("ff ff ff ff")


def test_dat_float_fields():
    parsed = parse_frame(compile_command("CFG-DAT 6378137.0 298.257223563"))
    assert parsed.payload[:8] == struct.pack("<d", 6378137.0)
    assert parsed.payload[8:16] == struct.pack("<d", 298.257223563)
    assert parsed.payload[16:] == b"\x00" * 28


def test_usb_strings():
    parsed = parse_frame(compile_command("CFG-USB 0x1546 0x01A9 0 0 100 0 u-blox"))
    payload = parsed.payload
    assert len(payload) == 12 + 3 * 32
    assert payload[:2] == _hex("46 15")
    assert payload[12:44] == b"u-blox".ljust(32, b" ")
    assert payload[44:] == b" " * 64


def test_unknown_family():
    with pytest.raises(UnknownCommand):
        compile_command("CFG-FOO 1 2 3")


def test_generic_bad_token():
    with pytest.raises(MalformedInput):
        compile_command("CFG-RATE fast 1 1")


def test_encode_arguments_directly():
    assert encode_arguments(COMMAND_SPECS["RXM"], ["1"]) == b"\x01\x00"


# ─── Frame properties across every family ────────────────────────────

def _sample_line(name: str) -> str:
    if name == "VALSET":
        return "CFG-VALSET 0 1 0 0 CFG-TMODE-MODE 1"
    return "CFG-" + name + " 1" * len(COMMAND_SPECS[name].fields)


@pytest.mark.parametrize("name", sorted(COMMAND_SPECS))
def test_every_family_checksum_and_length(name):
    frame = compile_command(_sample_line(name))
    length = int.from_bytes(frame[4:6], "little")
    assert len(frame) == 8 + length
    assert (frame[-2], frame[-1]) == ubx_checksum(frame[2:-2])
    assert frame[3] == COMMAND_SPECS[name].sub_id
    assert verify_frame(frame)


@pytest.mark.parametrize("name", sorted(n for n in COMMAND_SPECS if n != "VALSET"))
def test_every_family_declared_payload_size(name):
    frame = compile_command("CFG-" + name)
    assert len(frame) == 8 + COMMAND_SPECS[name].payload_size


@pytest.mark.parametrize(
    "name",
    sorted(
        n for n, spec in COMMAND_SPECS.items()
        if n != "VALSET" and all(f.is_integer for f in spec.fields)
    ),
)
def test_every_integer_family_hex_equals_decimal(name):
    count = len(COMMAND_SPECS[name].fields)
    assert compile_command(f"CFG-{name}" + " 0x1A" * count) == compile_command(
        f"CFG-{name}" + " 26" * count
    )


# ─── Buffer boundary ─────────────────────────────────────────────────

def test_compile_into_writes_frame():
    buffer = bytearray(MAX_FRAME_SIZE)
    n = compile_into("CFG-VALSET 0 1 0 0 CFG-TMODE-MODE 2", buffer)
    assert n == 17
    assert bytes(buffer[:n]) == _hex("b5 62 06 8a 09 00 00 01 00 00 01 00 03 20 02 c0 81")


@pytest.mark.parametrize(
    "line",
    [
        "CFG-FOO 1 2 3",
        "CFG-VALSET 0 1 0 0 CFG-NOT-A-KEY 1",
        "CFG-VALSET 0 1 0 0 CFG-TMODE-MODE",
        "",
        "RATE 1000 1 1",
        "CFG-VALSET 0 1 0 0 CFG-USB-VENDOR_STR0 1",
    ],
)
def test_compile_into_failure_returns_zero(line):
    assert compile_into(line, bytearray(MAX_FRAME_SIZE)) == 0


@pytest.mark.parametrize(
    "line",
    [
        "CFG-RATE " + "1" * 5000,
        "CFG-VALSET 0 1 0 0 CFG-TMODE-LAT " + "9" * 5000,
        "CFG-RATE 1000 1 1" + " " * MAX_LINE_LENGTH,
    ],
)
def test_compile_into_oversized_line_returns_zero(line):
    """Lines past MAX_LINE_LENGTH never reach the number parser."""
    assert compile_into(line, bytearray(MAX_FRAME_SIZE)) == 0


@pytest.mark.parametrize("line", [None, b"CFG-RATE 1000 1 1"])
def test_compile_into_non_string_returns_zero(line):
    assert compile_into(line, bytearray(MAX_FRAME_SIZE)) == 0


def test_compile_into_buffer_too_small():
    assert compile_into("CFG-RATE 1000 1 1", bytearray(10)) == 0


def test_compile_into_worst_case_fits():
    """The largest frame a 32-token line can produce fits MAX_FRAME_SIZE."""
    line = "CFG-USB" + " 1" * 6 + " x" * (MAX_TOKENS - 7)
    n = compile_into(line, bytearray(MAX_FRAME_SIZE))
    assert 0 < n <= MAX_FRAME_SIZE


def test_errors_are_value_errors():
    """Callers that catch ValueError also catch compile failures."""
    assert issubclass(CommandError, ValueError)
