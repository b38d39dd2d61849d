"""Tests for UBX frame building and self-check."""

from ubx_cfg_mcp.protocol.framing import (
    CFG_CLASS,
    OVERHEAD,
    SYNC,
    Frame,
    build_frame,
    parse_frame,
    verify_frame,
)
from ubx_cfg_mcp.utils.checksum import ubx_checksum


def test_build_frame_sync_and_class():
    """Every frame starts with B5 62 06."""
    frame = build_frame(0x8A, b"\x00")
    assert frame[:2] == SYNC
    assert frame[2] == CFG_CLASS
    assert frame[3] == 0x8A


def test_build_frame_length_field():
    """Length is the little-endian payload size."""
    payload = bytes(0x12C)
    frame = build_frame(0x08, payload)
    assert frame[4] == 0x2C
    assert frame[5] == 0x01
    assert len(frame) == OVERHEAD + len(payload)


def test_build_frame_rate():
    """CFG-RATE 1000 1 1 against a hand-computed frame."""
    frame = build_frame(0x08, bytes.fromhex("e8 03 01 00 01 00"))
    assert frame == bytes.fromhex("b5 62 06 08 06 00 e8 03 01 00 01 00 01 39")


def test_build_frame_checksum_trailer():
    """Trailer is the checksum over bytes [2, end-2)."""
    frame = build_frame(0x01, b"\xf0\x00\x01")
    assert (frame[-2], frame[-1]) == ubx_checksum(frame[2:-2])


def test_build_frame_empty_payload():
    """A poll frame has length 0 and 8 bytes total."""
    frame = build_frame(0x08)
    assert len(frame) == OVERHEAD
    assert frame[4:6] == b"\x00\x00"


def test_verify_frame_accepts_built_frame():
    assert verify_frame(build_frame(0x09, b"\x00" * 13))


def test_verify_frame_rejects_bad_checksum():
    """Corrupting the trailer is detected."""
    frame = bytearray(build_frame(0x8A, b"\x00\x01\x00\x00"))
    frame[-1] ^= 0xFF
    assert not verify_frame(bytes(frame))


def test_verify_frame_rejects_bad_sync():
    frame = bytearray(build_frame(0x8A, b"\x00"))
    frame[0] = 0xB6
    assert not verify_frame(bytes(frame))


def test_verify_frame_rejects_truncated():
    """Length field must match the actual size."""
    frame = build_frame(0x8A, b"\x00\x01\x00\x00")
    assert not verify_frame(frame[:-1])
    assert not verify_frame(b"\xb5\x62")


def test_parse_frame_fields():
    """A built frame splits back into class, id and payload."""
    parsed = parse_frame(build_frame(0x8B, b"\x00\x00\x00\x00"))
    assert parsed == Frame(msg_class=0x06, msg_id=0x8B, payload=b"\x00\x00\x00\x00")


def test_parse_frame_invalid():
    assert parse_frame(b"\x00" * 8) is None


def test_frame_repr():
    """Frame repr should be readable."""
    r = repr(Frame(msg_class=0x06, msg_id=0x8A, payload=b"\x01"))
    assert "0x06" in r
    assert "0x8A" in r
