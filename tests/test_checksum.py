"""Tests for the UBX two-accumulator checksum."""

from ubx_cfg_mcp.utils.checksum import ubx_checksum


def test_checksum_empty():
    """Both accumulators start at zero."""
    assert ubx_checksum(b"") == (0, 0)


def test_checksum_known_value():
    """CFG-VALSET of CFG-TMODE-MODE = 0 (class through payload)."""
    body = bytes.fromhex("06 8a 09 00 00 01 00 00 01 00 03 20 00")
    assert ubx_checksum(body) == (0xBE, 0x7F)


def test_checksum_single_byte():
    """One byte: ck_a is the byte, ck_b equals ck_a."""
    assert ubx_checksum(b"\x06") == (0x06, 0x06)


def test_checksum_wraps_modulo_256():
    """Accumulators wrap at 256."""
    ck_a, ck_b = ubx_checksum(b"\xff\xff")
    assert ck_a == 0xFE
    assert ck_b == (0xFF + 0xFE) & 0xFF


def test_checksum_order_sensitive():
    """ck_b depends on byte order even when ck_a does not."""
    a1, b1 = ubx_checksum(b"\x01\x02")
    a2, b2 = ubx_checksum(b"\x02\x01")
    assert a1 == a2
    assert b1 != b2
