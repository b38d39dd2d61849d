"""UBX two-byte checksum (8-bit Fletcher, RFC 1145).

Both accumulators start at zero and wrap at 256. The checksum covers the
class, id, length and payload bytes of a frame, i.e. everything between
the sync characters and the trailer.
"""

from __future__ import annotations


def ubx_checksum(data: bytes) -> tuple[int, int]:
    """Return ``(ck_a, ck_b)`` over ``data``."""
    ck_a = 0
    ck_b = 0
    for byte in data:
        ck_a = (ck_a + byte) & 0xFF
        ck_b = (ck_b + ck_a) & 0xFF
    return ck_a, ck_b
