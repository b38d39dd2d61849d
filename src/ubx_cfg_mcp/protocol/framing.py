"""UBX frame builder and self-check.

Frame layout::

    +---------+-------+----+--------+-------------------+----------+
    | Sync    | Class | ID | Length |      Payload      | Checksum |
    | 2 bytes | 1 B   | 1 B| 2 bytes|  variable length  |  2 bytes |
    +---------+-------+----+--------+-------------------+----------+

- Sync: 0xB5 0x62
- Class: 0x06 for every CFG message
- Length: little-endian payload length
- Checksum: ``ck_a, ck_b`` over class, id, length and payload
"""

from __future__ import annotations

from dataclasses import dataclass

from ..utils.checksum import ubx_checksum

SYNC = b"\xB5\x62"
CFG_CLASS = 0x06
HEADER_SIZE = 6   # sync(2) + class(1) + id(1) + length(2)
OVERHEAD = 8      # header + checksum(2)
MAX_PAYLOAD = 0xFFFF


@dataclass(frozen=True)
class Frame:
    """A UBX frame split into its fields."""

    msg_class: int
    msg_id: int
    payload: bytes

    def __repr__(self) -> str:
        return (
            f"Frame(class=0x{self.msg_class:02X}, id=0x{self.msg_id:02X}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'})"
        )


def build_frame(msg_id: int, payload: bytes = b"", msg_class: int = CFG_CLASS) -> bytes:
    """Wrap a payload in sync, header, length and checksum.

    Args:
        msg_id: Message id within the class (the CFG sub-id).
        payload: Encoded message payload.
        msg_class: Message class, ``0x06`` (CFG) by default.

    Returns:
        The complete frame, ``8 + len(payload)`` bytes long.
    """
    if len(payload) > MAX_PAYLOAD:
        raise ValueError(f"Payload of {len(payload)} bytes exceeds {MAX_PAYLOAD}")
    body = bytes([msg_class, msg_id]) + len(payload).to_bytes(2, "little") + payload
    return SYNC + body + bytes(ubx_checksum(body))


def verify_frame(data: bytes) -> bool:
    """Check sync, length field and checksum of a complete frame."""
    if len(data) < OVERHEAD or data[:2] != SYNC:
        return False
    length = int.from_bytes(data[4:6], "little")
    if len(data) != OVERHEAD + length:
        return False
    return ubx_checksum(data[2:-2]) == (data[-2], data[-1])


def parse_frame(data: bytes) -> Frame | None:
    """Split a complete frame into class, id and payload.

    Returns:
        A ``Frame``, or ``None`` if :func:`verify_frame` rejects the data.
    """
    if not verify_frame(data):
        return None
    return Frame(msg_class=data[2], msg_id=data[3], payload=bytes(data[HEADER_SIZE:-2]))
