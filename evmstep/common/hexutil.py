"""
Byte-level codec helpers used at the VM boundary.

- hex string <-> bytes
- big-endian bytes <-> unsigned integer
"""

from __future__ import annotations

from eth_utils import (
    big_endian_to_int,
    decode_hex,
    encode_hex,
    int_to_big_endian,
    remove_0x_prefix,
)


def hex_to_bytes(value: str) -> bytes:
    """Decode a hex string into bytes.

    Accepts an optional 0x prefix and ignores whitespace, so both
    "0x600560030100" and "60 05 60 03 01 00" decode to the same bytes.
    """
    compact = "".join(value.split())
    if len(remove_0x_prefix(compact)) % 2:
        raise ValueError(f"Odd-length hex string: {value!r}")
    return decode_hex(compact)


def bytes_to_hex(data: bytes, prefix: bool = False) -> str:
    encoded = encode_hex(data)
    return encoded if prefix else encoded[2:]


def bytes_to_int(data: bytes) -> int:
    """Interpret bytes as a big-endian unsigned integer (empty -> 0)."""
    if not data:
        return 0
    return big_endian_to_int(data)


def int_to_bytes(value: int) -> bytes:
    """Minimal big-endian encoding of a non-negative integer."""
    return int_to_big_endian(value)


def int_to_bytes32(value: int) -> bytes:
    """Encode a 256-bit word as exactly 32 big-endian bytes."""
    return (value % (1 << 256)).to_bytes(32, "big")
