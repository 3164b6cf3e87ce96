"""
Cryptographic utilities.

- SHA3-256 hashing (SHA3 opcode, EXTCODEHASH, contract address derivation)
"""

from __future__ import annotations

from Crypto.Hash import SHA3_256

from evmstep.common.hexutil import bytes_to_int


def sha3_256(data: bytes) -> bytes:
    """Compute FIPS-202 SHA3-256 (NOT Keccak-256)."""
    h = SHA3_256.new()
    h.update(data)
    return h.digest()


def sha3_256_int(data: bytes) -> int:
    """SHA3-256 digest interpreted as a big-endian 256-bit word."""
    return bytes_to_int(sha3_256(data))
