"""
256-bit word arithmetic.

Every function takes unsigned words and returns an unsigned word reduced
modulo 2**256. Signed operators reinterpret their operands as two's
complement first. Division-family operators return 0 for a zero divisor.
"""

from __future__ import annotations

UINT256_MAX = (1 << 256) - 1
UINT256_CEIL = 1 << 256
INT256_MIN = -(1 << 255)


def as_unsigned_256(value: int) -> int:
    """Reduce any integer to the unsigned range [0, 2**256)."""
    return value % UINT256_CEIL


def as_signed_256(value: int) -> int:
    """Reinterpret an integer as two's-complement int256."""
    value = as_unsigned_256(value)
    if value >= (1 << 255):
        return value - UINT256_CEIL
    return value


# -- Arithmetic --

def add(a: int, b: int) -> int:
    return (a + b) % UINT256_CEIL


def sub(a: int, b: int) -> int:
    return (a - b) % UINT256_CEIL


def mul(a: int, b: int) -> int:
    return (a * b) % UINT256_CEIL


def div(a: int, b: int) -> int:
    return a // b if b != 0 else 0


def sdiv(a: int, b: int) -> int:
    if b == 0:
        return 0
    sa, sb = as_signed_256(a), as_signed_256(b)
    if sa == INT256_MIN and sb == -1:
        return 1 << 255  # overflow case
    sign = -1 if (sa < 0) ^ (sb < 0) else 1
    return as_unsigned_256(sign * (abs(sa) // abs(sb)))


def mod(a: int, b: int) -> int:
    return a % b if b != 0 else 0


def smod(a: int, b: int) -> int:
    if b == 0:
        return 0
    sa, sb = as_signed_256(a), as_signed_256(b)
    sign = -1 if sa < 0 else 1
    return as_unsigned_256(sign * (abs(sa) % abs(sb)))


def addmod(a: int, b: int, n: int) -> int:
    return (a + b) % n if n != 0 else 0


def mulmod(a: int, b: int, n: int) -> int:
    return (a * b) % n if n != 0 else 0


def exp(base: int, exponent: int) -> int:
    return pow(base, exponent, UINT256_CEIL)


def signextend(b: int, x: int) -> int:
    if b >= 31:
        return x
    bit = b * 8 + 7
    mask = (1 << bit) - 1
    if x & (1 << bit):
        return x | (UINT256_MAX - mask)
    return x & mask


# -- Comparison --

def lt(a: int, b: int) -> int:
    return 1 if a < b else 0


def gt(a: int, b: int) -> int:
    return 1 if a > b else 0


def slt(a: int, b: int) -> int:
    return 1 if as_signed_256(a) < as_signed_256(b) else 0


def sgt(a: int, b: int) -> int:
    return 1 if as_signed_256(a) > as_signed_256(b) else 0


def eq(a: int, b: int) -> int:
    return 1 if a == b else 0


def iszero(a: int) -> int:
    return 1 if a == 0 else 0


# -- Bitwise --

def and_(a: int, b: int) -> int:
    return a & b


def or_(a: int, b: int) -> int:
    return a | b


def xor(a: int, b: int) -> int:
    return a ^ b


def not_(a: int) -> int:
    return a ^ UINT256_MAX


def byte(i: int, x: int) -> int:
    """Select the i-th most significant byte of x (i >= 32 -> 0)."""
    if i >= 32:
        return 0
    return (x >> (248 - i * 8)) & 0xFF


def shl(shift: int, value: int) -> int:
    if shift >= 256:
        return 0
    return (value << shift) % UINT256_CEIL


def shr(shift: int, value: int) -> int:
    if shift >= 256:
        return 0
    return value >> shift


def sar(shift: int, value: int) -> int:
    signed = as_signed_256(value)
    if shift >= 256:
        return as_unsigned_256(-1 if signed < 0 else 0)
    return as_unsigned_256(signed >> shift)
