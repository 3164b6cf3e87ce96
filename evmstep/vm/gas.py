"""
Gas cost schedule.

Flat per-opcode costs plus the few formula-based ones (hashing, copies,
SSTORE). No memory-expansion charge and no refunds.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Base gas costs
# ---------------------------------------------------------------------------

G_ZERO = 0
G_JUMPDEST = 1
G_BASE = 2
G_VERY_LOW = 3
G_LOW = 5
G_MID = 8
G_HIGH = 10
G_EXP = 10
G_BLOCKHASH = 20
G_SHA3 = 30
G_SHA3_BYTE = 6
G_COPY_BYTE = 3
G_SLOAD = 200
G_BALANCE = 400
G_EXTCODEHASH = 400
G_EXTCODE = 700
G_SSET = 20000
G_SRESET = 5000


# ---------------------------------------------------------------------------
# Formula-based costs
# ---------------------------------------------------------------------------

def copy_gas(size: int) -> int:
    """Per-byte charge of the *COPY opcodes (on top of their flat cost)."""
    return G_COPY_BYTE * size


def sstore_gas(current_value: int, new_value: int) -> int:
    """SSTORE cost: a slot going from zero to non-zero is charged G_SSET."""
    if current_value == 0 and new_value != 0:
        return G_SSET
    return G_SRESET
