"""
Interpreter configuration.

Gas-limit enforcement and jump-destination validation are both off by
default; enabling them turns the corresponding gaps into OutOfGas and
InvalidJumpDest faults.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

# Largest memory end offset addressable by MLOAD/MSTORE/copies (exclusive).
DEFAULT_MEMORY_LIMIT = 1 << 20


@dataclass(frozen=True)
class VMConfig:
    gas_limit: Optional[int] = None         # None = meter only, never fault
    validate_jumpdests: bool = False
    memory_limit: int = DEFAULT_MEMORY_LIMIT

    @property
    def enforces_gas(self) -> bool:
        return self.gas_limit is not None


DEFAULT_CONFIG = VMConfig()
