"""
Call Frame: the mutable state of one run.

Owns the program counter, Stack, Memory, Storage and the gas counter.
A frame is created by run() and discarded when the run ends.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from evmstep.common.config import DEFAULT_CONFIG, VMConfig
from evmstep.common.types import ExecutionContext
from evmstep.vm.catalog import valid_jumpdests
from evmstep.vm.memory import Memory, OutOfGas, Stack
from evmstep.vm.storage import Storage


@dataclass
class CallFrame:
    """Execution state for a single run of bytecode."""

    code: bytes = b""
    context: ExecutionContext = field(default_factory=ExecutionContext)
    config: VMConfig = DEFAULT_CONFIG
    pc: int = 0

    # Gas
    gas_used: int = 0
    step_gas: int = 0

    stack: Stack = field(default_factory=Stack)
    memory: Memory = field(default_factory=Memory)
    storage: Storage = field(default_factory=Storage)

    # Valid JUMPDEST positions (lazily computed)
    _valid_jumpdests: Optional[set[int]] = field(default=None, repr=False)

    @classmethod
    def for_run(
        cls, code: bytes, context: ExecutionContext, config: VMConfig
    ) -> CallFrame:
        return cls(
            code=code,
            context=context,
            config=config,
            memory=Memory(limit=config.memory_limit),
            storage=Storage(context.account.storage),
        )

    @property
    def valid_jumpdests(self) -> set[int]:
        if self._valid_jumpdests is None:
            self._valid_jumpdests = valid_jumpdests(self.code)
        return self._valid_jumpdests

    def charge(self, amount: int) -> None:
        """Add a dynamic cost to the instruction being executed."""
        self.step_gas += amount

    def commit_gas(self, base: int) -> int:
        """Charge base + dynamic cost of the finished instruction.

        Returns the cost charged; raises OutOfGas when a limit is configured
        and the running total would exceed it.
        """
        cost = base + self.step_gas
        self.step_gas = 0
        limit = self.config.gas_limit
        if self.config.enforces_gas and self.gas_used + cost > limit:
            raise OutOfGas(
                f"Out of gas: need {cost}, have {limit - self.gas_used}"
            )
        self.gas_used += cost
        return cost

    @property
    def remaining_gas(self) -> Optional[int]:
        if not self.config.enforces_gas:
            return None
        return self.config.gas_limit - self.gas_used
