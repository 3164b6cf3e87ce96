"""
Execution hook system.

The engine awaits ExecutionHook.on_step() after every executed instruction,
so a hook can pace execution (an interactive debugger waiting on a human)
or abandon the run by returning StepSignal.CANCEL. DefaultHook is a no-op.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, Mapping, Optional

if TYPE_CHECKING:
    from evmstep.common.types import ExecutionContext
    from evmstep.vm.evm import ExecutionResult
    from evmstep.vm.memory import MemoryWrite


class StepSignal(enum.Enum):
    CONTINUE = "continue"
    CANCEL = "cancel"


@dataclass(frozen=True)
class Step:
    """State observed after one instruction.

    pc is the offset of the next instruction to decode. stack is ordered
    bottom to top. memory and storage hold the written entries: private
    copies when the hook sets copies_state, otherwise read-only views of
    the live run state that are only valid until on_step returns. writes
    lists the memory writes made by this instruction.
    """

    pc: int
    opcode: Optional[int]
    mnemonic: str
    gas_used: int
    stack: tuple[int, ...]
    memory: Mapping[int, int]
    storage: Mapping[int, int]
    writes: tuple[MemoryWrite, ...] = ()
    halted: bool = False


class ExecutionHook:
    """Base hook interface. Override methods to observe execution."""

    # Whether Step.memory and Step.storage are copied for this hook.
    copies_state = True

    def before_execution(self, code: bytes, context: ExecutionContext) -> None:
        """Called before the first instruction is fetched."""
        pass

    def after_execution(self, result: ExecutionResult) -> None:
        """Called when the run halts normally (return or revert)."""
        pass

    async def on_step(self, step: Step) -> Optional[StepSignal]:
        """Called after each instruction; the engine waits for it to finish."""
        return None


class DefaultHook(ExecutionHook):
    """Default hook: every method is a no-op."""

    copies_state = False


class CallbackHook(ExecutionHook):
    """Adapt a coroutine function `fn(step)` into a hook."""

    def __init__(
        self,
        fn: Callable[[Step], Awaitable[Optional[StepSignal]]],
        copies_state: bool = True,
    ) -> None:
        self.fn = fn
        self.copies_state = copies_state

    async def on_step(self, step: Step) -> Optional[StepSignal]:
        return await self.fn(step)


class RecordingHook(ExecutionHook):
    """Keep every observed step, e.g. for tests or post-mortem traces."""

    def __init__(self) -> None:
        self.steps: list[Step] = []
        self.result: Optional[ExecutionResult] = None

    async def on_step(self, step: Step) -> Optional[StepSignal]:
        self.steps.append(step)
        return None

    def after_execution(self, result: ExecutionResult) -> None:
        self.result = result
