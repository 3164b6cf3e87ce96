"""
VM main execution loop.

run() is the fetch-decode-execute loop. It owns one CallFrame per call and
awaits the hook after every instruction, so a driver can pace or cancel
execution. deploy() and execute_call() wrap run() with the account
registry bookkeeping a driver needs (address derivation, code install,
storage commit).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from evmstep.common.config import DEFAULT_CONFIG, VMConfig
from evmstep.common.types import Account, BlockInfo, ExecutionContext, Message, Transaction
from evmstep.vm.accounts import AccountExists, AccountRegistry, create_address
from evmstep.vm.call_frame import CallFrame
from evmstep.vm.catalog import OPCODES
from evmstep.vm.hooks import DefaultHook, ExecutionHook, Step, StepSignal
from evmstep.vm.memory import (
    ControlSignal,
    ExecutionCancelled,
    ReturnData,
    Revert,
    UnknownOpcode,
    VmError,
)
from evmstep.vm.opcodes import OPCODE_TABLE

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    reverted: bool = False
    output: bytes = b""
    gas_used: int = 0
    steps: int = 0
    pc: int = 0
    storage: dict[int, int] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.reverted


def _observe(
    frame: CallFrame, opcode: Optional[int], halted: bool, copy_state: bool
) -> Step:
    if copy_state:
        memory, storage = frame.memory.snapshot(), frame.storage.snapshot()
    else:
        memory, storage = frame.memory.view(), frame.storage.view()
    return Step(
        pc=frame.pc,
        opcode=opcode,
        mnemonic=OPCODES[opcode].mnemonic if opcode is not None else "",
        gas_used=frame.gas_used,
        stack=frame.stack.snapshot(),
        memory=memory,
        storage=storage,
        writes=frame.memory.take_writes(),
        halted=halted,
    )


# ---------------------------------------------------------------------------
# Main execution loop
# ---------------------------------------------------------------------------

async def run(
    code: bytes,
    context: Optional[ExecutionContext] = None,
    hook: Optional[ExecutionHook] = None,
    *,
    registry: Optional[AccountRegistry] = None,
    config: Optional[VMConfig] = None,
) -> ExecutionResult:
    """Execute bytecode until it halts, reverts or faults.

    Returns an ExecutionResult for STOP / RETURN / REVERT / end of code.
    Faults raise a VmError subclass; the run's Stack, Memory and Storage
    are discarded either way, only result.storage is handed back.
    """
    context = context or ExecutionContext()
    hook = hook or DefaultHook()
    registry = registry if registry is not None else AccountRegistry()
    config = config or DEFAULT_CONFIG

    frame = CallFrame.for_run(bytes(code), context, config)
    initial_storage = frame.storage.snapshot()
    hook.before_execution(frame.code, context)

    halt: Optional[ControlSignal] = None
    steps = 0
    try:
        while frame.pc < len(frame.code):
            opcode = frame.code[frame.pc]
            entry = OPCODE_TABLE.get(opcode)
            if entry is None:
                raise UnknownOpcode(f"Unknown opcode 0x{opcode:02x} at pc={frame.pc}")

            handler, base_gas = entry
            try:
                handler(frame, registry)
            except ControlSignal as stop:
                halt = stop

            cost = frame.commit_gas(base_gas)
            steps += 1
            logger.debug(
                "pc=%d %s gas=%d total=%d depth=%d",
                frame.pc, OPCODES[opcode].mnemonic, cost, frame.gas_used, len(frame.stack),
            )

            step = _observe(frame, opcode, halt is not None, hook.copies_state)
            signal = await hook.on_step(step)
            if halt is not None:
                break
            if signal is StepSignal.CANCEL:
                raise ExecutionCancelled(f"Run cancelled at pc={frame.pc}")
        else:
            # Ran off the end of code: implicit STOP
            await hook.on_step(_observe(frame, None, True, hook.copies_state))

    except VmError as exc:
        logger.warning("Execution faulted at pc=%d: %s", frame.pc, exc)
        raise

    result = ExecutionResult(
        gas_used=frame.gas_used,
        steps=steps,
        pc=frame.pc,
        storage=frame.storage.snapshot(),
    )
    if isinstance(halt, ReturnData):
        result.output = halt.data
    elif isinstance(halt, Revert):
        result.reverted = True
        result.output = halt.data
        result.storage = initial_storage
        logger.warning("Execution reverted at pc=%d (%d byte payload)", frame.pc, len(halt.data))

    logger.info(
        "Execution halted: %s, %d steps, gas used %d",
        "reverted" if result.reverted else "success", steps, result.gas_used,
    )
    hook.after_execution(result)
    return result


# ---------------------------------------------------------------------------
# Registry-level helpers
# ---------------------------------------------------------------------------

async def deploy(
    registry: AccountRegistry,
    sender: int,
    init_code: bytes,
    value: int = 0,
    hook: Optional[ExecutionHook] = None,
    config: Optional[VMConfig] = None,
    block: Optional[BlockInfo] = None,
) -> tuple[int, ExecutionResult]:
    """Run init code and install its output as a new contract's code.

    The address is derived from the sender's current nonce. A missing
    sender is created first, and its nonce is bumped whether or not the
    init code succeeds. On success the account is created with the returned
    code and final storage; on revert nothing is installed. Raises
    AccountExists if the derived address is already taken.
    """
    if not registry.account_exists(sender):
        registry.create_account(sender)
    nonce = registry.get_account(sender).nonce
    address = create_address(sender, nonce)
    registry.increment_nonce(sender)
    if registry.account_exists(address):
        raise AccountExists(f"Contract address 0x{address:x} is already taken")

    context = ExecutionContext(
        account=Account(address=address, balance=value),
        message=Message(caller=sender, value=value),
        transaction=Transaction(origin=sender),
        block=block or BlockInfo(),
    )
    result = await run(init_code, context, hook, registry=registry, config=config)

    if result.success:
        registry.create_account(address, balance=value)
        registry.set_code(address, result.output)
        registry.set_storage(address, result.storage)
        logger.info("Deployed contract 0x%x (%d bytes of code)", address, len(result.output))
    return address, result


async def execute_call(
    registry: AccountRegistry,
    to: int,
    data: bytes = b"",
    caller: int = 0,
    value: int = 0,
    hook: Optional[ExecutionHook] = None,
    config: Optional[VMConfig] = None,
    block: Optional[BlockInfo] = None,
) -> ExecutionResult:
    """Run the code installed at `to` and commit its storage on success."""
    account = registry.get_account(to)
    context = ExecutionContext(
        account=account,
        message=Message(caller=caller, value=value, data=data),
        transaction=Transaction(origin=caller),
        block=block or BlockInfo(),
    )
    result = await run(account.code, context, hook, registry=registry, config=config)
    if result.success and to in registry:
        registry.set_storage(to, result.storage)
    return result
