"""
evmstep: step-by-step bytecode interpreter.

Entry point for the command-line driver:
  1. Parse CLI arguments
  2. Load bytecode and the execution context
  3. Optionally print the disassembly and exit
  4. Run the bytecode, tracing each step if requested
  5. Report output, gas and final storage (exit 1 on fault, 2 on revert)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

from evmstep.common.config import DEFAULT_MEMORY_LIMIT, VMConfig
from evmstep.common.hexutil import bytes_to_hex, hex_to_bytes
from evmstep.common.types import ExecutionContext
from evmstep.vm.catalog import disassemble
from evmstep.vm.evm import ExecutionResult, run
from evmstep.vm.hooks import ExecutionHook, Step, StepSignal
from evmstep.vm.memory import VmError


logger = logging.getLogger("evmstep")


# ---------------------------------------------------------------------------
# Tracing hook
# ---------------------------------------------------------------------------

class TraceHook(ExecutionHook):
    """Print every step, optionally pausing between steps."""

    copies_state = False

    def __init__(self, delay: float = 0.0, out=None) -> None:
        self.delay = delay
        self.out = out or sys.stdout

    async def on_step(self, step: Step) -> Optional[StepSignal]:
        stack = " ".join(f"{v:x}" for v in step.stack)
        print(
            f"{step.pc:>5}  {step.mnemonic or '<end>':<14} gas={step.gas_used:<8} [{stack}]",
            file=self.out,
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        return None


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="evmstep",
        description="Step-by-step EVM bytecode interpreter",
    )
    parser.add_argument(
        "code",
        nargs="?",
        default=None,
        help="Hex-encoded bytecode (0x prefix and whitespace allowed)",
    )
    parser.add_argument(
        "--code-file",
        type=str,
        default=None,
        help="Path to a file containing hex-encoded bytecode",
    )
    parser.add_argument(
        "--calldata",
        type=str,
        default=None,
        help="Hex-encoded message data (overrides the context file)",
    )
    parser.add_argument(
        "--context",
        type=str,
        default=None,
        help="Path to a JSON execution context (account, message, block...)",
    )
    parser.add_argument(
        "--gas-limit",
        type=int,
        default=None,
        help="Fault with OutOfGas beyond this much gas (default: unlimited)",
    )
    parser.add_argument(
        "--validate-jumpdests",
        action="store_true",
        help="Fault on jumps that do not land on a JUMPDEST",
    )
    parser.add_argument(
        "--memory-limit",
        type=int,
        default=DEFAULT_MEMORY_LIMIT,
        help=f"Highest addressable memory offset (default: {DEFAULT_MEMORY_LIMIT})",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Print pc, mnemonic, gas and stack after every step",
    )
    parser.add_argument(
        "--step-delay",
        type=float,
        default=0.0,
        help="Seconds to pause after each traced step (default: 0)",
    )
    parser.add_argument(
        "--disassemble",
        action="store_true",
        help="Print the instruction listing and exit",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    return parser


def load_code(args: argparse.Namespace) -> bytes:
    if args.code_file:
        return hex_to_bytes(Path(args.code_file).read_text())
    if args.code:
        return hex_to_bytes(args.code)
    raise ValueError("No bytecode given (pass CODE or --code-file)")


def load_context(args: argparse.Namespace) -> ExecutionContext:
    context = ExecutionContext()
    if args.context:
        with open(args.context) as f:
            context = ExecutionContext.from_json(json.load(f))
        logger.info("Loaded execution context from %s", args.context)
    if args.calldata is not None:
        message = replace(context.message, data=hex_to_bytes(args.calldata))
        context = replace(context, message=message)
    return context


def report(result: ExecutionResult) -> None:
    status = "REVERT" if result.reverted else "RETURN"
    print(f"status:   {status}")
    print(f"output:   {bytes_to_hex(result.output, prefix=True)}")
    print(f"gas used: {result.gas_used}")
    print(f"steps:    {result.steps}")
    for key in sorted(result.storage):
        print(f"storage:  0x{key:x} = 0x{result.storage[key]:x}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        code = load_code(args)
        context = load_context(args)
    except (OSError, ValueError) as e:
        logger.error("%s", e)
        sys.exit(1)

    if args.disassemble:
        for inst in disassemble(code):
            print(inst)
        return

    config = VMConfig(
        gas_limit=args.gas_limit,
        validate_jumpdests=args.validate_jumpdests,
        memory_limit=args.memory_limit,
    )
    hook = TraceHook(delay=args.step_delay) if args.trace else None

    try:
        result = asyncio.run(run(code, context, hook, config=config))
    except VmError as e:
        print(f"fault:    {type(e).__name__}: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted")
        sys.exit(130)

    report(result)
    if result.reverted:
        sys.exit(2)


if __name__ == "__main__":
    main()
