"""
Opcode handlers and the dispatch table.

Each handler takes a CallFrame and the AccountRegistry, updates the frame
and advances frame.pc. Dynamic costs are added with frame.charge(); the
flat cost lives next to the handler in OPCODE_TABLE.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from evmstep.common.crypto import sha3_256_int
from evmstep.common.hexutil import bytes_to_int
from evmstep.vm import arith
from evmstep.vm.catalog import OPCODES, Op
from evmstep.vm.memory import (
    InvalidJumpDest,
    InvalidOpcode,
    ReturnData,
    Revert,
    StopExecution,
    UnsupportedOpcode,
    VmError,
)
from evmstep.vm.gas import (
    G_BALANCE,
    G_BASE,
    G_BLOCKHASH,
    G_EXP,
    G_EXTCODE,
    G_EXTCODEHASH,
    G_HIGH,
    G_JUMPDEST,
    G_LOW,
    G_MID,
    G_SHA3,
    G_SHA3_BYTE,
    G_SLOAD,
    G_VERY_LOW,
    G_ZERO,
    copy_gas,
    sstore_gas,
)

if TYPE_CHECKING:
    from evmstep.vm.accounts import AccountRegistry
    from evmstep.vm.call_frame import CallFrame

Handler = Callable[["CallFrame", "AccountRegistry"], None]


# ---------------------------------------------------------------------------
# Operator factories (top of stack is the first operand)
# ---------------------------------------------------------------------------

def _unary(fn: Callable[[int], int]) -> Handler:
    def op_unary(frame, env):
        frame.stack.push(fn(frame.stack.pop()))
        frame.pc += 1
    return op_unary


def _binary(fn: Callable[[int, int], int]) -> Handler:
    def op_binary(frame, env):
        a, b = frame.stack.pop(), frame.stack.pop()
        frame.stack.push(fn(a, b))
        frame.pc += 1
    return op_binary


def _ternary(fn: Callable[[int, int, int], int]) -> Handler:
    def op_ternary(frame, env):
        a, b, n = frame.stack.pop(), frame.stack.pop(), frame.stack.pop()
        frame.stack.push(fn(a, b, n))
        frame.pc += 1
    return op_ternary


def _copy_to_memory(frame, source: bytes, dest_offset: int, offset: int, size: int) -> None:
    src = source[offset : offset + size] if offset < len(source) else b""
    frame.memory.store(dest_offset, src, size)


# ---------------------------------------------------------------------------
# Opcode handlers
# ---------------------------------------------------------------------------

def op_stop(frame, env):
    raise StopExecution()


# -- SHA3 --

def op_sha3(frame, env):
    offset, size = frame.stack.pop(), frame.stack.pop()
    data = frame.memory.load(offset, size)
    frame.charge(G_SHA3_BYTE * size)
    frame.stack.push(sha3_256_int(data))
    frame.pc += 1


# -- Environment --

def _context_word(read: Callable[["CallFrame"], int]) -> Handler:
    """Handler that pushes a word read off the frame and advances pc."""
    def op_context(frame, env):
        frame.stack.push(read(frame))
        frame.pc += 1
    return op_context


def op_balance(frame, env):
    addr = frame.stack.pop()
    frame.stack.push(env.get_account(addr).balance)
    frame.pc += 1


def op_calldataload(frame, env):
    offset = frame.stack.pop()
    data = frame.context.message.data
    chunk = data[offset : offset + 32] if offset < len(data) else b""
    frame.stack.push(bytes_to_int(chunk.ljust(32, b"\x00")))
    frame.pc += 1


def op_calldatacopy(frame, env):
    dest_offset = frame.stack.pop()
    data_offset = frame.stack.pop()
    size = frame.stack.pop()
    _copy_to_memory(frame, frame.context.message.data, dest_offset, data_offset, size)
    frame.charge(copy_gas(size))
    frame.pc += 1


def op_codecopy(frame, env):
    dest_offset = frame.stack.pop()
    code_offset = frame.stack.pop()
    size = frame.stack.pop()
    _copy_to_memory(frame, frame.code, dest_offset, code_offset, size)
    frame.charge(copy_gas(size))
    frame.pc += 1


def op_extcodesize(frame, env):
    addr = frame.stack.pop()
    frame.stack.push(len(env.get_account(addr).code))
    frame.pc += 1


def op_extcodecopy(frame, env):
    addr = frame.stack.pop()
    dest_offset = frame.stack.pop()
    code_offset = frame.stack.pop()
    size = frame.stack.pop()
    code = env.get_account(addr).code
    _copy_to_memory(frame, code, dest_offset, code_offset, size)
    frame.charge(copy_gas(size))
    frame.pc += 1


def op_returndatacopy(frame, env):
    # No sub-calls, so the return data buffer is always empty.
    frame.stack.pop()
    data_offset = frame.stack.pop()
    size = frame.stack.pop()
    if data_offset + size > 0:
        raise VmError("RETURNDATACOPY out of bounds")
    frame.pc += 1


def op_extcodehash(frame, env):
    addr = frame.stack.pop()
    if not env.account_exists(addr):
        frame.stack.push(0)
    else:
        frame.stack.push(sha3_256_int(env.get_account(addr).code))
    frame.pc += 1


# -- Block info --

def op_blockhash(frame, env):
    # No block history is available.
    frame.stack.pop()
    frame.stack.push(0)
    frame.pc += 1


# -- Stack, Memory, Storage, Flow --

def op_pop(frame, env):
    frame.stack.pop()
    frame.pc += 1


def op_mload(frame, env):
    offset = frame.stack.pop()
    frame.stack.push(frame.memory.load_word(offset))
    frame.pc += 1


def op_mstore(frame, env):
    offset = frame.stack.pop()
    value = frame.stack.pop()
    frame.memory.store_word(offset, value)
    frame.pc += 1


def op_mstore8(frame, env):
    offset = frame.stack.pop()
    value = frame.stack.pop()
    frame.memory.store_byte(offset, value & 0xFF)
    frame.pc += 1


def op_sload(frame, env):
    key = frame.stack.pop()
    frame.stack.push(frame.storage.load(key))
    frame.pc += 1


def op_sstore(frame, env):
    key = frame.stack.pop()
    new_value = frame.stack.pop()
    current = frame.storage.load(key)
    frame.storage.store(key, new_value)
    frame.charge(sstore_gas(current, new_value))
    frame.pc += 1


def _jump_to(frame, dest: int) -> None:
    if frame.config.validate_jumpdests and dest not in frame.valid_jumpdests:
        raise InvalidJumpDest(f"Invalid jump destination: {dest}")
    frame.pc = dest


def op_jump(frame, env):
    _jump_to(frame, frame.stack.pop())


def op_jumpi(frame, env):
    dest = frame.stack.pop()
    cond = frame.stack.pop()
    if cond != 0:
        _jump_to(frame, dest)
    else:
        frame.pc += 1


def op_gas(frame, env):
    remaining = frame.remaining_gas
    if remaining is None:
        raise UnsupportedOpcode("GAS requires a configured gas limit")
    frame.stack.push(max(remaining - G_BASE, 0))
    frame.pc += 1


def op_jumpdest(frame, env):
    frame.pc += 1


# -- PUSH --

def _make_push(n: int) -> Handler:
    def op_push(frame, env):
        data = frame.code[frame.pc + 1 : frame.pc + 1 + n]
        value = bytes_to_int(data.ljust(n, b"\x00"))
        frame.stack.push(value)
        frame.pc += 1 + n
    return op_push


# -- DUP --

def _make_dup(n: int) -> Handler:
    def op_dup(frame, env):
        frame.stack.dup(n)
        frame.pc += 1
    return op_dup


# -- SWAP --

def _make_swap(n: int) -> Handler:
    def op_swap(frame, env):
        frame.stack.swap(n)
        frame.pc += 1
    return op_swap


# -- System --

def op_return(frame, env):
    offset = frame.stack.pop()
    size = frame.stack.pop()
    raise ReturnData(frame.memory.load(offset, size))


def op_revert(frame, env):
    offset = frame.stack.pop()
    size = frame.stack.pop()
    raise Revert(frame.memory.load(offset, size))


def op_invalid(frame, env):
    raise InvalidOpcode("INVALID opcode (0xFE)")


def _make_unsupported(opcode: int) -> Handler:
    mnemonic = OPCODES[opcode].mnemonic

    def op_unsupported(frame, env):
        raise UnsupportedOpcode(f"{mnemonic} (0x{opcode:02x}) is not supported")
    return op_unsupported


# ---------------------------------------------------------------------------
# Opcode table: opcode -> (handler, base_gas_cost)
# ---------------------------------------------------------------------------

OPCODE_TABLE: dict[int, tuple[Handler, int]] = {}

UNSUPPORTED_OPCODES = (
    [Op.LOG0 + i for i in range(5)]
    + [
        Op.CREATE,
        Op.CALL,
        Op.CALLCODE,
        Op.DELEGATECALL,
        Op.CREATE2,
        Op.STATICCALL,
        Op.SELFDESTRUCT,
    ]
)


def _register():
    t = OPCODE_TABLE

    t[Op.STOP] = (op_stop, G_ZERO)
    t[Op.ADD] = (_binary(arith.add), G_VERY_LOW)
    t[Op.MUL] = (_binary(arith.mul), G_LOW)
    t[Op.SUB] = (_binary(arith.sub), G_VERY_LOW)
    t[Op.DIV] = (_binary(arith.div), G_LOW)
    t[Op.SDIV] = (_binary(arith.sdiv), G_LOW)
    t[Op.MOD] = (_binary(arith.mod), G_LOW)
    t[Op.SMOD] = (_binary(arith.smod), G_LOW)
    t[Op.ADDMOD] = (_ternary(arith.addmod), G_MID)
    t[Op.MULMOD] = (_ternary(arith.mulmod), G_MID)
    t[Op.EXP] = (_binary(arith.exp), G_EXP)
    t[Op.SIGNEXTEND] = (_binary(arith.signextend), G_LOW)

    t[Op.LT] = (_binary(arith.lt), G_VERY_LOW)
    t[Op.GT] = (_binary(arith.gt), G_VERY_LOW)
    t[Op.SLT] = (_binary(arith.slt), G_VERY_LOW)
    t[Op.SGT] = (_binary(arith.sgt), G_VERY_LOW)
    t[Op.EQ] = (_binary(arith.eq), G_VERY_LOW)
    t[Op.ISZERO] = (_unary(arith.iszero), G_VERY_LOW)
    t[Op.AND] = (_binary(arith.and_), G_VERY_LOW)
    t[Op.OR] = (_binary(arith.or_), G_VERY_LOW)
    t[Op.XOR] = (_binary(arith.xor), G_VERY_LOW)
    t[Op.NOT] = (_unary(arith.not_), G_VERY_LOW)
    t[Op.BYTE] = (_binary(arith.byte), G_VERY_LOW)
    t[Op.SHL] = (_binary(arith.shl), G_VERY_LOW)
    t[Op.SHR] = (_binary(arith.shr), G_VERY_LOW)
    t[Op.SAR] = (_binary(arith.sar), G_VERY_LOW)

    t[Op.SHA3] = (op_sha3, G_SHA3)

    t[Op.ADDRESS] = (_context_word(lambda f: f.context.address), G_BASE)
    t[Op.BALANCE] = (op_balance, G_BALANCE)
    t[Op.ORIGIN] = (_context_word(lambda f: f.context.transaction.origin), G_BASE)
    t[Op.CALLER] = (_context_word(lambda f: f.context.message.caller), G_BASE)
    t[Op.CALLVALUE] = (_context_word(lambda f: f.context.message.value), G_BASE)
    t[Op.CALLDATALOAD] = (op_calldataload, G_VERY_LOW)
    t[Op.CALLDATASIZE] = (_context_word(lambda f: len(f.context.message.data)), G_BASE)
    t[Op.CALLDATACOPY] = (op_calldatacopy, G_BASE)
    t[Op.CODESIZE] = (_context_word(lambda f: len(f.code)), G_BASE)
    t[Op.CODECOPY] = (op_codecopy, G_BASE)
    t[Op.GASPRICE] = (_context_word(lambda f: f.context.transaction.gas_price), G_BASE)
    t[Op.EXTCODESIZE] = (op_extcodesize, G_EXTCODE)
    t[Op.EXTCODECOPY] = (op_extcodecopy, G_EXTCODE)
    t[Op.RETURNDATASIZE] = (_context_word(lambda f: 0), G_BASE)
    t[Op.RETURNDATACOPY] = (op_returndatacopy, G_BASE)
    t[Op.EXTCODEHASH] = (op_extcodehash, G_EXTCODEHASH)

    t[Op.BLOCKHASH] = (op_blockhash, G_BLOCKHASH)
    t[Op.COINBASE] = (_context_word(lambda f: f.context.block.coinbase), G_BASE)
    t[Op.TIMESTAMP] = (_context_word(lambda f: f.context.block.timestamp), G_BASE)
    t[Op.NUMBER] = (_context_word(lambda f: f.context.block.number), G_BASE)
    t[Op.DIFFICULTY] = (_context_word(lambda f: f.context.block.difficulty), G_BASE)
    t[Op.GASLIMIT] = (_context_word(lambda f: f.context.block.gas_limit), G_BASE)
    t[Op.CHAINID] = (_context_word(lambda f: f.context.chain_id), G_BASE)
    t[Op.SELFBALANCE] = (_context_word(lambda f: f.context.account.balance), G_BASE)
    t[Op.BASEFEE] = (_context_word(lambda f: f.context.block.base_fee), G_BASE)

    t[Op.POP] = (op_pop, G_BASE)
    t[Op.MLOAD] = (op_mload, G_VERY_LOW)
    t[Op.MSTORE] = (op_mstore, G_VERY_LOW)
    t[Op.MSTORE8] = (op_mstore8, G_VERY_LOW)
    t[Op.SLOAD] = (op_sload, G_SLOAD)
    t[Op.SSTORE] = (op_sstore, G_ZERO)
    t[Op.JUMP] = (op_jump, G_MID)
    t[Op.JUMPI] = (op_jumpi, G_HIGH)
    t[Op.PC] = (_context_word(lambda f: f.pc), G_BASE)
    t[Op.MSIZE] = (_context_word(lambda f: f.memory.size), G_BASE)
    t[Op.GAS] = (op_gas, G_BASE)
    t[Op.JUMPDEST] = (op_jumpdest, G_JUMPDEST)

    t[Op.PUSH0] = (_context_word(lambda f: 0), G_BASE)
    for i in range(1, 33):
        t[Op.PUSH1 + i - 1] = (_make_push(i), G_VERY_LOW)

    for i in range(1, 17):
        t[Op.DUP1 + i - 1] = (_make_dup(i), G_VERY_LOW)

    for i in range(1, 17):
        t[Op.SWAP1 + i - 1] = (_make_swap(i), G_VERY_LOW)

    for opcode in UNSUPPORTED_OPCODES:
        t[opcode] = (_make_unsupported(opcode), G_ZERO)

    t[Op.RETURN] = (op_return, G_ZERO)
    t[Op.REVERT] = (op_revert, G_ZERO)
    t[Op.INVALID] = (op_invalid, G_ZERO)


_register()
