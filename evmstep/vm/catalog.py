"""
Opcode catalog: byte -> mnemonic and immediate length.

The table covers all 256 byte values; bytes without an assigned
instruction are marked undefined. disassemble() turns raw bytecode into
an instruction listing for presentation.
"""

from __future__ import annotations

from dataclasses import dataclass


# fmt: off
class Op:
    STOP            = 0x00
    ADD             = 0x01
    MUL             = 0x02
    SUB             = 0x03
    DIV             = 0x04
    SDIV            = 0x05
    MOD             = 0x06
    SMOD            = 0x07
    ADDMOD          = 0x08
    MULMOD          = 0x09
    EXP             = 0x0A
    SIGNEXTEND      = 0x0B
    LT              = 0x10
    GT              = 0x11
    SLT             = 0x12
    SGT             = 0x13
    EQ              = 0x14
    ISZERO          = 0x15
    AND             = 0x16
    OR              = 0x17
    XOR             = 0x18
    NOT             = 0x19
    BYTE            = 0x1A
    SHL             = 0x1B
    SHR             = 0x1C
    SAR             = 0x1D
    SHA3            = 0x20
    ADDRESS         = 0x30
    BALANCE         = 0x31
    ORIGIN          = 0x32
    CALLER          = 0x33
    CALLVALUE       = 0x34
    CALLDATALOAD    = 0x35
    CALLDATASIZE    = 0x36
    CALLDATACOPY    = 0x37
    CODESIZE        = 0x38
    CODECOPY        = 0x39
    GASPRICE        = 0x3A
    EXTCODESIZE     = 0x3B
    EXTCODECOPY     = 0x3C
    RETURNDATASIZE  = 0x3D
    RETURNDATACOPY  = 0x3E
    EXTCODEHASH     = 0x3F
    BLOCKHASH       = 0x40
    COINBASE        = 0x41
    TIMESTAMP       = 0x42
    NUMBER          = 0x43
    DIFFICULTY      = 0x44
    GASLIMIT        = 0x45
    CHAINID         = 0x46
    SELFBALANCE     = 0x47
    BASEFEE         = 0x48
    POP             = 0x50
    MLOAD           = 0x51
    MSTORE          = 0x52
    MSTORE8         = 0x53
    SLOAD           = 0x54
    SSTORE          = 0x55
    JUMP            = 0x56
    JUMPI           = 0x57
    PC              = 0x58
    MSIZE           = 0x59
    GAS             = 0x5A
    JUMPDEST        = 0x5B
    PUSH0           = 0x5F
    PUSH1           = 0x60
    PUSH32          = 0x7F
    DUP1            = 0x80
    DUP16           = 0x8F
    SWAP1           = 0x90
    SWAP16          = 0x9F
    LOG0            = 0xA0
    LOG4            = 0xA4
    CREATE          = 0xF0
    CALL            = 0xF1
    CALLCODE        = 0xF2
    RETURN          = 0xF3
    DELEGATECALL    = 0xF4
    CREATE2         = 0xF5
    STATICCALL      = 0xFA
    REVERT          = 0xFD
    INVALID         = 0xFE
    SELFDESTRUCT    = 0xFF
# fmt: on


@dataclass(frozen=True)
class OpcodeInfo:
    value: int
    mnemonic: str
    immediate_size: int = 0
    defined: bool = True

    @property
    def byte_length(self) -> int:
        return 1 + self.immediate_size


@dataclass(frozen=True)
class Instruction:
    """One decoded instruction: its offset, catalog entry and raw bytes."""

    index: int
    info: OpcodeInfo
    data: bytes

    @property
    def mnemonic(self) -> str:
        return self.info.mnemonic

    @property
    def immediate(self) -> bytes:
        return self.data[1:]

    def __str__(self) -> str:
        if self.immediate:
            return f"{self.index:>5} {self.mnemonic} 0x{self.immediate.hex()}"
        return f"{self.index:>5} {self.mnemonic}"


def _build_catalog() -> tuple[OpcodeInfo, ...]:
    names: dict[int, str] = {
        value: name
        for name, value in vars(Op).items()
        if name.isupper() and isinstance(value, int)
    }
    for i in range(1, 33):
        names[Op.PUSH1 + i - 1] = f"PUSH{i}"
    for i in range(1, 17):
        names[Op.DUP1 + i - 1] = f"DUP{i}"
        names[Op.SWAP1 + i - 1] = f"SWAP{i}"
    for i in range(5):
        names[Op.LOG0 + i] = f"LOG{i}"

    table = []
    for value in range(256):
        if value in names:
            immediate = value - Op.PUSH1 + 1 if Op.PUSH1 <= value <= Op.PUSH32 else 0
            table.append(OpcodeInfo(value, names[value], immediate))
        else:
            table.append(OpcodeInfo(value, f"UNKNOWN_0x{value:02x}", defined=False))
    return tuple(table)


OPCODES: tuple[OpcodeInfo, ...] = _build_catalog()


def lookup(opcode: int) -> OpcodeInfo:
    return OPCODES[opcode]


def disassemble(code: bytes) -> list[Instruction]:
    """Split bytecode into instructions; a truncated PUSH keeps its partial data."""
    instructions = []
    i = 0
    while i < len(code):
        info = OPCODES[code[i]]
        instructions.append(Instruction(i, info, code[i : i + info.byte_length]))
        i += info.byte_length
    return instructions


def valid_jumpdests(code: bytes) -> set[int]:
    """Offsets of JUMPDEST bytes that are not inside PUSH immediates."""
    return {
        inst.index for inst in disassemble(code) if inst.info.value == Op.JUMPDEST
    }
