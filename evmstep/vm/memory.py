"""
VM error taxonomy, Stack and Memory implementations.

Stack: 1024-depth, 256-bit (uint256) values.
Memory: sparse, byte-addressable; unwritten bytes read as zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from evmstep.common.config import DEFAULT_MEMORY_LIMIT
from evmstep.common.hexutil import bytes_to_int, int_to_bytes32
from evmstep.vm.arith import UINT256_MAX


class VmError(Exception):
    """Base class for VM execution faults."""
    pass


class StackOverflow(VmError):
    pass


class StackUnderflow(VmError):
    pass


class UnknownOpcode(VmError):
    pass


class InvalidOpcode(VmError):
    """Designated INVALID instruction (0xFE)."""
    pass


class UnsupportedOpcode(VmError):
    """Opcode reserved as an extension point (calls, creates, logs)."""
    pass


class InvalidMemoryRange(VmError):
    pass


class InvalidJumpDest(VmError):
    pass


class OutOfGas(VmError):
    pass


class ExecutionCancelled(VmError):
    """The step hook asked the engine to abandon the run."""
    pass


class ControlSignal(Exception):
    """Raised by terminal handlers, always caught by the run loop."""
    pass


class StopExecution(ControlSignal):
    """STOP opcode: normal halt."""
    pass


class ReturnData(ControlSignal):
    """RETURN opcode."""
    def __init__(self, data: bytes = b""):
        self.data = data
        super().__init__()


class Revert(ControlSignal):
    """REVERT opcode, carries the error payload."""
    def __init__(self, data: bytes = b""):
        self.data = data
        super().__init__()


MAX_STACK_DEPTH = 1024


class Stack:
    """VM stack: max 1024 items, each item is a 256-bit unsigned integer."""

    __slots__ = ("_data",)

    def __init__(self) -> None:
        self._data: list[int] = []

    def push(self, value: int) -> None:
        if len(self._data) >= MAX_STACK_DEPTH:
            raise StackOverflow("Stack overflow (max 1024)")
        self._data.append(value & UINT256_MAX)

    def pop(self) -> int:
        if not self._data:
            raise StackUnderflow("Stack underflow")
        return self._data.pop()

    def peek(self, depth: int = 0) -> int:
        if depth >= len(self._data):
            raise StackUnderflow(f"Stack underflow: peek({depth})")
        return self._data[-(depth + 1)]

    def swap(self, depth: int) -> None:
        """Swap top with item at depth (1-indexed: SWAP1 uses depth=1)."""
        if depth >= len(self._data):
            raise StackUnderflow(f"Stack underflow: swap({depth})")
        idx = -(depth + 1)
        self._data[-1], self._data[idx] = self._data[idx], self._data[-1]

    def dup(self, depth: int) -> None:
        """Duplicate item at depth (1-indexed: DUP1 uses depth=1)."""
        if depth > len(self._data):
            raise StackUnderflow(f"Stack underflow: dup({depth})")
        if len(self._data) >= MAX_STACK_DEPTH:
            raise StackOverflow("Stack overflow on DUP")
        self._data.append(self._data[-depth])

    def snapshot(self) -> tuple[int, ...]:
        """Items bottom to top."""
        return tuple(self._data)

    @property
    def size(self) -> int:
        return len(self._data)

    def __len__(self) -> int:
        return len(self._data)


@dataclass(frozen=True)
class MemoryWrite:
    offset: int
    data: bytes
    length: int


class Memory:
    """VM memory: sparse byte map, every write is recorded."""

    __slots__ = ("_data", "_limit", "_high", "writes")

    def __init__(self, limit: int = DEFAULT_MEMORY_LIMIT) -> None:
        self._data: dict[int, int] = {}
        self._limit = limit
        self._high = 0
        self.writes: list[MemoryWrite] = []

    def _check_range(self, offset: int, size: int) -> None:
        if offset + size > self._limit:
            raise InvalidMemoryRange(
                f"Memory range [{offset}, {offset + size}) exceeds limit {self._limit}"
            )

    def load(self, offset: int, size: int) -> bytes:
        """Read `size` bytes from memory starting at `offset`."""
        if size == 0:
            return b""
        self._check_range(offset, size)
        get = self._data.get
        return bytes(get(i, 0) for i in range(offset, offset + size))

    def load_word(self, offset: int) -> int:
        """Load a 32-byte word as uint256."""
        return bytes_to_int(self.load(offset, 32))

    def store(self, offset: int, data: bytes, size: int | None = None) -> None:
        """Write `size` bytes at offset, zero-padding or truncating `data`."""
        if size is None:
            size = len(data)
        if size == 0:
            return
        self._check_range(offset, size)
        chunk = bytes(data[:size]).ljust(size, b"\x00")
        self._data.update(zip(range(offset, offset + size), chunk))
        self._high = max(self._high, offset + size)
        self.writes.append(MemoryWrite(offset, bytes(data), size))

    def store_word(self, offset: int, value: int) -> None:
        """Store a uint256 as 32 bytes at offset."""
        self.store(offset, int_to_bytes32(value))

    def store_byte(self, offset: int, value: int) -> None:
        """Store a single byte at offset."""
        self.store(offset, bytes([value & 0xFF]))

    @property
    def size(self) -> int:
        """High-water mark rounded up to a 32-byte word."""
        return ((self._high + 31) // 32) * 32

    def snapshot(self) -> dict[int, int]:
        return dict(self._data)

    def view(self) -> Mapping[int, int]:
        """Read-only live view of the written bytes (no copy)."""
        return MappingProxyType(self._data)

    def take_writes(self) -> tuple[MemoryWrite, ...]:
        """Return the writes recorded since the previous call and reset the log."""
        writes = tuple(self.writes)
        self.writes.clear()
        return writes

    def __len__(self) -> int:
        return len(self._data)
