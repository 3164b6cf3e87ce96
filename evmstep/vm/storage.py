"""
Per-account persistent storage: uint256 key -> uint256 value.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from evmstep.vm.arith import UINT256_MAX


class Storage:
    """Storage for one account; unwritten keys read as zero."""

    __slots__ = ("_slots",)

    def __init__(self, initial: Optional[Mapping[int, int]] = None) -> None:
        self._slots: dict[int, int] = {}
        if initial:
            for key, value in initial.items():
                self.store(key, value)

    def load(self, key: int) -> int:
        return self._slots.get(key & UINT256_MAX, 0)

    def store(self, key: int, value: int) -> None:
        self._slots[key & UINT256_MAX] = value & UINT256_MAX

    def snapshot(self) -> dict[int, int]:
        return dict(self._slots)

    def view(self) -> Mapping[int, int]:
        return MappingProxyType(self._slots)

    def __contains__(self, key: int) -> bool:
        return (key & UINT256_MAX) in self._slots

    def __iter__(self) -> Iterator[int]:
        return iter(self._slots)

    def __len__(self) -> int:
        return len(self._slots)
