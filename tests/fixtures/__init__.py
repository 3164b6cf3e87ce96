"""Test fixtures for interpreter tests."""

from .addresses import (
    ALICE_ADDRESS,
    BOB_ADDRESS,
    COINBASE_ADDRESS,
    CONTRACT_ADDRESS,
)
from .contracts import (
    ADD_BYTECODE,
    CALLDATALOAD_BYTECODE,
    REVERT_BYTECODE,
    STORE_42_RUNTIME,
    bytecode,
    deployer,
    push,
    return_top,
)

__all__ = [
    # Addresses
    "ALICE_ADDRESS",
    "BOB_ADDRESS",
    "COINBASE_ADDRESS",
    "CONTRACT_ADDRESS",
    # Contracts
    "ADD_BYTECODE",
    "CALLDATALOAD_BYTECODE",
    "REVERT_BYTECODE",
    "STORE_42_RUNTIME",
    "bytecode",
    "deployer",
    "push",
    "return_top",
]
