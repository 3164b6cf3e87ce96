"""
Core VM types: Account, Message, Transaction, BlockInfo, ExecutionContext.

Addresses and all numeric fields are plain integers (256-bit words).
ExecutionContext is immutable for the duration of one run and can be
built from a JSON document via ExecutionContext.from_json().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from evmstep.common.hexutil import hex_to_bytes


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------

@dataclass
class Account:
    address: int = 0
    nonce: int = 0
    balance: int = 0
    code: bytes = b""
    storage: dict[int, int] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Message / Transaction / Block
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Message:
    caller: int = 0
    value: int = 0
    data: bytes = b""


@dataclass(frozen=True)
class Transaction:
    origin: int = 0
    gas_price: int = 0


@dataclass(frozen=True)
class BlockInfo:
    coinbase: int = 0
    timestamp: int = 0
    number: int = 0
    difficulty: int = 0
    gas_limit: int = 0
    base_fee: int = 0


# ---------------------------------------------------------------------------
# Execution context
# ---------------------------------------------------------------------------

def _parse_int(val: Optional[str | int], default: int = 0) -> int:
    if val is None:
        return default
    if isinstance(val, int):
        return val
    return int(val, 0) if val else default


def _parse_bytes(val: Optional[str]) -> bytes:
    if not val:
        return b""
    return hex_to_bytes(val)


def _section(data: dict, key: str) -> dict:
    """Return the object stored under `key`; a missing or null entry is empty."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"\"{key}\" must be an object, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class ExecutionContext:
    """Read-only snapshot consumed by environment-reading opcodes."""

    account: Account = field(default_factory=Account)
    message: Message = field(default_factory=Message)
    transaction: Transaction = field(default_factory=Transaction)
    block: BlockInfo = field(default_factory=BlockInfo)
    chain_id: int = 1

    @property
    def address(self) -> int:
        return self.account.address

    @classmethod
    def from_json(cls, data: dict) -> ExecutionContext:
        """Parse a context document.

        Numbers may be ints or "0x"-prefixed / decimal strings, byte fields
        are hex strings:

            {"account": {"address": "0x10", "balance": 5, "code": "0x6000"},
             "message": {"caller": "0x01", "value": 0, "data": "0x..."},
             "transaction": {"origin": "0x01", "gasPrice": 1},
             "block": {"number": 1, "timestamp": 0, "gasLimit": 30000000},
             "chainId": 1}
        """
        if not isinstance(data, dict):
            raise ValueError(f"Context must be a JSON object, got {type(data).__name__}")
        account_data = _section(data, "account")
        storage = {
            _parse_int(k): _parse_int(v)
            for k, v in _section(account_data, "storage").items()
        }
        account = Account(
            address=_parse_int(account_data.get("address")),
            nonce=_parse_int(account_data.get("nonce")),
            balance=_parse_int(account_data.get("balance")),
            code=_parse_bytes(account_data.get("code")),
            storage=storage,
        )

        msg_data = _section(data, "message")
        message = Message(
            caller=_parse_int(msg_data.get("caller")),
            value=_parse_int(msg_data.get("value")),
            data=_parse_bytes(msg_data.get("data")),
        )

        tx_data = _section(data, "transaction")
        transaction = Transaction(
            origin=_parse_int(tx_data.get("origin")),
            gas_price=_parse_int(tx_data.get("gasPrice")),
        )

        block_data = _section(data, "block")
        block = BlockInfo(
            coinbase=_parse_int(block_data.get("coinbase")),
            timestamp=_parse_int(block_data.get("timestamp")),
            number=_parse_int(block_data.get("number")),
            difficulty=_parse_int(block_data.get("difficulty")),
            gas_limit=_parse_int(block_data.get("gasLimit")),
            base_fee=_parse_int(block_data.get("baseFee")),
        )

        return cls(
            account=account,
            message=message,
            transaction=transaction,
            block=block,
            chain_id=_parse_int(data.get("chainId"), 1),
        )
