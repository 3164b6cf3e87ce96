"""
Account registry and contract address derivation.

The registry is process-wide state owned by the driver. It is mutated only
between runs (account creation, code installation, storage commits); the
interpreter reads it through get_account() / account_exists().
"""

from __future__ import annotations

import logging

from evmstep.common.crypto import sha3_256_int
from evmstep.common.types import Account

logger = logging.getLogger(__name__)


class AccountNotFound(KeyError):
    pass


class AccountExists(ValueError):
    pass


def create_address(sender: int, nonce: int) -> int:
    """Derive a contract address from the sender and its nonce.

    The address is SHA3-256 over the concatenated lowercase, unpadded hex
    text of both numbers. Different (sender, nonce) pairs can therefore
    collide, e.g. (0x1, 0x23) and (0x12, 0x3) both hash "123".
    """
    text = format(sender, "x") + format(nonce, "x")
    return sha3_256_int(text.encode())


class AccountRegistry:
    """In-memory accounts keyed by integer address."""

    def __init__(self) -> None:
        self._accounts: dict[int, Account] = {}

    def create_account(self, address: int, balance: int = 0) -> Account:
        """Register a fresh account; an existing one is never replaced."""
        if address in self._accounts:
            raise AccountExists(f"Account 0x{address:x} already exists")
        account = Account(address=address, balance=balance)
        self._accounts[address] = account
        logger.info("Created account 0x%x", address)
        return account

    def get_account(self, address: int) -> Account:
        """Return the account, or a zero-valued one if it does not exist."""
        account = self._accounts.get(address)
        if account is None:
            return Account(address=address)
        return account

    def account_exists(self, address: int) -> bool:
        return address in self._accounts

    def _require(self, address: int) -> Account:
        account = self._accounts.get(address)
        if account is None:
            raise AccountNotFound(f"No account at 0x{address:x}")
        return account

    def set_code(self, address: int, code: bytes) -> None:
        self._require(address).code = bytes(code)

    def set_storage(self, address: int, storage: dict[int, int]) -> None:
        """Commit a run's final storage onto the account."""
        self._require(address).storage = dict(storage)

    def set_balance(self, address: int, balance: int) -> None:
        self._require(address).balance = balance

    def increment_nonce(self, address: int) -> int:
        account = self._require(address)
        account.nonce += 1
        return account.nonce

    def __contains__(self, address: int) -> bool:
        return address in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)
