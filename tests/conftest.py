"""Pytest configuration and shared fixtures for all tests."""

import pytest

from evmstep.common.types import (
    Account,
    BlockInfo,
    ExecutionContext,
    Message,
    Transaction,
)
from evmstep.vm.accounts import AccountRegistry

from tests.fixtures.addresses import (
    ALICE_ADDRESS,
    BOB_ADDRESS,
    COINBASE_ADDRESS,
    CONTRACT_ADDRESS,
)


@pytest.fixture
def registry():
    """Empty account registry."""
    return AccountRegistry()


@pytest.fixture
def funded_registry():
    """Registry holding Alice (funded) and an empty Bob."""
    reg = AccountRegistry()
    reg.create_account(ALICE_ADDRESS, balance=10**18)
    reg.create_account(BOB_ADDRESS)
    return reg


@pytest.fixture
def context():
    """Context for a contract at CONTRACT_ADDRESS called by Alice."""
    return ExecutionContext(
        account=Account(address=CONTRACT_ADDRESS, balance=1234),
        message=Message(caller=ALICE_ADDRESS, value=7, data=b"\x01\x02\x03"),
        transaction=Transaction(origin=ALICE_ADDRESS, gas_price=3),
        block=BlockInfo(
            coinbase=COINBASE_ADDRESS,
            timestamp=1_700_000_000,
            number=42,
            difficulty=2,
            gas_limit=30_000_000,
            base_fee=9,
        ),
        chain_id=1337,
    )
