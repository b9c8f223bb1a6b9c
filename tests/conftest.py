"""Shared fixtures for the StarLedger test suite."""

from datetime import datetime, timedelta, timezone

import pytest

from starledger import Ledger, StarRegistry
from starledger.crypto.signatures import Ed25519Wallet


class MutableClock:
    """Deterministic clock that tests can move forward or backward."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return MutableClock(datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def ledger(clock):
    return Ledger(clock=clock)


@pytest.fixture
def registry(ledger):
    return StarRegistry(ledger)


@pytest.fixture
def wallet():
    return Ed25519Wallet()


@pytest.fixture
def other_wallet():
    return Ed25519Wallet()
