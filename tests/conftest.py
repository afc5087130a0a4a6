"""Shared test fixtures for pytest.

Provides an in-memory ledger wired to funded wallets and a recording event
sink, used across multiple test files.
"""

from __future__ import annotations

import pytest

from parimutuel.escrow.wallets import WalletLedger
from parimutuel.events.sinks import InMemoryEventSink
from parimutuel.ledger import BettingPoolLedger
from parimutuel.storage.memory_stores import InMemoryRecordStore

OWNER = "owner"
FEE_RECIPIENT = "treasury"
STARTING_BALANCE = 10_000


@pytest.fixture
def wallets() -> WalletLedger:
    """Wallets for three bettors, each holding STARTING_BALANCE."""
    return WalletLedger(
        {
            "alice": STARTING_BALANCE,
            "bob": STARTING_BALANCE,
            "carol": STARTING_BALANCE,
        }
    )


@pytest.fixture
def event_sink() -> InMemoryEventSink:
    return InMemoryEventSink()


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def ledger(store: InMemoryRecordStore, wallets: WalletLedger, event_sink: InMemoryEventSink) -> BettingPoolLedger:
    """Ledger with the default 5% fee, backed by in-memory records."""
    return BettingPoolLedger(store=store, transfer=wallets, sinks=[event_sink])


@pytest.fixture
def pool_id(ledger: BettingPoolLedger) -> int:
    """An initialized, pending pool owned by OWNER."""
    ledger.initialize_pool(1, FEE_RECIPIENT, OWNER)
    return 1
