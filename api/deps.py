"""Shared API state and request dependencies."""

from __future__ import annotations

from typing import Optional

from fastapi import Header

from parimutuel.config import LedgerConfig
from parimutuel.escrow.wallets import WalletLedger
from parimutuel.ledger import BettingPoolLedger
from parimutuel.storage.postgres.stores import PostgresStores

CALLER_HEADER = "X-Caller-Identity"

# Global ledger instance (initialized on first use)
_ledger: BettingPoolLedger | None = None

# Global wallet ledger (in-memory value transfer collaborator)
_wallets: WalletLedger | None = None


def get_wallets() -> WalletLedger:
    """Get or initialize the wallet ledger."""
    global _wallets
    if _wallets is None:
        _wallets = WalletLedger()
    return _wallets


def get_ledger() -> BettingPoolLedger:
    """Get or initialize the betting pool ledger."""
    global _ledger
    if _ledger is None:
        config = LedgerConfig.from_env()
        ledger = BettingPoolLedger.from_config(config, transfer=get_wallets())
        if isinstance(ledger.store, PostgresStores):
            ledger.store.create_schema()
        _ledger = ledger
    return _ledger


def reset_state(ledger: Optional[BettingPoolLedger] = None, wallets: Optional[WalletLedger] = None) -> None:
    """Replace the global ledger and wallets (used by tests and embedding hosts)."""
    global _ledger, _wallets
    _ledger = ledger
    _wallets = wallets


def caller_identity(
    x_caller_identity: str = Header(..., alias=CALLER_HEADER, min_length=1, description="Verified caller identity"),
) -> str:
    """Caller identity as verified by the upstream gateway."""
    return x_caller_identity
