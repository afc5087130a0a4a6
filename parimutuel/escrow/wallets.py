"""In-memory wallet ledger.

Stand-in value-transfer collaborator: tracks spendable balances per identity
and moves value into and out of pool escrow. Deployments that settle through
an external payment rail provide their own `ValueTransfer` instead.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Optional

from parimutuel.errors import InvalidAmount, TransferFailed
from parimutuel.persistence.interfaces import ValueTransfer


@dataclass(frozen=True)
class WalletBalance:
    """Spendable balance of a single identity."""

    identity: str
    available: int
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class WalletTransfer:
    """One movement between a wallet and a pool's escrow."""

    direction: Literal["in", "out"]
    pool_id: int
    identity: str
    amount: int
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class WalletLedger(ValueTransfer):
    """Manages wallet balances for many identities.

    Supports:
    - Funding (on-ramp) and balance queries
    - Collecting stakes into escrow
    - Sending payouts out of escrow

    Thread-safety: all mutations hold one internal lock.
    """

    def __init__(self, initial_balances: Optional[dict[str, int]] = None) -> None:
        """Initialize wallet ledger.

        Args:
            initial_balances: Optional dict of identity -> initial available balance
        """
        self._lock = threading.Lock()
        self._balances: dict[str, WalletBalance] = {}
        self.transfers: list[WalletTransfer] = []
        if initial_balances:
            for identity, amount in initial_balances.items():
                self._balances[identity] = WalletBalance(identity=identity, available=amount)

    def get_balance(self, identity: str) -> WalletBalance:
        """Get balance for an identity (zero if never funded)."""
        with self._lock:
            return self._balances.get(identity) or WalletBalance(identity=identity, available=0)

    def get_available(self, identity: str) -> int:
        return self.get_balance(identity).available

    def fund(self, identity: str, amount: int) -> WalletBalance:
        """Add funds to an identity's wallet.

        Raises:
            InvalidAmount: If amount <= 0
        """
        if amount <= 0:
            raise InvalidAmount("Funding amount must be positive")
        with self._lock:
            return self._credit(identity, amount)

    def collect(self, *, pool_id: int, source: str, amount: int) -> None:
        """Move a stake from `source` into escrow.

        Raises:
            TransferFailed: If the source holds less than `amount`
        """
        if amount <= 0:
            raise InvalidAmount("Transfer amount must be positive")
        with self._lock:
            balance = self._balances.get(source)
            available = balance.available if balance else 0
            if available < amount:
                raise TransferFailed(f"Insufficient wallet balance for {source}: have {available}, need {amount}")
            self._balances[source] = WalletBalance(identity=source, available=available - amount)
            self.transfers.append(WalletTransfer(direction="in", pool_id=pool_id, identity=source, amount=amount))

    def send(self, *, pool_id: int, recipient: str, amount: int) -> None:
        """Move value out of escrow to `recipient`."""
        if amount <= 0:
            raise InvalidAmount("Transfer amount must be positive")
        with self._lock:
            self._credit(recipient, amount)
            self.transfers.append(WalletTransfer(direction="out", pool_id=pool_id, identity=recipient, amount=amount))

    def _credit(self, identity: str, amount: int) -> WalletBalance:
        balance = self._balances.get(identity)
        available = balance.available if balance else 0
        self._balances[identity] = WalletBalance(identity=identity, available=available + amount)
        return self._balances[identity]
