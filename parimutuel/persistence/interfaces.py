from __future__ import annotations

from typing import ContextManager, Optional, Protocol

from parimutuel.events.audit import LedgerEvent
from parimutuel.types import Bet, Pool


class RecordStore(Protocol):
    """Keyed, durable storage for pools, bets and per-pool escrow balances.

    All reads and writes for one pool happen inside `atomic(pool_id)`. Blocks on
    the same pool id never interleave, and a block that raises leaves every
    record it touched exactly as it found it.
    """

    def atomic(self, pool_id: int) -> ContextManager[None]:
        """Serialize access to one pool's records and commit or roll back as a unit."""

    def load_pool(self, *, pool_id: int) -> Optional[Pool]:
        """Fetch a pool record, or None if it does not exist."""

    def insert_pool(self, *, pool: Pool) -> None:
        """Persist a new pool record with a zero escrow balance."""

    def save_pool(self, *, pool: Pool) -> None:
        """Overwrite an existing pool record."""

    def load_bet(self, *, pool_id: int, bettor: str) -> Optional[Bet]:
        """Fetch the bet a bettor placed on a pool, or None."""

    def insert_bet(self, *, bet: Bet) -> None:
        """Persist a new bet record."""

    def save_bet(self, *, bet: Bet) -> None:
        """Overwrite an existing bet record."""

    def load_escrow_balance(self, *, pool_id: int) -> int:
        """Tracked escrow balance of a pool (0 if never funded)."""

    def save_escrow_balance(self, *, pool_id: int, balance: int) -> None:
        """Overwrite the tracked escrow balance of a pool."""

    def ping(self) -> bool:
        """Return True if the backing storage is reachable."""


class ValueTransfer(Protocol):
    """Moves value between participants and a pool's escrow."""

    def collect(self, *, pool_id: int, source: str, amount: int) -> None:
        """Move `amount` from `source` into the pool's escrow."""

    def send(self, *, pool_id: int, recipient: str, amount: int) -> None:
        """Move `amount` out of the pool's escrow to `recipient`."""


class EventSink(Protocol):
    def emit(self, event: LedgerEvent) -> None:
        """Record a notification. The ledger never reads these back."""
