"""Betting pool ledger - central coordinator.

Exposes the public operation set (initialize, bet, resolve, claim, admin and
read-only accessors) on top of the record stores, escrow, resolution engine
and claim handler.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Sequence

from parimutuel.config import LedgerConfig
from parimutuel.errors import DuplicateBet, InvalidAmount, PoolAlreadyResolved, Unauthorized
from parimutuel.escrow.escrow import EscrowAccount
from parimutuel.escrow.wallets import WalletLedger
from parimutuel.events import audit
from parimutuel.events.audit import LedgerEvent
from parimutuel.events.sinks import EventDispatcher, LoggingEventSink
from parimutuel.payout.calculator import ClaimHandler, estimate_winnings
from parimutuel.persistence.interfaces import EventSink, RecordStore, ValueTransfer
from parimutuel.records.bets import BetRecords, coerce_side, validate_amount
from parimutuel.records.pools import PoolRecords
from parimutuel.resolution.engine import ResolutionEngine
from parimutuel.storage.memory_stores import InMemoryRecordStore
from parimutuel.storage.postgres.config import PostgresConfig
from parimutuel.storage.postgres.stores import PostgresStores
from parimutuel.types import (
    DEFAULT_FEE_PERCENT,
    MAX_AMOUNT,
    Bet,
    BetInfo,
    BettorsCount,
    Pool,
    PoolInfo,
    Resolution,
    Side,
    WinningsEstimate,
)

logger = logging.getLogger(__name__)


def _add_stake(pool: Pool, side: Side, amount: int) -> Pool:
    if side is Side.A:
        return replace(
            pool,
            total_amount_a=pool.total_amount_a + amount,
            total_bets_a=pool.total_bets_a + 1,
        )
    if side is Side.B:
        return replace(
            pool,
            total_amount_b=pool.total_amount_b + amount,
            total_bets_b=pool.total_bets_b + 1,
        )
    raise ValueError(f"Unknown side: {side!r}")


class BettingPoolLedger:
    """Pari-mutuel pool ledger.

    Every operation runs inside one `RecordStore.atomic(pool_id)` block and
    either commits all of its writes or none. Events are published only after
    the block commits.

    Thread-safety: safe to share between threads; serialization is per pool
    and provided by the record store.
    """

    def __init__(
        self,
        *,
        store: RecordStore,
        transfer: ValueTransfer,
        sinks: Optional[Sequence[EventSink]] = None,
        fee_percent: int = DEFAULT_FEE_PERCENT,
    ) -> None:
        """Initialize the ledger.

        Args:
            store: Record store holding pools, bets and escrow balances
            transfer: Collaborator that actually moves value
            sinks: Event sinks (notifications are best-effort)
            fee_percent: Fee applied to newly created pools
        """
        self._store = store
        self.pools = PoolRecords(store, default_fee_percent=fee_percent)
        self.bets = BetRecords(store)
        self.escrow = EscrowAccount(store, transfer)
        self._resolution = ResolutionEngine(store, self.pools, self.escrow)
        self._claims = ClaimHandler(store, self.pools, self.bets, self.escrow)
        self._events = EventDispatcher(sinks)

    @classmethod
    def from_config(
        cls,
        config: LedgerConfig,
        *,
        transfer: Optional[ValueTransfer] = None,
        sinks: Optional[Sequence[EventSink]] = None,
    ) -> BettingPoolLedger:
        """Build a ledger from configuration.

        Uses the SQL store (which also logs events) when a database URL is
        configured, the in-memory store otherwise. Without an explicit
        `transfer`, value moves through an in-memory `WalletLedger`.
        """
        event_sinks: list[EventSink] = [LoggingEventSink()]
        store: RecordStore
        if config.uses_database:
            sql_store = PostgresStores(config=PostgresConfig(database_url=config.database_url or ""))
            store = sql_store
            event_sinks.append(sql_store)
        else:
            store = InMemoryRecordStore()
        event_sinks.extend(sinks or [])

        return cls(
            store=store,
            transfer=transfer if transfer is not None else WalletLedger(),
            sinks=event_sinks,
            fee_percent=config.fee_percent,
        )

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def events(self) -> EventDispatcher:
        return self._events

    def _publish(self, events: Sequence[LedgerEvent]) -> None:
        self._events.dispatch(events)

    def _require_owner(self, pool: Pool, caller: str, action: str) -> None:
        if caller != pool.owner:
            logger.warning("Rejected %s on pool %s by non-owner %s", action, pool.pool_id, caller)
            raise Unauthorized(f"Only the owner of pool {pool.pool_id} can {action}")

    # ---- mutating operations

    def initialize_pool(self, pool_id: int, fee_recipient: str, caller: str) -> Pool:
        """Create a pool owned by `caller`.

        Raises:
            DuplicatePool: If the pool id is taken
        """
        pool = self.pools.create(pool_id, owner=caller, fee_recipient=fee_recipient)
        logger.info("Pool %s initialized by %s", pool_id, caller)
        self._publish([audit.pool_initialized(pool_id, caller, fee_recipient, pool.fee_percent)])
        return pool

    def place_bet(self, pool_id: int, side: Side | str, amount: int, caller: str) -> Bet:
        """Stake `amount` on `side` and move it into escrow.

        Raises:
            InvalidAmount: If amount is not positive or overflows the side total
            PoolNotFound: If the pool does not exist
            PoolAlreadyResolved: If the pool is no longer taking bets
            DuplicateBet: If `caller` already bet on this pool
            TransferFailed: If the stake could not be collected
        """
        validate_amount(amount)
        bet_side = coerce_side(side)

        with self._store.atomic(pool_id):
            pool = self.pools.get(pool_id)
            if pool.resolved:
                raise PoolAlreadyResolved(f"Pool {pool_id} is resolved and no longer accepts bets")
            if self.bets.exists(pool_id, caller):
                raise DuplicateBet(f"{caller} already has a bet on pool {pool_id}")
            if pool.total_for(bet_side) + amount > MAX_AMOUNT:
                raise InvalidAmount(f"Bet would overflow the side {bet_side.value} total of pool {pool_id}")

            bet = self.bets.create(pool_id, caller, bet_side, amount)
            self.pools.update(pool_id, lambda current: _add_stake(current, bet_side, amount))
            self.escrow.deposit(pool_id, caller, amount)

        logger.info("Bet placed on pool %s: %s on %s by %s", pool_id, amount, bet_side.value, caller)
        self._publish([audit.bet_placed(pool_id, caller, bet_side.value, amount)])
        return bet

    def resolve_pool(self, pool_id: int, resolution: Resolution | str, caller: str) -> Pool:
        """Declare the winning side and pay the fee.

        Raises:
            PoolNotFound: If the pool does not exist
            Unauthorized: If `caller` is not the owner
            InvalidResolution: If `resolution` is PENDING
            PoolAlreadyResolved: If the pool was already resolved
        """
        result = self._resolution.resolve(pool_id, resolution, caller)
        self._publish(result.events)
        return result.pool

    def claim_winnings(self, pool_id: int, caller: str) -> int:
        """Pay `caller` their entitlement.

        Returns:
            Amount paid
        """
        result = self._claims.claim(pool_id, caller)
        self._publish(result.events)
        return result.amount

    def update_fee_recipient(self, pool_id: int, new_recipient: str, caller: str) -> Pool:
        """Point future fee payouts at `new_recipient`.

        Raises:
            Unauthorized: If `caller` is not the owner
        """
        with self._store.atomic(pool_id):
            pool = self.pools.get(pool_id)
            self._require_owner(pool, caller, "update the fee recipient")
            previous = pool.fee_recipient
            updated = self.pools.update(pool_id, lambda current: replace(current, fee_recipient=new_recipient))

        logger.info("Fee recipient of pool %s changed from %s to %s", pool_id, previous, new_recipient)
        self._publish([audit.fee_recipient_updated(pool_id, previous, new_recipient)])
        return updated

    def emergency_withdraw(self, pool_id: int, caller: str) -> int:
        """Move the whole escrow balance to the owner.

        Bypasses entitlements and does not mark bets claimed, so any unclaimed
        winnings are forfeited. Intended for abandoned pools only.

        Returns:
            Amount withdrawn
        """
        with self._store.atomic(pool_id):
            pool = self.pools.get(pool_id)
            self._require_owner(pool, caller, "withdraw escrow")
            amount = self.escrow.withdraw_all(pool_id, pool.owner)

        logger.warning("Emergency withdrawal of %s from pool %s to owner %s", amount, pool_id, pool.owner)
        self._publish([audit.emergency_withdrawal(pool_id, pool.owner, amount)])
        return amount

    # ---- read-only accessors

    def get_pool_info(self, pool_id: int) -> PoolInfo:
        with self._store.atomic(pool_id):
            return PoolInfo.from_pool(self.pools.get(pool_id))

    def get_bet_info(self, pool_id: int, caller: str) -> BetInfo:
        """Snapshot of the caller's own bet."""
        with self._store.atomic(pool_id):
            bet = self.bets.get(pool_id, caller)
        return BetInfo(amount=bet.amount, side=bet.side, claimed=bet.claimed)

    def get_bettors_count(self, pool_id: int) -> BettorsCount:
        with self._store.atomic(pool_id):
            pool = self.pools.get(pool_id)
        return BettorsCount(count_a=pool.total_bets_a, count_b=pool.total_bets_b)

    def get_contract_balance(self, pool_id: int) -> int:
        """Current escrow balance of a pool."""
        with self._store.atomic(pool_id):
            self.pools.get(pool_id)
            return self.escrow.balance(pool_id)

    def estimate_winnings(self, pool_id: int, caller: str, assume: Optional[Side | str] = None) -> WinningsEstimate:
        """Preview the caller's payout, optionally under a hypothetical winning side."""
        with self._store.atomic(pool_id):
            pool = self.pools.get(pool_id)
            bet = self.bets.get(pool_id, caller)
        return estimate_winnings(pool, bet, coerce_side(assume) if assume is not None else None)
