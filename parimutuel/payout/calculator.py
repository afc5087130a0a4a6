"""Pari-mutuel payout calculation and single-claim handling.

Entitlement = floor(stake * distributable / winning_total), computed from the
totals frozen at resolution. Truncation can leave a few units unclaimed
("rounding dust"); they stay in escrow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from parimutuel.errors import AlreadyClaimed, NotWinner, NoWinningStake, PoolNotResolved
from parimutuel.escrow.escrow import EscrowAccount
from parimutuel.events import audit
from parimutuel.events.audit import LedgerEvent
from parimutuel.fees.model import FeeModel
from parimutuel.persistence.interfaces import RecordStore
from parimutuel.records.bets import BetRecords, coerce_side
from parimutuel.records.pools import PoolRecords
from parimutuel.types import Bet, Pool, Resolution, Side, WinningsEstimate

logger = logging.getLogger(__name__)


def winning_stake(pool: Pool, outcome: Resolution) -> int:
    side = outcome.winning_side
    if side is None:
        raise PoolNotResolved(f"Pool {pool.pool_id} has no winning side yet")
    return pool.total_for(side)


def compute_entitlement(pool: Pool, bet: Bet) -> int:
    """Amount a bet is owed from a resolved pool.

    Raises:
        PoolNotResolved: If the pool is still pending
        NoWinningStake: If nobody staked on the winning side
        NotWinner: If the bet backed the losing side
    """
    if not pool.resolved:
        raise PoolNotResolved(f"Pool {pool.pool_id} is not resolved")

    winning_total = winning_stake(pool, pool.resolution)
    if winning_total == 0:
        raise NoWinningStake(f"Winning side of pool {pool.pool_id} has no stake")
    if bet.side is not pool.resolution.winning_side:
        raise NotWinner(f"Bet by {bet.bettor} on pool {pool.pool_id} backed the losing side")

    split = FeeModel.for_pool(pool).split(pool.total_amount)
    return bet.amount * split.distributable // winning_total


def estimate_winnings(pool: Pool, bet: Bet, assume: Optional[Side | str] = None) -> WinningsEstimate:
    """Preview what a bet returns.

    Uses the pool's resolution when it is final, otherwise the hypothetical
    winning side `assume`. Losing bets report zero winnings and the full stake
    as negative profit.
    """
    if pool.resolved:
        outcome = pool.resolution
    elif assume is not None:
        outcome = Resolution.for_side(coerce_side(assume))
    else:
        raise PoolNotResolved(f"Pool {pool.pool_id} is not resolved; pass a side to assume")

    if bet.side is not outcome.winning_side:
        return WinningsEstimate(is_winner=False, winnings=0, profit=-bet.amount, fee_amount=0)

    winning_total = winning_stake(pool, outcome)
    if winning_total == 0:
        raise NoWinningStake(f"Winning side of pool {pool.pool_id} has no stake")

    split = FeeModel.for_pool(pool).split(pool.total_amount)
    winnings = bet.amount * split.distributable // winning_total
    return WinningsEstimate(
        is_winner=True,
        winnings=winnings,
        profit=winnings - bet.amount,
        fee_amount=split.fee,
    )


@dataclass(frozen=True)
class ClaimResult:
    bet: Bet
    amount: int
    events: tuple[LedgerEvent, ...]


class ClaimHandler:
    def __init__(
        self,
        store: RecordStore,
        pools: PoolRecords,
        bets: BetRecords,
        escrow: EscrowAccount,
    ) -> None:
        self._store = store
        self._pools = pools
        self._bets = bets
        self._escrow = escrow

    def claim(self, pool_id: int, bettor: str) -> ClaimResult:
        """Pay a winning bet its entitlement, exactly once.

        Raises:
            PoolNotFound: If the pool does not exist
            PoolNotResolved: If the pool is still pending
            BetNotFound: If `bettor` has no bet on the pool
            AlreadyClaimed: If the bet was already paid
            NoWinningStake: If nobody staked on the winning side
            NotWinner: If the bet backed the losing side
            InsufficientEscrow: If escrow cannot cover the entitlement
        """
        with self._store.atomic(pool_id):
            pool = self._pools.get(pool_id)
            if not pool.resolved:
                raise PoolNotResolved(f"Pool {pool_id} is not resolved")
            bet = self._bets.get(pool_id, bettor)
            if bet.claimed:
                raise AlreadyClaimed(f"Bet by {bettor} on pool {pool_id} already claimed")

            amount = compute_entitlement(pool, bet)
            claimed = self._bets.mark_claimed(pool_id, bettor)
            self._escrow.payout(pool_id, amount, bettor)

        logger.info("Paid %s to %s from pool %s", amount, bettor, pool_id)
        return ClaimResult(
            bet=claimed,
            amount=amount,
            events=(audit.winnings_claimed(pool_id, bettor, amount),),
        )
