"""Bet record store.

One `Bet` per (pool id, bettor). A second bet by the same bettor is rejected,
never merged; `claimed` only ever flips from False to True.
"""

from __future__ import annotations

from dataclasses import replace

from parimutuel.errors import AlreadyClaimed, BetNotFound, DuplicateBet, InvalidAmount, InvalidSide
from parimutuel.persistence.interfaces import RecordStore
from parimutuel.types import MAX_AMOUNT, Bet, Side


def coerce_side(value: Side | str) -> Side:
    try:
        return Side(value)
    except ValueError as exc:
        raise InvalidSide(f"Unknown side: {value!r}") from exc


def validate_amount(amount: int) -> None:
    """Reject non-positive amounts and amounts that do not fit storage."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount(f"Amount must be an integer, got {type(amount).__name__}")
    if amount <= 0:
        raise InvalidAmount("Amount must be positive")
    if amount > MAX_AMOUNT:
        raise InvalidAmount(f"Amount exceeds maximum of {MAX_AMOUNT}")


class BetRecords:
    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def create(self, pool_id: int, bettor: str, side: Side, amount: int) -> Bet:
        """Create a bet.

        Raises:
            InvalidAmount: If amount is not a positive integer within limits
            DuplicateBet: If the bettor already has a bet on this pool
        """
        validate_amount(amount)
        with self._store.atomic(pool_id):
            if self._store.load_bet(pool_id=pool_id, bettor=bettor) is not None:
                raise DuplicateBet(f"{bettor} already has a bet on pool {pool_id}")
            bet = Bet(pool_id=pool_id, bettor=bettor, amount=amount, side=coerce_side(side))
            self._store.insert_bet(bet=bet)
        return bet

    def get(self, pool_id: int, bettor: str) -> Bet:
        """Fetch a bet.

        Raises:
            BetNotFound: If the bettor has no bet on this pool
        """
        bet = self._store.load_bet(pool_id=pool_id, bettor=bettor)
        if bet is None:
            raise BetNotFound(f"No bet by {bettor} on pool {pool_id}")
        return bet

    def exists(self, pool_id: int, bettor: str) -> bool:
        return self._store.load_bet(pool_id=pool_id, bettor=bettor) is not None

    def mark_claimed(self, pool_id: int, bettor: str) -> Bet:
        """Flip `claimed` to True.

        Raises:
            BetNotFound: If the bettor has no bet on this pool
            AlreadyClaimed: If the bet was already claimed
        """
        with self._store.atomic(pool_id):
            bet = self.get(pool_id, bettor)
            if bet.claimed:
                raise AlreadyClaimed(f"Bet by {bettor} on pool {pool_id} already claimed")
            claimed = replace(bet, claimed=True)
            self._store.save_bet(bet=claimed)
        return claimed
