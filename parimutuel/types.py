from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# Amounts are stored in signed 64-bit columns.
MAX_AMOUNT = 2**63 - 1

DEFAULT_FEE_PERCENT = 5


class Side(str, Enum):
    """Side of the binary proposition a bet backs."""

    A = "A"
    B = "B"


class Resolution(str, Enum):
    """Outcome of a pool. PENDING until the owner resolves it."""

    PENDING = "PENDING"
    A = "A"
    B = "B"

    @property
    def winning_side(self) -> Side | None:
        if self is Resolution.A:
            return Side.A
        if self is Resolution.B:
            return Side.B
        return None

    @classmethod
    def for_side(cls, side: Side) -> Resolution:
        if side is Side.A:
            return cls.A
        if side is Side.B:
            return cls.B
        raise ValueError(f"Unknown side: {side!r}")


@dataclass(frozen=True)
class Pool:
    pool_id: int
    owner: str
    fee_recipient: str
    total_amount_a: int = 0
    total_amount_b: int = 0
    total_bets_a: int = 0
    total_bets_b: int = 0
    resolution: Resolution = Resolution.PENDING
    resolved: bool = False
    fee_percent: int = DEFAULT_FEE_PERCENT

    @property
    def total_amount(self) -> int:
        return self.total_amount_a + self.total_amount_b

    def total_for(self, side: Side) -> int:
        if side is Side.A:
            return self.total_amount_a
        if side is Side.B:
            return self.total_amount_b
        raise ValueError(f"Unknown side: {side!r}")


@dataclass(frozen=True)
class Bet:
    pool_id: int
    bettor: str
    amount: int
    side: Side
    claimed: bool = False


@dataclass(frozen=True)
class PoolInfo:
    pool_id: int
    owner: str
    fee_recipient: str
    total_amount_a: int
    total_amount_b: int
    total_bets_a: int
    total_bets_b: int
    resolution: Resolution
    resolved: bool
    fee_percent: int

    @classmethod
    def from_pool(cls, pool: Pool) -> PoolInfo:
        return cls(
            pool_id=pool.pool_id,
            owner=pool.owner,
            fee_recipient=pool.fee_recipient,
            total_amount_a=pool.total_amount_a,
            total_amount_b=pool.total_amount_b,
            total_bets_a=pool.total_bets_a,
            total_bets_b=pool.total_bets_b,
            resolution=pool.resolution,
            resolved=pool.resolved,
            fee_percent=pool.fee_percent,
        )


@dataclass(frozen=True)
class BetInfo:
    amount: int
    side: Side
    claimed: bool


@dataclass(frozen=True)
class BettorsCount:
    count_a: int
    count_b: int


@dataclass(frozen=True)
class FeeSplit:
    total: int
    fee: int
    distributable: int


@dataclass(frozen=True)
class WinningsEstimate:
    is_winner: bool
    winnings: int
    profit: int  # negative when the stake is lost
    fee_amount: int
