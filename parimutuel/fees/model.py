from __future__ import annotations

from dataclasses import dataclass

from parimutuel.types import DEFAULT_FEE_PERCENT, FeeSplit, Pool

PERCENT = 100


@dataclass(frozen=True)
class FeeModel:
    """Fixed-percentage pool fee.

    The fee is taken once from the combined pool and rounded down; the rest is
    what winners share.
    """

    fee_percent: int = DEFAULT_FEE_PERCENT

    def __post_init__(self) -> None:
        if isinstance(self.fee_percent, bool) or not isinstance(self.fee_percent, int):
            raise ValueError("fee_percent must be an integer")
        if not 0 <= self.fee_percent <= PERCENT:
            raise ValueError("fee_percent must be between 0 and 100")

    @classmethod
    def for_pool(cls, pool: Pool) -> FeeModel:
        return cls(fee_percent=pool.fee_percent)

    def fee_for(self, total: int) -> int:
        """Fee owed on a pool total, rounded down."""
        if total < 0:
            raise ValueError("total must not be negative")
        return total * self.fee_percent // PERCENT

    def split(self, total: int) -> FeeSplit:
        """Split a pool total into fee and distributable amount."""
        fee = self.fee_for(total)
        return FeeSplit(total=total, fee=fee, distributable=total - fee)
