"""Keyed pool and bet records."""

from .bets import BetRecords, coerce_side, validate_amount
from .pools import PoolMutator, PoolRecords, check_transition

__all__ = ["BetRecords", "PoolMutator", "PoolRecords", "check_transition", "coerce_side", "validate_amount"]
