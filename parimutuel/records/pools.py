"""Pool record store.

One `Pool` per pool id. Records are frozen; `update()` replaces the whole
record in a single write, so readers never observe a half-applied change.
"""

from __future__ import annotations

import logging
from typing import Callable

from parimutuel.errors import DuplicatePool, PoolNotFound
from parimutuel.persistence.interfaces import RecordStore
from parimutuel.types import DEFAULT_FEE_PERCENT, Pool, Resolution

logger = logging.getLogger(__name__)

PoolMutator = Callable[[Pool], Pool]

_COUNTERS = ("total_amount_a", "total_amount_b", "total_bets_a", "total_bets_b")


def check_transition(current: Pool, updated: Pool) -> None:
    """Reject a replacement record that breaks the pool lifecycle.

    Raises:
        ValueError: If the identity or fee changes, `resolved` disagrees with
            `resolution`, a resolution is undone or changed, or a total or
            bet count shrinks or moves after resolution
    """
    if updated.pool_id != current.pool_id:
        raise ValueError("Pool mutator must not change pool_id")
    if updated.fee_percent != current.fee_percent:
        raise ValueError("fee_percent is immutable after creation")
    if updated.resolved != (updated.resolution is not Resolution.PENDING):
        raise ValueError("resolved must be set exactly when resolution is not PENDING")
    if current.resolved and updated.resolution is not current.resolution:
        raise ValueError(f"Pool {current.pool_id} is resolved; its resolution is final")

    for name in _COUNTERS:
        before, after = getattr(current, name), getattr(updated, name)
        if after < before:
            raise ValueError(f"{name} must not decrease")
        if current.resolved and after != before:
            raise ValueError(f"{name} is frozen after resolution")


class PoolRecords:
    """Create, fetch and atomically update pool records."""

    def __init__(self, store: RecordStore, *, default_fee_percent: int = DEFAULT_FEE_PERCENT) -> None:
        if not 0 <= default_fee_percent <= 100:
            raise ValueError("default_fee_percent must be between 0 and 100")
        self._store = store
        self._default_fee_percent = default_fee_percent

    def create(self, pool_id: int, owner: str, fee_recipient: str) -> Pool:
        """Create a pending pool with zero totals.

        Raises:
            DuplicatePool: If a record already exists for `pool_id`
        """
        with self._store.atomic(pool_id):
            if self._store.load_pool(pool_id=pool_id) is not None:
                raise DuplicatePool(f"Pool {pool_id} already exists")
            pool = Pool(
                pool_id=pool_id,
                owner=owner,
                fee_recipient=fee_recipient,
                fee_percent=self._default_fee_percent,
            )
            self._store.insert_pool(pool=pool)

        logger.debug("Created pool %s (owner=%s, fee=%s%%)", pool_id, owner, pool.fee_percent)
        return pool

    def get(self, pool_id: int) -> Pool:
        """Fetch a pool.

        Raises:
            PoolNotFound: If no record exists for `pool_id`
        """
        pool = self._store.load_pool(pool_id=pool_id)
        if pool is None:
            raise PoolNotFound(f"Pool {pool_id} not found")
        return pool

    def update(self, pool_id: int, mutator: PoolMutator) -> Pool:
        """Atomic read-modify-write of one pool.

        The mutator receives the current record and returns its replacement.
        If it raises, or its result fails `check_transition`, nothing is
        written.
        """
        with self._store.atomic(pool_id):
            current = self.get(pool_id)
            updated = mutator(current)
            check_transition(current, updated)
            self._store.save_pool(pool=updated)
        return updated
