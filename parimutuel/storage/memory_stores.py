from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from parimutuel.errors import DuplicateBet, DuplicatePool, PoolNotFound
from parimutuel.persistence.interfaces import RecordStore
from parimutuel.types import Bet, Pool

_MISSING = object()

# Pools share a fixed set of locks, so lookups of unknown ids allocate nothing.
LOCK_STRIPES = 64


class InMemoryRecordStore(RecordStore):
    """Process-local record arena keyed by pool id and (pool id, bettor).

    Each pool id maps onto one of `LOCK_STRIPES` re-entrant locks. Writes made
    inside `atomic()` are journaled, and the journal is replayed backwards if
    the block raises, so a failed operation leaves no trace. Writes outside
    `atomic()` are applied immediately.
    """

    def __init__(self) -> None:
        self._pools: dict[int, Pool] = {}
        self._bets: dict[tuple[int, str], Bet] = {}
        self._escrow: dict[int, int] = {}
        self._locks: tuple[threading.RLock, ...] = tuple(threading.RLock() for _ in range(LOCK_STRIPES))
        self._local = threading.local()

    def _lock_for(self, pool_id: int) -> threading.RLock:
        return self._locks[hash(pool_id) % LOCK_STRIPES]

    def _journal(self) -> Optional[list[Callable[[], None]]]:
        return getattr(self._local, "journal", None)

    def _record_previous(self, table: dict[Any, Any], key: Any) -> None:
        journal = self._journal()
        if journal is None:
            return
        previous = table.get(key, _MISSING)

        def undo() -> None:
            if previous is _MISSING:
                table.pop(key, None)
            else:
                table[key] = previous

        journal.append(undo)

    @contextmanager
    def atomic(self, pool_id: int) -> Iterator[None]:
        lock = self._lock_for(pool_id)
        with lock:
            outermost = self._journal() is None
            if outermost:
                self._local.journal = []
            try:
                yield
            except BaseException:
                if outermost:
                    for undo in reversed(self._local.journal):
                        undo()
                raise
            finally:
                if outermost:
                    self._local.journal = None

    # ---- pools

    def load_pool(self, *, pool_id: int) -> Optional[Pool]:
        return self._pools.get(pool_id)

    def insert_pool(self, *, pool: Pool) -> None:
        if pool.pool_id in self._pools:
            raise DuplicatePool(f"Pool {pool.pool_id} already exists")
        self._record_previous(self._pools, pool.pool_id)
        self._record_previous(self._escrow, pool.pool_id)
        self._pools[pool.pool_id] = pool
        self._escrow[pool.pool_id] = 0

    def save_pool(self, *, pool: Pool) -> None:
        if pool.pool_id not in self._pools:
            raise PoolNotFound(f"Pool {pool.pool_id} not found")
        self._record_previous(self._pools, pool.pool_id)
        self._pools[pool.pool_id] = pool

    # ---- bets

    def load_bet(self, *, pool_id: int, bettor: str) -> Optional[Bet]:
        return self._bets.get((pool_id, bettor))

    def insert_bet(self, *, bet: Bet) -> None:
        key = (bet.pool_id, bet.bettor)
        if key in self._bets:
            raise DuplicateBet(f"{bet.bettor} already has a bet on pool {bet.pool_id}")
        self._record_previous(self._bets, key)
        self._bets[key] = bet

    def save_bet(self, *, bet: Bet) -> None:
        key = (bet.pool_id, bet.bettor)
        self._record_previous(self._bets, key)
        self._bets[key] = bet

    # ---- escrow

    def load_escrow_balance(self, *, pool_id: int) -> int:
        return self._escrow.get(pool_id, 0)

    def save_escrow_balance(self, *, pool_id: int, balance: int) -> None:
        self._record_previous(self._escrow, pool_id)
        self._escrow[pool_id] = balance

    def ping(self) -> bool:
        return True
