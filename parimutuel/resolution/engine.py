"""Resolution engine.

Moves a pool from PENDING to a final outcome and disburses the fee. Winnings
are never pushed to bettors here: each winner claims on demand, which keeps
the work done by one resolution independent of the number of bettors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from parimutuel.errors import InvalidResolution, PoolAlreadyResolved, Unauthorized
from parimutuel.escrow.escrow import EscrowAccount
from parimutuel.events import audit
from parimutuel.events.audit import LedgerEvent
from parimutuel.fees.model import FeeModel
from parimutuel.persistence.interfaces import RecordStore
from parimutuel.records.pools import PoolRecords
from parimutuel.types import FeeSplit, Pool, Resolution

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolutionResult:
    pool: Pool
    fee: FeeSplit
    events: tuple[LedgerEvent, ...]


def coerce_resolution(value: Resolution | str) -> Resolution:
    try:
        return Resolution(value)
    except ValueError as exc:
        raise InvalidResolution(f"Unknown resolution: {value!r}") from exc


class ResolutionEngine:
    def __init__(self, store: RecordStore, pools: PoolRecords, escrow: EscrowAccount) -> None:
        self._store = store
        self._pools = pools
        self._escrow = escrow

    def resolve(self, pool_id: int, resolution: Resolution | str, caller: str) -> ResolutionResult:
        """Finalize a pool's outcome.

        Raises:
            PoolNotFound: If the pool does not exist
            Unauthorized: If `caller` is not the pool owner
            InvalidResolution: If `resolution` is PENDING or unknown
            PoolAlreadyResolved: If the pool was already resolved
        """
        with self._store.atomic(pool_id):
            pool = self._pools.get(pool_id)
            if caller != pool.owner:
                logger.warning("Rejected resolve of pool %s by non-owner %s", pool_id, caller)
                raise Unauthorized(f"Only the owner of pool {pool_id} can resolve it")

            outcome = coerce_resolution(resolution)
            if outcome is Resolution.PENDING:
                raise InvalidResolution("Cannot resolve a pool to PENDING")
            if pool.resolved:
                raise PoolAlreadyResolved(f"Pool {pool_id} is already resolved")

            def _finalize(current: Pool) -> Pool:
                if current.resolved:
                    raise PoolAlreadyResolved(f"Pool {pool_id} is already resolved")
                return replace(current, resolution=outcome, resolved=True)

            resolved = self._pools.update(pool_id, _finalize)

            # Totals are frozen from here on.
            split = FeeModel.for_pool(resolved).split(resolved.total_amount)
            events: list[LedgerEvent] = []
            if split.fee > 0:
                self._escrow.payout(pool_id, split.fee, resolved.fee_recipient)
                events.append(audit.fee_collected(pool_id, split.fee, resolved.fee_recipient))
            events.append(audit.pool_resolved(pool_id, outcome.value))

        logger.info(
            "Resolved pool %s as %s (total=%s, fee=%s, distributable=%s)",
            pool_id,
            outcome.value,
            split.total,
            split.fee,
            split.distributable,
        )
        return ResolutionResult(pool=resolved, fee=split, events=tuple(events))
