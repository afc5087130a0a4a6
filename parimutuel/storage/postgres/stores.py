from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Sequence, TypeVar

from sqlalchemy import create_engine, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import FlushError

from parimutuel.errors import DuplicateBet, DuplicatePool, PoolNotFound
from parimutuel.events.audit import LedgerEvent
from parimutuel.persistence.interfaces import EventSink, RecordStore
from parimutuel.storage.postgres.config import PostgresConfig
from parimutuel.storage.postgres.models import Base, BetRow, EscrowRow, LedgerEventRow, PoolRow
from parimutuel.types import Bet, Pool, Resolution, Side

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _pool_from_row(row: PoolRow) -> Pool:
    return Pool(
        pool_id=int(row.pool_id),
        owner=row.owner,
        fee_recipient=row.fee_recipient,
        total_amount_a=int(row.total_amount_a),
        total_amount_b=int(row.total_amount_b),
        total_bets_a=int(row.total_bets_a),
        total_bets_b=int(row.total_bets_b),
        resolution=Resolution(row.resolution),
        resolved=bool(row.resolved),
        fee_percent=int(row.fee_percent),
    )


def _bet_from_row(row: BetRow) -> Bet:
    return Bet(
        pool_id=int(row.pool_id),
        bettor=row.bettor,
        amount=int(row.amount),
        side=Side(row.side),
        claimed=bool(row.claimed),
    )


class PostgresStores(RecordStore, EventSink):
    """SQL-backed record store and event log.

    Targets PostgreSQL; any SQLAlchemy dialect works for single-process use
    (row locks are skipped by dialects without `FOR UPDATE`, e.g. SQLite).

    `atomic(pool_id)` opens one session transaction per thread and locks the
    pool row, so concurrent operations on one pool serialize in the database.
    Store calls made outside `atomic()` run in their own short transaction.
    """

    def __init__(self, *, config: PostgresConfig, engine: Engine | None = None) -> None:
        self._config = config
        self._engine = engine
        self._local = threading.local()

    def _get_engine(self) -> Engine:
        if self._engine is None:
            # Do not log the URL (it may contain secrets).
            self._engine = create_engine(
                self._config.database_url,
                echo=self._config.echo,
                pool_pre_ping=self._config.pool_pre_ping,
            )
        return self._engine

    def create_schema(self) -> None:
        """Create all ledger tables that do not exist yet."""
        Base.metadata.create_all(self._get_engine())

    def _active_session(self) -> Optional[Session]:
        return getattr(self._local, "session", None)

    def _run(self, fn: Callable[[Session], T]) -> T:
        session = self._active_session()
        if session is not None:
            return fn(session)
        with Session(self._get_engine(), expire_on_commit=False) as session, session.begin():
            return fn(session)

    def _lock_pool(self, session: Session, pool_id: int) -> None:
        session.execute(select(PoolRow.pool_id).where(PoolRow.pool_id == pool_id).with_for_update())

    @contextmanager
    def atomic(self, pool_id: int) -> Iterator[None]:
        active = self._active_session()
        if active is not None:
            self._lock_pool(active, pool_id)
            yield
            return

        session = Session(self._get_engine(), expire_on_commit=False)
        self._local.session = session
        try:
            with session.begin():
                self._lock_pool(session, pool_id)
                yield
        finally:
            self._local.session = None
            session.close()

    # ---- pools

    def load_pool(self, *, pool_id: int) -> Optional[Pool]:
        def _load(session: Session) -> Optional[Pool]:
            row = session.get(PoolRow, pool_id)
            return None if row is None else _pool_from_row(row)

        return self._run(_load)

    def insert_pool(self, *, pool: Pool) -> None:
        def _insert(session: Session) -> None:
            session.add(
                PoolRow(
                    pool_id=pool.pool_id,
                    owner=pool.owner,
                    fee_recipient=pool.fee_recipient,
                    total_amount_a=pool.total_amount_a,
                    total_amount_b=pool.total_amount_b,
                    total_bets_a=pool.total_bets_a,
                    total_bets_b=pool.total_bets_b,
                    resolution=pool.resolution.value,
                    resolved=pool.resolved,
                    fee_percent=pool.fee_percent,
                )
            )
            session.add(EscrowRow(pool_id=pool.pool_id, balance=0))
            try:
                session.flush()
            except (IntegrityError, FlushError) as exc:
                raise DuplicatePool(f"Pool {pool.pool_id} already exists") from exc

        self._run(_insert)

    def save_pool(self, *, pool: Pool) -> None:
        def _save(session: Session) -> None:
            row = session.get(PoolRow, pool.pool_id)
            if row is None:
                raise PoolNotFound(f"Pool {pool.pool_id} not found")
            row.owner = pool.owner
            row.fee_recipient = pool.fee_recipient
            row.total_amount_a = pool.total_amount_a
            row.total_amount_b = pool.total_amount_b
            row.total_bets_a = pool.total_bets_a
            row.total_bets_b = pool.total_bets_b
            row.resolution = pool.resolution.value
            row.resolved = pool.resolved
            row.fee_percent = pool.fee_percent
            session.flush()

        self._run(_save)

    # ---- bets

    def load_bet(self, *, pool_id: int, bettor: str) -> Optional[Bet]:
        def _load(session: Session) -> Optional[Bet]:
            row = session.get(BetRow, (pool_id, bettor))
            return None if row is None else _bet_from_row(row)

        return self._run(_load)

    def insert_bet(self, *, bet: Bet) -> None:
        def _insert(session: Session) -> None:
            session.add(
                BetRow(
                    pool_id=bet.pool_id,
                    bettor=bet.bettor,
                    amount=bet.amount,
                    side=bet.side.value,
                    claimed=bet.claimed,
                )
            )
            try:
                session.flush()
            except (IntegrityError, FlushError) as exc:
                raise DuplicateBet(f"{bet.bettor} already has a bet on pool {bet.pool_id}") from exc

        self._run(_insert)

    def save_bet(self, *, bet: Bet) -> None:
        def _save(session: Session) -> None:
            row = session.get(BetRow, (bet.pool_id, bet.bettor))
            if row is None:
                session.add(
                    BetRow(
                        pool_id=bet.pool_id,
                        bettor=bet.bettor,
                        amount=bet.amount,
                        side=bet.side.value,
                        claimed=bet.claimed,
                    )
                )
            else:
                row.claimed = bet.claimed
            session.flush()

        self._run(_save)

    # ---- escrow

    def load_escrow_balance(self, *, pool_id: int) -> int:
        def _load(session: Session) -> int:
            row = session.get(EscrowRow, pool_id)
            return 0 if row is None else int(row.balance)

        return self._run(_load)

    def save_escrow_balance(self, *, pool_id: int, balance: int) -> None:
        def _save(session: Session) -> None:
            row = session.get(EscrowRow, pool_id)
            if row is None:
                session.add(EscrowRow(pool_id=pool_id, balance=balance))
            else:
                row.balance = balance
            session.flush()

        self._run(_save)

    def ping(self) -> bool:
        try:
            with self._get_engine().connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.warning("Database ping failed: %s", exc.__class__.__name__)
            return False
        return True

    # ---- EventSink

    def emit(self, event: LedgerEvent) -> None:
        def _insert(session: Session) -> None:
            session.add(
                LedgerEventRow(
                    pool_id=event.pool_id,
                    event_type=event.event_type,
                    severity=event.severity,
                    message=event.message,
                    context_json=json.dumps(event.context, sort_keys=True, default=str),
                    event_time=event.timestamp,
                )
            )

        self._run(_insert)

    def get_events(self, *, pool_id: int, limit: int = 1000) -> Sequence[LedgerEvent]:
        """List logged events for a pool, oldest first."""

        def _list(session: Session) -> list[LedgerEvent]:
            stmt = (
                select(LedgerEventRow)
                .where(LedgerEventRow.pool_id == pool_id)
                .order_by(LedgerEventRow.id)
                .limit(limit)
            )
            return [
                LedgerEvent.from_dict(
                    {
                        "event_type": row.event_type,
                        "pool_id": int(row.pool_id),
                        "message": row.message,
                        "timestamp": row.event_time,
                        "severity": row.severity,
                        "context": json.loads(row.context_json or "{}"),
                    }
                )
                for row in session.execute(stmt).scalars()
            ]

        return self._run(_list)
