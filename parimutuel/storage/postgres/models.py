"""SQLAlchemy models for the ledger tables.

Tables:
- pools
- bets
- escrow_balances
- ledger_events
"""

from __future__ import annotations


from sqlalchemy import BigInteger, Boolean, Column, DateTime, Index, Integer, Text, func
from sqlalchemy.orm import DeclarativeBase

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
_EventId = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class PoolRow(Base):
    """One pari-mutuel pool.

    Table: pools
    """

    __tablename__ = "pools"

    pool_id = Column(BigInteger, primary_key=True, autoincrement=False)
    owner = Column(Text, nullable=False)
    fee_recipient = Column(Text, nullable=False)
    total_amount_a = Column(BigInteger, nullable=False, default=0)
    total_amount_b = Column(BigInteger, nullable=False, default=0)
    total_bets_a = Column(BigInteger, nullable=False, default=0)
    total_bets_b = Column(BigInteger, nullable=False, default=0)
    resolution = Column(Text, nullable=False, default="PENDING")  # PENDING|A|B
    resolved = Column(Boolean, nullable=False, default=False)
    fee_percent = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self) -> str:
        return f"<PoolRow(pool_id={self.pool_id}, resolution={self.resolution})>"


class BetRow(Base):
    """One bettor's stake in a pool.

    Table: bets
    """

    __tablename__ = "bets"

    pool_id = Column(BigInteger, primary_key=True, autoincrement=False)
    bettor = Column(Text, primary_key=True)
    amount = Column(BigInteger, nullable=False)
    side = Column(Text, nullable=False)  # A|B
    claimed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self) -> str:
        return f"<BetRow(pool_id={self.pool_id}, bettor={self.bettor}, side={self.side})>"


class EscrowRow(Base):
    """Tracked escrow balance per pool.

    Table: escrow_balances
    """

    __tablename__ = "escrow_balances"

    pool_id = Column(BigInteger, primary_key=True, autoincrement=False)
    balance = Column(BigInteger, nullable=False, default=0)


class LedgerEventRow(Base):
    """Append-only notification log.

    Table: ledger_events
    """

    __tablename__ = "ledger_events"

    id = Column(_EventId, primary_key=True, autoincrement=True)
    pool_id = Column(BigInteger, nullable=False)
    event_type = Column(Text, nullable=False)
    severity = Column(Text, nullable=False, default="info")
    message = Column(Text, nullable=False)
    context_json = Column(Text, nullable=False, default="{}")
    event_time = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (Index("idx_ledger_events_pool", "pool_id", "event_time"),)

    def __repr__(self) -> str:
        return f"<LedgerEventRow(id={self.id}, pool_id={self.pool_id}, type={self.event_type})>"
