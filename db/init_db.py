#!/usr/bin/env python3
"""Initialize the ledger database schema.

Creates the pools, bets, escrow_balances and ledger_events tables in the
database pointed to by DATABASE_URL. Existing tables are left untouched.

Usage:
  python -m db.init_db

Requirements:
  - DATABASE_URL must be set
"""

from __future__ import annotations

import os

from sqlalchemy import inspect

from parimutuel.storage.postgres.config import PostgresConfig
from parimutuel.storage.postgres.models import Base
from parimutuel.storage.postgres.stores import PostgresStores


def main() -> int:
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise SystemExit("DATABASE_URL is not set")

    stores = PostgresStores(config=PostgresConfig(database_url=database_url))
    stores.create_schema()

    present = set(inspect(stores._get_engine()).get_table_names())  # noqa: SLF001
    missing = sorted(set(Base.metadata.tables) - present)
    if missing:
        raise SystemExit(f"Schema incomplete, missing tables: {', '.join(missing)}")

    print(f"Database schema applied ({len(Base.metadata.tables)} tables)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
