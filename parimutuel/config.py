"""Ledger configuration.

Settings come from environment variables:
- DATABASE_URL: SQLAlchemy URL; when unset the ledger keeps records in memory
- PARIMUTUEL_FEE_PERCENT: fee for newly created pools (default 5)
- PARIMUTUEL_LOG_LEVEL: logging level name (default INFO)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from parimutuel.types import DEFAULT_FEE_PERCENT


@dataclass(frozen=True)
class LedgerConfig:
    """Ledger configuration.

    `database_url` may contain credentials. Do not log it.
    """

    database_url: Optional[str] = None
    fee_percent: int = DEFAULT_FEE_PERCENT
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not 0 <= self.fee_percent <= 100:
            raise ValueError(f"fee_percent must be between 0 and 100, got {self.fee_percent}")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log level: {self.log_level}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> LedgerConfig:
        env = os.environ if environ is None else environ

        raw_fee = env.get("PARIMUTUEL_FEE_PERCENT", "").strip()
        try:
            fee_percent = int(raw_fee) if raw_fee else DEFAULT_FEE_PERCENT
        except ValueError as exc:
            raise ValueError(f"PARIMUTUEL_FEE_PERCENT must be an integer, got {raw_fee!r}") from exc

        return cls(
            database_url=env.get("DATABASE_URL") or None,
            fee_percent=fee_percent,
            log_level=env.get("PARIMUTUEL_LOG_LEVEL", "INFO").strip() or "INFO",
        )

    @property
    def uses_database(self) -> bool:
        return bool(self.database_url)
