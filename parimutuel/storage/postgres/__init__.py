"""SQL storage for the ledger.

Notes
- We avoid logging connection URLs to prevent accidental secret leakage.
- Tables are defined in `models.py`; `PostgresStores.create_schema()` or
  `python -m db.init_db` creates them.
"""

from .config import PostgresConfig
from .stores import PostgresStores

__all__ = ["PostgresConfig", "PostgresStores"]
