"""Record store implementations.

`InMemoryRecordStore` keeps everything in process memory; `PostgresStores`
persists through SQLAlchemy. Both implement
`parimutuel.persistence.RecordStore`.
"""

from .memory_stores import InMemoryRecordStore
from .postgres import PostgresConfig, PostgresStores

__all__ = ["InMemoryRecordStore", "PostgresConfig", "PostgresStores"]
