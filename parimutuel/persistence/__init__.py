"""Collaborator boundary.

These protocols define what the ledger needs from its host: a record store
with per-pool atomic read-modify-write, a value-transfer primitive and an
event sink.
"""

from .interfaces import EventSink, RecordStore, ValueTransfer

__all__ = ["EventSink", "RecordStore", "ValueTransfer"]
