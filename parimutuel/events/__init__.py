"""Ledger notification events and sinks."""

from parimutuel.events.audit import EventType, LedgerEvent
from parimutuel.events.sinks import EventDispatcher, InMemoryEventSink, LoggingEventSink

__all__ = [
    "EventType",
    "LedgerEvent",
    "EventDispatcher",
    "InMemoryEventSink",
    "LoggingEventSink",
]
