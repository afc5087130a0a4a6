"""Event sinks and the dispatcher that fans events out to them."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Sequence

from parimutuel.events.audit import EventType, LedgerEvent

if TYPE_CHECKING:
    from parimutuel.persistence.interfaces import EventSink

logger = logging.getLogger(__name__)


class InMemoryEventSink:
    """Keeps every event in a list. Useful for tests and local tooling."""

    def __init__(self) -> None:
        self.events: list[LedgerEvent] = []

    def emit(self, event: LedgerEvent) -> None:
        self.events.append(event)

    def get_events(
        self,
        event_type: Optional[EventType] = None,
        pool_id: Optional[int] = None,
    ) -> list[LedgerEvent]:
        """Get filtered events."""
        return [
            e
            for e in self.events
            if (event_type is None or e.event_type == event_type) and (pool_id is None or e.pool_id == pool_id)
        ]

    def clear(self) -> None:
        """Clear all events (for testing)."""
        self.events.clear()


class LoggingEventSink:
    """Writes events to the standard logging tree."""

    def __init__(self, logger_name: str = "parimutuel.events") -> None:
        self._logger = logging.getLogger(logger_name)

    def emit(self, event: LedgerEvent) -> None:
        level = logging.WARNING if event.severity == "warning" else logging.INFO
        self._logger.log(level, "[%s] %s", event.event_type, event.message)


class EventDispatcher:
    """Routes each event to every configured sink.

    Delivery is best-effort: a failing sink is logged and skipped, and never
    fails the ledger operation that produced the event.
    """

    def __init__(self, sinks: Optional[Sequence[EventSink]] = None) -> None:
        self._sinks: list[EventSink] = list(sinks or [])

    @property
    def sinks(self) -> tuple[EventSink, ...]:
        return tuple(self._sinks)

    def dispatch(self, events: Sequence[LedgerEvent]) -> dict[str, int]:
        """Deliver events in order.

        Returns:
            Dict mapping sink class names to the number of events delivered
        """
        results: dict[str, int] = {}
        for sink in self._sinks:
            name = type(sink).__name__
            delivered = 0
            for event in events:
                try:
                    sink.emit(event)
                    delivered += 1
                except Exception as exc:
                    logger.error(
                        "Event sink %s failed on %s for pool %s: %s: %s",
                        name,
                        event.event_type,
                        event.pool_id,
                        exc.__class__.__name__,
                        exc,
                    )
            results[name] = results.get(name, 0) + delivered
        return results
