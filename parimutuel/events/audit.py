"""Ledger notification events.

Structured, JSON-friendly records of every committed state change. Events are
observational only: the ledger writes them to a sink and never reads them back.

All timestamps use timezone-aware UTC datetimes.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Mapping


EventType = Literal[
    "pool_initialized",
    "bet_placed",
    "pool_resolved",
    "fee_collected",
    "winnings_claimed",
    "fee_recipient_updated",
    "emergency_withdrawal",
]

Severity = Literal["info", "warning"]


@dataclass
class LedgerEvent:
    """Notification for one committed ledger operation."""

    event_type: EventType
    pool_id: int
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    severity: Severity = "info"
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        result = asdict(self)
        result["timestamp"] = self.timestamp.isoformat()
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LedgerEvent:
        """Rebuild an event from `to_dict()` output or a stored log row.

        Accepts ISO-8601 strings (with or without a trailing 'Z') or datetime
        objects for `timestamp`. Naive timestamps are taken to be UTC.
        """
        fields = dict(data)
        timestamp = fields.pop("timestamp", None)
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        if timestamp is not None:
            if timestamp.tzinfo is None:
                timestamp = timestamp.replace(tzinfo=timezone.utc)
            fields["timestamp"] = timestamp
        fields["context"] = dict(fields.get("context") or {})
        return cls(**fields)


def pool_initialized(pool_id: int, owner: str, fee_recipient: str, fee_percent: int) -> LedgerEvent:
    return LedgerEvent(
        event_type="pool_initialized",
        pool_id=pool_id,
        message=f"Pool {pool_id} initialized by {owner}",
        context={"owner": owner, "fee_recipient": fee_recipient, "fee_percent": fee_percent},
    )


def bet_placed(pool_id: int, bettor: str, side: str, amount: int) -> LedgerEvent:
    return LedgerEvent(
        event_type="bet_placed",
        pool_id=pool_id,
        message=f"Bet placed on pool {pool_id}: {amount} on {side} by {bettor}",
        context={"bettor": bettor, "side": side, "amount": amount},
    )


def pool_resolved(pool_id: int, resolution: str) -> LedgerEvent:
    return LedgerEvent(
        event_type="pool_resolved",
        pool_id=pool_id,
        message=f"Pool {pool_id} resolved: {resolution}",
        context={"resolution": resolution},
    )


def fee_collected(pool_id: int, amount: int, fee_recipient: str) -> LedgerEvent:
    return LedgerEvent(
        event_type="fee_collected",
        pool_id=pool_id,
        message=f"Fee of {amount} collected from pool {pool_id}",
        context={"amount": amount, "fee_recipient": fee_recipient},
    )


def winnings_claimed(pool_id: int, bettor: str, amount: int) -> LedgerEvent:
    return LedgerEvent(
        event_type="winnings_claimed",
        pool_id=pool_id,
        message=f"{bettor} claimed {amount} from pool {pool_id}",
        context={"bettor": bettor, "amount": amount},
    )


def fee_recipient_updated(pool_id: int, previous: str, current: str) -> LedgerEvent:
    return LedgerEvent(
        event_type="fee_recipient_updated",
        pool_id=pool_id,
        message=f"Fee recipient of pool {pool_id} updated to {current}",
        context={"previous": previous, "current": current},
    )


def emergency_withdrawal(pool_id: int, owner: str, amount: int) -> LedgerEvent:
    return LedgerEvent(
        event_type="emergency_withdrawal",
        pool_id=pool_id,
        message=f"Emergency withdrawal of {amount} from pool {pool_id} to {owner}",
        severity="warning",
        context={"owner": owner, "amount": amount},
    )
