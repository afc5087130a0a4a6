"""Ledger error taxonomy.

Every rejection is synchronous and final: the operation that raised it made no
state changes, and resubmitting the same call will fail the same way.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base exception for rejected ledger operations."""

    code = "ledger_error"
    status_code = 400

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message())

    @classmethod
    def default_message(cls) -> str:
        return cls.code.replace("_", " ").capitalize()


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class InvalidAmount(LedgerError):
    code = "invalid_amount"


class InvalidSide(LedgerError):
    code = "invalid_side"


class InvalidResolution(LedgerError):
    code = "invalid_resolution"


# ---------------------------------------------------------------------------
# Record lookup / uniqueness
# ---------------------------------------------------------------------------


class PoolNotFound(LedgerError):
    code = "pool_not_found"
    status_code = 404


class BetNotFound(LedgerError):
    code = "bet_not_found"
    status_code = 404


class DuplicatePool(LedgerError):
    code = "duplicate_pool"
    status_code = 409


class DuplicateBet(LedgerError):
    code = "duplicate_bet"
    status_code = 409


# ---------------------------------------------------------------------------
# Lifecycle state
# ---------------------------------------------------------------------------


class PoolAlreadyResolved(LedgerError):
    code = "pool_already_resolved"
    status_code = 409


class PoolNotResolved(LedgerError):
    code = "pool_not_resolved"
    status_code = 409


class AlreadyClaimed(LedgerError):
    code = "already_claimed"
    status_code = 409


class NoWinningStake(LedgerError):
    code = "no_winning_stake"
    status_code = 409


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


class Unauthorized(LedgerError):
    code = "unauthorized"
    status_code = 403


class NotWinner(LedgerError):
    code = "not_winner"
    status_code = 403


# ---------------------------------------------------------------------------
# Value movement
# ---------------------------------------------------------------------------


class InsufficientEscrow(LedgerError):
    code = "insufficient_escrow"
    status_code = 409


class TransferFailed(LedgerError):
    """The value-transfer collaborator refused to move funds."""

    code = "transfer_failed"
    status_code = 422
