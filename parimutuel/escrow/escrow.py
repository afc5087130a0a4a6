"""Escrow accounting.

The tracked balance lives in the record store next to the pool, so it commits
and rolls back together with the pool and bet records. Actual value movement
is delegated to the `ValueTransfer` collaborator after the bookkeeping check.
"""

from __future__ import annotations

import logging

from parimutuel.errors import InsufficientEscrow, InvalidAmount
from parimutuel.persistence.interfaces import RecordStore, ValueTransfer

logger = logging.getLogger(__name__)


class EscrowAccount:
    def __init__(self, store: RecordStore, transfer: ValueTransfer) -> None:
        self._store = store
        self._transfer = transfer

    def balance(self, pool_id: int) -> int:
        return self._store.load_escrow_balance(pool_id=pool_id)

    def deposit(self, pool_id: int, source: str, amount: int) -> int:
        """Move `amount` from `source` into the pool's escrow.

        Returns:
            New tracked balance
        """
        if amount <= 0:
            raise InvalidAmount("Deposit amount must be positive")
        with self._store.atomic(pool_id):
            new_balance = self.balance(pool_id) + amount
            self._store.save_escrow_balance(pool_id=pool_id, balance=new_balance)
            self._transfer.collect(pool_id=pool_id, source=source, amount=amount)
        return new_balance

    def payout(self, pool_id: int, amount: int, recipient: str) -> int:
        """Move `amount` out of the pool's escrow to `recipient`.

        Returns:
            New tracked balance

        Raises:
            InsufficientEscrow: If the tracked balance is below `amount`
        """
        if amount < 0:
            raise InvalidAmount("Payout amount must not be negative")
        with self._store.atomic(pool_id):
            current = self.balance(pool_id)
            if current < amount:
                raise InsufficientEscrow(f"Pool {pool_id} escrow holds {current}, cannot pay out {amount}")
            new_balance = current - amount
            self._store.save_escrow_balance(pool_id=pool_id, balance=new_balance)
            if amount > 0:
                self._transfer.send(pool_id=pool_id, recipient=recipient, amount=amount)
        return new_balance

    def withdraw_all(self, pool_id: int, recipient: str) -> int:
        """Pay the entire tracked balance to `recipient`.

        Returns:
            Amount withdrawn
        """
        with self._store.atomic(pool_id):
            amount = self.balance(pool_id)
            self.payout(pool_id, amount, recipient)
        return amount
