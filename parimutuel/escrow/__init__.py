"""Escrow accounting and the in-memory value-transfer collaborator."""

from .escrow import EscrowAccount
from .wallets import WalletBalance, WalletLedger, WalletTransfer

__all__ = ["EscrowAccount", "WalletBalance", "WalletLedger", "WalletTransfer"]
