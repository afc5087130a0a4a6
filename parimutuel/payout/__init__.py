from .calculator import ClaimHandler, ClaimResult, compute_entitlement, estimate_winnings

__all__ = ["ClaimHandler", "ClaimResult", "compute_entitlement", "estimate_winnings"]
