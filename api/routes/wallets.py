"""API routes for the in-memory wallet ledger.

Funding stands in for an external on-ramp so bettors can stake in local and
test deployments.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel, Field

from api.deps import get_wallets
from parimutuel.escrow.wallets import WalletLedger

router = APIRouter(prefix="/wallets", tags=["wallets"])


class FundRequest(BaseModel):
    amount: int = Field(..., gt=0)


class WalletResponse(BaseModel):
    identity: str
    available: int


@router.post("/{identity}/fund", response_model=WalletResponse)
def fund_wallet(
    payload: FundRequest,
    identity: str = Path(..., min_length=1),
    wallets: WalletLedger = Depends(get_wallets),
):
    balance = wallets.fund(identity, payload.amount)
    return WalletResponse(identity=identity, available=balance.available)


@router.get("/{identity}", response_model=WalletResponse)
def get_wallet(
    identity: str = Path(..., min_length=1),
    wallets: WalletLedger = Depends(get_wallets),
):
    return WalletResponse(identity=identity, available=wallets.get_available(identity))
