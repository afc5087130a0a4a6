"""API routes for pool lifecycle, bets and claims.

Endpoints are plain `def` so blocking store calls run in the threadpool.
"""

from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel, Field

from api.deps import caller_identity, get_ledger
from parimutuel.ledger import BettingPoolLedger
from parimutuel.types import BetInfo, PoolInfo

router = APIRouter(prefix="/pools", tags=["pools"])

MAX_POOL_ID = 2**63 - 1


class CreatePoolRequest(BaseModel):
    pool_id: int = Field(..., ge=0, le=MAX_POOL_ID)
    fee_recipient: str = Field(..., min_length=1)


class PlaceBetRequest(BaseModel):
    side: Literal["A", "B"]
    amount: int = Field(..., description="Stake in the smallest currency unit")


class ResolveRequest(BaseModel):
    resolution: Literal["PENDING", "A", "B"]


class FeeRecipientRequest(BaseModel):
    fee_recipient: str = Field(..., min_length=1)


class PoolResponse(BaseModel):
    """Snapshot of a pool."""

    pool_id: int
    owner: str
    fee_recipient: str
    total_amount_a: int
    total_amount_b: int
    total_bets_a: int
    total_bets_b: int
    resolution: Literal["PENDING", "A", "B"]
    resolved: bool
    fee_percent: int


class BetResponse(BaseModel):
    """Snapshot of the caller's bet."""

    pool_id: int
    bettor: str
    amount: int
    side: Literal["A", "B"]
    claimed: bool


class WinningsEstimateResponse(BaseModel):
    pool_id: int
    bettor: str
    assumed_side: Optional[Literal["A", "B"]] = None
    is_winner: bool
    winnings: int
    profit: int
    fee_amount: int


def _pool_to_response(info: PoolInfo) -> PoolResponse:
    return PoolResponse(
        pool_id=info.pool_id,
        owner=info.owner,
        fee_recipient=info.fee_recipient,
        total_amount_a=info.total_amount_a,
        total_amount_b=info.total_amount_b,
        total_bets_a=info.total_bets_a,
        total_bets_b=info.total_bets_b,
        resolution=info.resolution.value,
        resolved=info.resolved,
        fee_percent=info.fee_percent,
    )


def _bet_to_response(pool_id: int, bettor: str, info: BetInfo) -> BetResponse:
    return BetResponse(
        pool_id=pool_id,
        bettor=bettor,
        amount=info.amount,
        side=info.side.value,
        claimed=info.claimed,
    )


@router.post("", response_model=PoolResponse, status_code=201)
def initialize_pool(
    payload: CreatePoolRequest,
    caller: str = Depends(caller_identity),
    ledger: BettingPoolLedger = Depends(get_ledger),
):
    """Create a pool. The caller becomes its owner."""
    pool = ledger.initialize_pool(payload.pool_id, payload.fee_recipient, caller)
    return _pool_to_response(PoolInfo.from_pool(pool))


@router.get("/{pool_id}", response_model=PoolResponse)
def get_pool_info(
    pool_id: int = Path(..., ge=0, le=MAX_POOL_ID, description="Pool identifier"),
    ledger: BettingPoolLedger = Depends(get_ledger),
):
    return _pool_to_response(ledger.get_pool_info(pool_id))


@router.get("/{pool_id}/bettors")
def get_bettors_count(
    pool_id: int = Path(..., ge=0, le=MAX_POOL_ID, description="Pool identifier"),
    ledger: BettingPoolLedger = Depends(get_ledger),
):
    """Number of distinct bettors on each side."""
    counts = ledger.get_bettors_count(pool_id)
    return {"pool_id": pool_id, "count_a": counts.count_a, "count_b": counts.count_b}


@router.get("/{pool_id}/balance")
def get_contract_balance(
    pool_id: int = Path(..., ge=0, le=MAX_POOL_ID, description="Pool identifier"),
    ledger: BettingPoolLedger = Depends(get_ledger),
):
    """Current escrow balance."""
    return {"pool_id": pool_id, "balance": ledger.get_contract_balance(pool_id)}


@router.post("/{pool_id}/bets", response_model=BetResponse, status_code=201)
def place_bet(
    payload: PlaceBetRequest,
    pool_id: int = Path(..., ge=0, le=MAX_POOL_ID, description="Pool identifier"),
    caller: str = Depends(caller_identity),
    ledger: BettingPoolLedger = Depends(get_ledger),
):
    bet = ledger.place_bet(pool_id, payload.side, payload.amount, caller)
    return _bet_to_response(pool_id, caller, BetInfo(amount=bet.amount, side=bet.side, claimed=bet.claimed))


@router.get("/{pool_id}/bets/me", response_model=BetResponse)
def get_bet_info(
    pool_id: int = Path(..., ge=0, le=MAX_POOL_ID, description="Pool identifier"),
    caller: str = Depends(caller_identity),
    ledger: BettingPoolLedger = Depends(get_ledger),
):
    return _bet_to_response(pool_id, caller, ledger.get_bet_info(pool_id, caller))


@router.get("/{pool_id}/bets/me/estimate", response_model=WinningsEstimateResponse)
def estimate_winnings(
    pool_id: int = Path(..., ge=0, le=MAX_POOL_ID, description="Pool identifier"),
    assume: Optional[Literal["A", "B"]] = Query(None, description="Hypothetical winning side for pending pools"),
    caller: str = Depends(caller_identity),
    ledger: BettingPoolLedger = Depends(get_ledger),
):
    """Preview the caller's payout."""
    estimate = ledger.estimate_winnings(pool_id, caller, assume)
    return WinningsEstimateResponse(
        pool_id=pool_id,
        bettor=caller,
        assumed_side=assume,
        is_winner=estimate.is_winner,
        winnings=estimate.winnings,
        profit=estimate.profit,
        fee_amount=estimate.fee_amount,
    )


@router.post("/{pool_id}/resolve", response_model=PoolResponse)
def resolve_pool(
    payload: ResolveRequest,
    pool_id: int = Path(..., ge=0, le=MAX_POOL_ID, description="Pool identifier"),
    caller: str = Depends(caller_identity),
    ledger: BettingPoolLedger = Depends(get_ledger),
):
    """Declare the winning side (owner only)."""
    pool = ledger.resolve_pool(pool_id, payload.resolution, caller)
    return _pool_to_response(PoolInfo.from_pool(pool))


@router.post("/{pool_id}/claim")
def claim_winnings(
    pool_id: int = Path(..., ge=0, le=MAX_POOL_ID, description="Pool identifier"),
    caller: str = Depends(caller_identity),
    ledger: BettingPoolLedger = Depends(get_ledger),
):
    amount = ledger.claim_winnings(pool_id, caller)
    return {"pool_id": pool_id, "bettor": caller, "amount": amount}


@router.put("/{pool_id}/fee-recipient", response_model=PoolResponse)
def update_fee_recipient(
    payload: FeeRecipientRequest,
    pool_id: int = Path(..., ge=0, le=MAX_POOL_ID, description="Pool identifier"),
    caller: str = Depends(caller_identity),
    ledger: BettingPoolLedger = Depends(get_ledger),
):
    pool = ledger.update_fee_recipient(pool_id, payload.fee_recipient, caller)
    return _pool_to_response(PoolInfo.from_pool(pool))


@router.post("/{pool_id}/emergency-withdraw")
def emergency_withdraw(
    pool_id: int = Path(..., ge=0, le=MAX_POOL_ID, description="Pool identifier"),
    caller: str = Depends(caller_identity),
    ledger: BettingPoolLedger = Depends(get_ledger),
):
    """Move the whole escrow balance to the owner (owner only)."""
    amount = ledger.emergency_withdraw(pool_id, caller)
    return {"pool_id": pool_id, "withdrawn": amount}
