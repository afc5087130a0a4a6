"""FastAPI application for the pari-mutuel pool ledger.

This module provides the HTTP surface for:
- GET /health - Record store connectivity
- /pools/... - Pool lifecycle, bets, claims and admin operations (see api/routes/pools.py)
- /wallets/... - In-memory wallet funding and balances (see api/routes/wallets.py)

Requirements:
- DATABASE_URL optional (SQL store when set, in-memory otherwise)
- Caller identity comes from the X-Caller-Identity header, which an upstream
  gateway sets after verifying the request. This service does not verify it.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from api.deps import get_ledger
from api.routes.pools import router as pools_router
from api.routes.wallets import router as wallets_router
from parimutuel.errors import LedgerError

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Parimutuel Ledger API",
    description="API for pari-mutuel betting pools: bets, resolution, claims and escrow",
    version="1.0.0",
)

app.include_router(pools_router)
app.include_router(wallets_router)


@app.get("/health")
async def health() -> dict[str, Any]:
    """Health check endpoint.

    Returns:
        JSON with record store connectivity.

    Raises:
        HTTPException: If the record store is unreachable.
    """
    ledger = get_ledger()
    backend = type(ledger.store).__name__
    if not ledger.store.ping():
        raise HTTPException(
            status_code=503,
            detail={"status": "error", "store": {"backend": backend, "connected": False}},
        )
    return {"status": "ok", "store": {"backend": backend, "connected": True}}


@app.exception_handler(LedgerError)
async def ledger_exception_handler(_request: Request, exc: LedgerError) -> JSONResponse:
    """Map ledger rejections to their HTTP status with a stable error code."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": str(exc)},
    )


@app.exception_handler(Exception)
async def global_exception_handler(_request, exc):
    """Global exception handler to ensure consistent error responses."""
    logger.error("Unhandled error: %s: %s", exc.__class__.__name__, exc)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
        },
    )
