#!/usr/bin/env python3
"""Run the FastAPI ledger API server.

This script starts the uvicorn server for the pool ledger API.

Usage:
    python scripts/run_api.py [--host HOST] [--port PORT]

Environment:
    DATABASE_URL - Optional. SQLAlchemy URL; records stay in memory when unset.
    PARIMUTUEL_FEE_PERCENT - Optional. Fee for new pools (default 5).
    PARIMUTUEL_LOG_LEVEL - Optional. Logging level (default INFO).

Examples:
    python scripts/run_api.py
    python scripts/run_api.py --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import uvicorn

# Ensure imports work when invoked as a script
_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from parimutuel.config import LedgerConfig  # noqa: E402


def main() -> int:
    """Run the API server."""
    parser = argparse.ArgumentParser(description="Run the FastAPI server for the pari-mutuel pool ledger.")
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    args = parser.parse_args()

    try:
        config = LedgerConfig.from_env()
    except ValueError as exc:
        print(f"Error: invalid configuration: {exc}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    backend = "SQL database" if config.uses_database else "in-memory store"
    print(f"Starting FastAPI server on {args.host}:{args.port} ({backend}, fee {config.fee_percent}%)")
    print("Endpoints:")
    print(f"  - GET  http://{args.host}:{args.port}/health")
    print(f"  - POST http://{args.host}:{args.port}/pools")
    print(f"  - GET  http://{args.host}:{args.port}/pools/{{pool_id}}")
    print()

    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=config.log_level.lower(),
    )

    return 0


if __name__ == "__main__":
    sys.exit(main())
