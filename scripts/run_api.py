#!/usr/bin/env python3
"""Run the tickerstream API server.

This script starts the uvicorn server hosting the price WebSocket.

Usage:
    python scripts/run_api.py [--host HOST] [--port PORT]

Environment (optionally from a .env file):
    DATABASE_URL          - Optional. SQLAlchemy URL; in-memory accounts when unset.
    TICKER_SYMBOLS        - Optional. Comma-separated catalog (default GOOG,TSLA,AMZN,META,NVDA).
    TICK_INTERVAL_SECONDS - Optional. Seconds between price ticks (default 1.0).

Examples:
    python scripts/run_api.py
    python scripts/run_api.py --host 0.0.0.0 --port 3000
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

# Ensure imports work when invoked as a script
_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))


def main() -> int:
    """Run the API server."""
    from dotenv import load_dotenv

    load_dotenv()

    parser = argparse.ArgumentParser(description="Run the tickerstream WebSocket server.")
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("PORT", "3000")),
        help="Port to bind to (default: $PORT or 3000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: info)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Validate configuration before handing off to uvicorn.
    from core.config import TickerConfig

    try:
        config = TickerConfig.from_env()
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if not config.database_url:
        print("Warning: DATABASE_URL is not set; accounts will not survive a restart", file=sys.stderr)

    print(f"Starting tickerstream on {args.host}:{args.port}")
    print("Endpoints:")
    print(f"  - WS  ws://{args.host}:{args.port}/ws")
    print(f"  - GET http://{args.host}:{args.port}/health")
    print()

    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
    )

    return 0


if __name__ == "__main__":
    sys.exit(main())
