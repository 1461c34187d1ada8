"""Health check API endpoint."""

from __future__ import annotations

import time
from typing import Any, Dict, List

from fastapi import APIRouter, Request
from pydantic import BaseModel

router = APIRouter(prefix="/health", tags=["health"])

# Track API start time
_api_start_time = time.time()


class HealthResponse(BaseModel):
    """Service health response."""

    status: str
    uptime_seconds: int
    tick_loop_running: bool
    tick_count: int
    sessions: int
    authenticated_sessions: int
    symbols: List[str]
    store: str


@router.get("", response_model=HealthResponse)
async def health_check(request: Request) -> Dict[str, Any]:
    """Get service health.

    Reports the tick loop state, live session counts and which credential
    store backs accounts. Status is "degraded" when the tick loop is not running.
    """
    state = request.app.state
    running = state.router.running

    return {
        "status": "ok" if running else "degraded",
        "uptime_seconds": int(time.time() - _api_start_time),
        "tick_loop_running": running,
        "tick_count": state.feed.tick_count,
        "sessions": len(state.registry),
        "authenticated_sessions": len(state.registry.authenticated_sessions()),
        "symbols": list(state.catalog.symbols),
        "store": type(state.store).__name__,
    }
