"""WebSocket route for live price updates."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])


def _decode_frame(message: dict[str, Any]) -> Optional[Any]:
    """Return the JSON body of a text frame, or None for anything else."""
    text = message.get("text")
    if text is None:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


@router.websocket("/ws")
async def websocket_ticker(websocket: WebSocket) -> None:
    state = websocket.app.state
    registry = state.registry
    handler = state.handler

    await websocket.accept()
    session = registry.connect(websocket)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            payload = _decode_frame(message)
            if payload is None:
                logger.debug(f"Ignoring non-JSON frame on session {session.session_id}")
                continue
            await handler.handle(session, payload)
            if session.is_closed:
                # A send failed and the router dropped the session.
                break
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.warning(f"WebSocket session {session.session_id} failed", exc_info=True)
    finally:
        registry.disconnect(session)
