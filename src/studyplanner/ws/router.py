"""``/ws``: live notification channel.

The client authenticates with ``?token=<access token>`` and may send
``{"action": "ping"}`` to get ``{"type": "pong"}`` back. Everything else the
server sends is a notification of the form ``{"type": ..., "payload": ...}``.
"""

import json
import uuid

import jwt
import structlog
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from studyplanner.auth.dependencies import user_id_from_access_token
from studyplanner.config import get_settings
from studyplanner.ws.manager import manager

logger = structlog.get_logger()

router = APIRouter()

CLOSE_UNAUTHORIZED = 4001
CLOSE_TOO_MANY = 4008


def _reply_to(raw: str) -> dict[str, str]:
    try:
        message = json.loads(raw)
    except json.JSONDecodeError:
        return {"type": "error", "message": "Invalid JSON"}
    action = message.get("action") if isinstance(message, dict) else None
    if action == "ping":
        return {"type": "pong"}
    return {"type": "error", "message": f"Unknown action: {action}"}


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, token: str = Query(...)) -> None:
    try:
        user_id = user_id_from_access_token(token)
    except jwt.InvalidTokenError as exc:
        await websocket.close(code=CLOSE_UNAUTHORIZED, reason=f"Authentication failed: {exc}")
        return

    if manager.user_connection_count(user_id) >= get_settings().ws_max_connections_per_user:
        await websocket.close(code=CLOSE_TOO_MANY, reason="Too many connections")
        return

    conn_id = str(uuid.uuid4())
    await manager.connect(websocket, conn_id, user_id)
    try:
        while True:
            await websocket.send_json(_reply_to(await websocket.receive_text()))
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("ws_error", conn_id=conn_id, user_id=user_id)
    finally:
        await manager.disconnect(conn_id)
