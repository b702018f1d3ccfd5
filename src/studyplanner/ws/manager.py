"""In-process registry of open WebSocket connections, grouped by user."""

import json

import structlog
from fastapi import WebSocket

logger = structlog.get_logger()


class ConnectionManager:
    def __init__(self) -> None:
        self._by_user: dict[int, dict[str, WebSocket]] = {}
        self._owner: dict[str, int] = {}

    @property
    def connection_count(self) -> int:
        return len(self._owner)

    def user_connection_count(self, user_id: int) -> int:
        return len(self._by_user.get(user_id, {}))

    def stats(self) -> dict[str, int]:
        return {"total_connections": len(self._owner), "unique_users": len(self._by_user)}

    async def connect(self, websocket: WebSocket, conn_id: str, user_id: int) -> None:
        await websocket.accept()
        self._by_user.setdefault(user_id, {})[conn_id] = websocket
        self._owner[conn_id] = user_id
        logger.info("ws_connected", conn_id=conn_id, user_id=user_id)

    async def disconnect(self, conn_id: str) -> None:
        user_id = self._owner.pop(conn_id, None)
        if user_id is None:
            return
        sockets = self._by_user.get(user_id, {})
        sockets.pop(conn_id, None)
        if not sockets:
            self._by_user.pop(user_id, None)
        logger.info("ws_disconnected", conn_id=conn_id, user_id=user_id)

    async def send_to_user(self, user_id: int, message: dict) -> int:
        """Send ``message`` to each of the user's connections.

        A connection that fails to receive is dropped. Returns how many
        connections got the message.
        """
        sockets = dict(self._by_user.get(user_id, {}))
        if not sockets:
            return 0

        text = json.dumps(message, default=str)
        delivered = 0
        for conn_id, websocket in sockets.items():
            try:
                await websocket.send_text(text)
            except Exception:
                logger.info("ws_send_failed", conn_id=conn_id, user_id=user_id)
                await self.disconnect(conn_id)
            else:
                delivered += 1
        return delivered


manager = ConnectionManager()
