"""WebSocket endpoint protocol, driven with a mocked socket."""

from unittest.mock import AsyncMock, MagicMock, patch

from fastapi import WebSocketDisconnect

from studyplanner.auth.jwt import create_access_token, create_refresh_token
from studyplanner.ws.router import websocket_endpoint


def _socket(*messages) -> MagicMock:
    ws = MagicMock()
    ws.close = AsyncMock()
    ws.send_json = AsyncMock()
    ws.receive_text = AsyncMock(side_effect=[*messages, WebSocketDisconnect()])
    return ws


def _manager(connections: int = 0) -> MagicMock:
    mgr = MagicMock()
    mgr.connect = AsyncMock()
    mgr.disconnect = AsyncMock()
    mgr.user_connection_count.return_value = connections
    return mgr


class TestWebSocketEndpoint:
    async def test_rejects_bad_token(self):
        ws = _socket()
        mgr = _manager()
        with patch("studyplanner.ws.router.manager", mgr):
            await websocket_endpoint(ws, token="garbage")
        assert ws.close.call_args.kwargs["code"] == 4001
        mgr.connect.assert_not_awaited()

    async def test_rejects_refresh_token(self):
        ws = _socket()
        with patch("studyplanner.ws.router.manager", _manager()):
            await websocket_endpoint(ws, token=create_refresh_token(7, "a@example.com"))
        assert ws.close.call_args.kwargs["code"] == 4001

    async def test_connection_limit(self):
        ws = _socket()
        mgr = _manager(connections=5)
        with patch("studyplanner.ws.router.manager", mgr):
            await websocket_endpoint(ws, token=create_access_token(7, "a@example.com"))
        assert ws.close.call_args.kwargs["code"] == 4008

    async def test_ping_and_errors(self):
        ws = _socket('{"action": "ping"}', "not json", '{"action": "dance"}')
        mgr = _manager()
        with patch("studyplanner.ws.router.manager", mgr):
            await websocket_endpoint(ws, token=create_access_token(7, "a@example.com"))

        sent = [c.args[0] for c in ws.send_json.call_args_list]
        assert sent == [
            {"type": "pong"},
            {"type": "error", "message": "Invalid JSON"},
            {"type": "error", "message": "Unknown action: dance"},
        ]
        assert mgr.connect.call_args.args[2] == 7
        mgr.disconnect.assert_awaited_once()
