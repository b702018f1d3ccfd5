"""WebSocket connection manager and the Redis pub/sub bridge."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from studyplanner.ws.bridge import PubSubBridge, parse_user_id
from studyplanner.ws.manager import ConnectionManager


def _websocket() -> MagicMock:
    ws = MagicMock()
    ws.accept = AsyncMock()
    ws.send_text = AsyncMock()
    return ws


class TestConnectionManager:
    async def test_connect_and_disconnect(self):
        mgr = ConnectionManager()
        ws = _websocket()
        await mgr.connect(ws, "c1", user_id=3)

        ws.accept.assert_awaited_once()
        assert mgr.connection_count == 1
        assert mgr.user_connection_count(3) == 1

        await mgr.disconnect("c1")
        assert mgr.connection_count == 0
        assert mgr.user_connection_count(3) == 0

    async def test_disconnect_unknown_is_noop(self):
        mgr = ConnectionManager()
        await mgr.disconnect("missing")
        assert mgr.stats() == {"total_connections": 0, "unique_users": 0}

    async def test_send_to_every_user_connection(self):
        mgr = ConnectionManager()
        first, second, other = _websocket(), _websocket(), _websocket()
        await mgr.connect(first, "a", user_id=1)
        await mgr.connect(second, "b", user_id=1)
        await mgr.connect(other, "c", user_id=2)

        sent = await mgr.send_to_user(1, {"type": "level-up", "payload": {"level": 2}})

        assert sent == 2
        expected = json.dumps({"type": "level-up", "payload": {"level": 2}})
        first.send_text.assert_awaited_once_with(expected)
        second.send_text.assert_awaited_once_with(expected)
        other.send_text.assert_not_awaited()

    async def test_failed_connection_is_dropped(self):
        mgr = ConnectionManager()
        good, broken = _websocket(), _websocket()
        broken.send_text.side_effect = RuntimeError("closed")
        await mgr.connect(good, "good", user_id=1)
        await mgr.connect(broken, "broken", user_id=1)

        assert await mgr.send_to_user(1, {"type": "ping"}) == 1
        assert mgr.user_connection_count(1) == 1

    async def test_no_connections(self):
        assert await ConnectionManager().send_to_user(9, {"type": "x"}) == 0


class TestParseUserId:
    def test_valid(self):
        assert parse_user_id("ws:user:17") == 17

    def test_invalid(self):
        assert parse_user_id("ws:user:abc") is None


class TestPubSubBridge:
    @pytest.mark.asyncio
    async def test_forwards_event_to_user(self):
        mgr = MagicMock()
        mgr.send_to_user = AsyncMock(return_value=1)
        bridge = PubSubBridge(AsyncMock())
        message = {
            "type": "pmessage",
            "channel": "ws:user:12",
            "data": json.dumps({"event": "badge-earned", "data": {"name": "Week Warrior"}}),
        }

        with patch("studyplanner.ws.bridge.manager", mgr):
            sent = await bridge.handle_message(message)

        assert sent == 1
        mgr.send_to_user.assert_awaited_once_with(
            12, {"type": "badge-earned", "payload": {"name": "Week Warrior"}}
        )

    @pytest.mark.asyncio
    async def test_bytes_message(self):
        mgr = MagicMock()
        mgr.send_to_user = AsyncMock(return_value=0)
        bridge = PubSubBridge(AsyncMock())
        message = {
            "channel": b"ws:user:4",
            "data": json.dumps({"event": "timer-paused", "data": {"session_id": 1}}).encode(),
        }

        with patch("studyplanner.ws.bridge.manager", mgr):
            await bridge.handle_message(message)

        mgr.send_to_user.assert_awaited_once_with(4, {"type": "timer-paused", "payload": {"session_id": 1}})

    @pytest.mark.asyncio
    async def test_invalid_payload_dropped(self):
        mgr = MagicMock()
        mgr.send_to_user = AsyncMock()
        bridge = PubSubBridge(AsyncMock())

        with patch("studyplanner.ws.bridge.manager", mgr):
            assert await bridge.handle_message({"channel": "ws:user:4", "data": "not json"}) == 0
            assert await bridge.handle_message({"channel": "ws:user:x", "data": "{}"}) == 0

        mgr.send_to_user.assert_not_awaited()
