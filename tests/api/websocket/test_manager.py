"""WebSocket connection manager tests."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi import WebSocketDisconnect

from taskmarket.api.schemas import WSMessage, WSMessageType
from taskmarket.api.websocket.manager import ConnectionManager


@pytest.fixture
def mock_presence() -> MagicMock:
    """Create mock presence cache."""
    presence = MagicMock()
    presence.mark_online = AsyncMock()
    presence.mark_offline = AsyncMock()
    return presence


@pytest.fixture
def manager(mock_presence: MagicMock) -> ConnectionManager:
    """Create connection manager."""
    return ConnectionManager(presence=mock_presence)


def make_websocket() -> AsyncMock:
    ws = AsyncMock()
    ws.accept = AsyncMock()
    ws.send_json = AsyncMock()
    ws.close = AsyncMock()
    return ws


@pytest.fixture
def message() -> WSMessage:
    """Sample server message."""
    return WSMessage(type=WSMessageType.PONG)


class TestConnect:
    """Tests for connect method."""

    @pytest.mark.asyncio
    async def test_accepts_websocket(self, manager: ConnectionManager) -> None:
        """Accepts WebSocket connection."""
        ws = make_websocket()

        connection = await manager.connect(ws)

        ws.accept.assert_awaited_once()
        assert connection.user_id is None
        assert manager.get_total_connections() == 1


class TestIdentify:
    """Tests for identify method."""

    @pytest.mark.asyncio
    async def test_maps_user_and_marks_online(
        self,
        manager: ConnectionManager,
        mock_presence: MagicMock,
    ) -> None:
        connection = await manager.connect(make_websocket())

        await manager.identify(connection, "user-1")

        assert connection.user_id == "user-1"
        assert manager.get_connection_for_user("user-1") is connection
        mock_presence.mark_online.assert_awaited_once_with("user-1")

    @pytest.mark.asyncio
    async def test_last_connect_wins(self, manager: ConnectionManager) -> None:
        """A second connection for the same user replaces the first."""
        first = await manager.connect(make_websocket())
        second = await manager.connect(make_websocket())

        await manager.identify(first, "user-1")
        await manager.identify(second, "user-1")

        assert manager.get_connection_for_user("user-1") is second

    @pytest.mark.asyncio
    async def test_reidentify_releases_previous_user(self, manager: ConnectionManager) -> None:
        connection = await manager.connect(make_websocket())

        await manager.identify(connection, "user-1")
        await manager.identify(connection, "user-2")

        assert manager.get_connection_for_user("user-1") is None
        assert manager.get_connection_for_user("user-2") is connection

    @pytest.mark.asyncio
    async def test_reidentify_marks_previous_user_offline(
        self,
        manager: ConnectionManager,
        mock_presence: MagicMock,
    ) -> None:
        connection = await manager.connect(make_websocket())

        await manager.identify(connection, "user-1")
        await manager.identify(connection, "user-2")

        mock_presence.mark_offline.assert_awaited_once_with("user-1")
        assert mock_presence.mark_online.await_count == 2

    @pytest.mark.asyncio
    async def test_reidentify_same_user_stays_online(
        self,
        manager: ConnectionManager,
        mock_presence: MagicMock,
    ) -> None:
        connection = await manager.connect(make_websocket())

        await manager.identify(connection, "user-1")
        await manager.identify(connection, "user-1")

        mock_presence.mark_offline.assert_not_called()
        assert manager.get_connection_for_user("user-1") is connection

    @pytest.mark.asyncio
    async def test_reidentify_after_takeover_keeps_newer_online(
        self,
        manager: ConnectionManager,
        mock_presence: MagicMock,
    ) -> None:
        """A connection whose user moved elsewhere does not mark them offline."""
        old = await manager.connect(make_websocket())
        new = await manager.connect(make_websocket())
        await manager.identify(old, "user-1")
        await manager.identify(new, "user-1")

        await manager.identify(old, "user-2")

        mock_presence.mark_offline.assert_not_called()
        assert manager.get_connection_for_user("user-1") is new


class TestDisconnect:
    """Tests for disconnect method."""

    @pytest.mark.asyncio
    async def test_removes_connection_rooms_and_user(
        self,
        manager: ConnectionManager,
        mock_presence: MagicMock,
    ) -> None:
        task_id = uuid4()
        connection = await manager.connect(make_websocket())
        await manager.identify(connection, "user-1")
        await manager.join_room(connection, task_id)

        await manager.disconnect(connection)

        assert manager.get_total_connections() == 0
        assert manager.get_room_size(task_id) == 0
        assert manager.get_connection_for_user("user-1") is None
        mock_presence.mark_offline.assert_awaited_once_with("user-1")

    @pytest.mark.asyncio
    async def test_stale_disconnect_keeps_newer_mapping(
        self,
        manager: ConnectionManager,
        mock_presence: MagicMock,
    ) -> None:
        """Closing an older connection does not unmap the user's newer one."""
        old = await manager.connect(make_websocket())
        new = await manager.connect(make_websocket())
        await manager.identify(old, "user-1")
        await manager.identify(new, "user-1")

        await manager.disconnect(old)

        assert manager.get_connection_for_user("user-1") is new
        mock_presence.mark_offline.assert_not_called()

    @pytest.mark.asyncio
    async def test_disconnect_only_affects_that_user(self, manager: ConnectionManager) -> None:
        alice = await manager.connect(make_websocket())
        bob = await manager.connect(make_websocket())
        await manager.identify(alice, "alice")
        await manager.identify(bob, "bob")

        await manager.disconnect(alice)

        assert manager.get_connection_for_user("alice") is None
        assert manager.get_connection_for_user("bob") is bob

    @pytest.mark.asyncio
    async def test_disconnect_twice_is_noop(self, manager: ConnectionManager) -> None:
        connection = await manager.connect(make_websocket())

        await manager.disconnect(connection)
        await manager.disconnect(connection)

        assert manager.get_total_connections() == 0

    @pytest.mark.asyncio
    async def test_works_without_presence(self) -> None:
        manager = ConnectionManager()
        connection = await manager.connect(make_websocket())
        await manager.identify(connection, "user-1")

        await manager.disconnect(connection)

        assert manager.get_connection_for_user("user-1") is None


class TestRooms:
    """Tests for join_room and leave_room."""

    @pytest.mark.asyncio
    async def test_join_and_leave(self, manager: ConnectionManager) -> None:
        task_id = uuid4()
        connection = await manager.connect(make_websocket())

        await manager.join_room(connection, task_id)
        assert manager.get_room_size(task_id) == 1
        assert task_id in connection.rooms

        await manager.leave_room(connection, task_id)
        assert manager.get_room_size(task_id) == 0
        assert task_id not in connection.rooms

    @pytest.mark.asyncio
    async def test_rooms_independent_of_identity(self, manager: ConnectionManager) -> None:
        """Room membership survives re-identification."""
        task_id = uuid4()
        connection = await manager.connect(make_websocket())
        await manager.join_room(connection, task_id)

        await manager.identify(connection, "user-1")

        assert manager.get_room_size(task_id) == 1


class TestSending:
    """Tests for send_to_user, broadcast and broadcast_to_room."""

    @pytest.mark.asyncio
    async def test_send_to_user(self, manager: ConnectionManager, message: WSMessage) -> None:
        ws = make_websocket()
        connection = await manager.connect(ws)
        await manager.identify(connection, "user-1")

        sent = await manager.send_to_user("user-1", message)

        assert sent is True
        payload = ws.send_json.call_args.args[0]
        assert payload["type"] == "pong"

    @pytest.mark.asyncio
    async def test_send_to_absent_user_dropped(
        self,
        manager: ConnectionManager,
        message: WSMessage,
    ) -> None:
        """Targeted sends to users without a connection are dropped silently."""
        assert await manager.send_to_user("nobody", message) is False

    @pytest.mark.asyncio
    async def test_send_after_disconnect_dropped(
        self,
        manager: ConnectionManager,
        message: WSMessage,
    ) -> None:
        ws = make_websocket()
        connection = await manager.connect(ws)
        await manager.identify(connection, "user-1")
        await manager.disconnect(connection)

        assert await manager.send_to_user("user-1", message) is False
        ws.send_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_broadcast_excludes_actor(
        self,
        manager: ConnectionManager,
        message: WSMessage,
    ) -> None:
        actor_ws, other_ws, anon_ws = make_websocket(), make_websocket(), make_websocket()
        actor = await manager.connect(actor_ws)
        other = await manager.connect(other_ws)
        await manager.connect(anon_ws)
        await manager.identify(actor, "actor")
        await manager.identify(other, "other")

        sent = await manager.broadcast(message, exclude_user="actor")

        assert sent == 2
        actor_ws.send_json.assert_not_called()
        other_ws.send_json.assert_awaited_once()
        anon_ws.send_json.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_broadcast_to_room(self, manager: ConnectionManager, message: WSMessage) -> None:
        task_id = uuid4()
        member_ws, outsider_ws = make_websocket(), make_websocket()
        member = await manager.connect(member_ws)
        await manager.connect(outsider_ws)
        await manager.join_room(member, task_id)

        sent = await manager.broadcast_to_room(task_id, message)

        assert sent == 1
        member_ws.send_json.assert_awaited_once()
        outsider_ws.send_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_room(self, manager: ConnectionManager, message: WSMessage) -> None:
        assert await manager.broadcast_to_room(uuid4(), message) == 0

    @pytest.mark.asyncio
    async def test_failed_send_drops_connection(
        self,
        manager: ConnectionManager,
        message: WSMessage,
    ) -> None:
        """Send errors are swallowed and the broken connection removed."""
        broken_ws, healthy_ws = make_websocket(), make_websocket()
        broken_ws.send_json.side_effect = RuntimeError("socket closed")
        broken = await manager.connect(broken_ws)
        await manager.connect(healthy_ws)
        await manager.identify(broken, "user-1")

        sent = await manager.broadcast(message)

        assert sent == 1
        assert manager.get_total_connections() == 1
        assert manager.get_connection_for_user("user-1") is None

    @pytest.mark.asyncio
    async def test_disconnect_during_send(
        self,
        manager: ConnectionManager,
        message: WSMessage,
    ) -> None:
        ws = make_websocket()
        ws.send_json.side_effect = WebSocketDisconnect()
        connection = await manager.connect(ws)

        assert await manager.send_message(connection, message) is False
        assert manager.get_total_connections() == 0
