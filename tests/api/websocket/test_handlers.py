"""WebSocket handler tests."""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi import WebSocketDisconnect

from taskmarket.api.exceptions import AccessDeniedError, AuthenticationError, InvalidStateError
from taskmarket.api.schemas import WSMessageType
from taskmarket.api.websocket.handlers import WebSocketHandler
from taskmarket.api.websocket.manager import Connection


@pytest.fixture
def mock_manager() -> MagicMock:
    """Create mock connection manager."""
    manager = MagicMock()
    manager.connect = AsyncMock()
    manager.disconnect = AsyncMock()
    manager.identify = AsyncMock()
    manager.join_room = AsyncMock()
    manager.leave_room = AsyncMock()
    manager.send_message = AsyncMock(return_value=True)
    return manager


@pytest.fixture
def handler(mock_manager: MagicMock, mock_event_bus: MagicMock) -> WebSocketHandler:
    """Create WebSocket handler."""
    return WebSocketHandler(manager=mock_manager, event_bus=mock_event_bus)


@pytest.fixture
def mock_connection() -> Connection:
    """Create mock connection."""
    connection = MagicMock(spec=Connection)
    connection.id = "test-conn-123"
    connection.user_id = "poster-1"
    connection.websocket = AsyncMock()
    return connection


@pytest.fixture
def mock_session_manager() -> Iterator[MagicMock]:
    """Patch the database session manager used for party checks."""
    session_manager = MagicMock()
    session_manager.session_factory.return_value.__aenter__.return_value = AsyncMock()
    with patch(
        "taskmarket.api.websocket.handlers.get_session_manager",
        return_value=session_manager,
    ):
        yield session_manager


def sent_messages(mock_manager: MagicMock) -> list:
    return [call.args[1] for call in mock_manager.send_message.call_args_list]


class TestHandleConnection:
    """Tests for handle_connection method."""

    @pytest.mark.asyncio
    async def test_identifies_with_token(
        self,
        handler: WebSocketHandler,
        mock_manager: MagicMock,
        mock_connection: Connection,
    ) -> None:
        """Token in the query identifies the connection up front."""
        websocket = AsyncMock()
        mock_manager.connect.return_value = mock_connection
        mock_connection.websocket.receive_json.side_effect = WebSocketDisconnect()

        with patch(
            "taskmarket.api.websocket.handlers.authenticate_websocket",
            new=AsyncMock(return_value="poster-1"),
        ):
            await handler.handle_connection(websocket, token="jwt")

        mock_manager.identify.assert_awaited_once_with(mock_connection, "poster-1")
        assert sent_messages(mock_manager)[0].type == WSMessageType.IDENTIFIED
        mock_manager.disconnect.assert_awaited_once_with(mock_connection)

    @pytest.mark.asyncio
    async def test_rejects_bad_token(
        self,
        handler: WebSocketHandler,
        mock_manager: MagicMock,
    ) -> None:
        websocket = AsyncMock()

        with patch(
            "taskmarket.api.websocket.handlers.authenticate_websocket",
            new=AsyncMock(side_effect=AuthenticationError("Invalid token")),
        ):
            await handler.handle_connection(websocket, token="bad")

        websocket.close.assert_awaited_once()
        assert websocket.close.call_args.kwargs["code"] == 4001
        mock_manager.connect.assert_not_called()

    @pytest.mark.asyncio
    async def test_anonymous_connection_allowed(
        self,
        handler: WebSocketHandler,
        mock_manager: MagicMock,
        mock_connection: Connection,
    ) -> None:
        mock_manager.connect.return_value = mock_connection
        mock_connection.websocket.receive_json.side_effect = WebSocketDisconnect()

        await handler.handle_connection(AsyncMock())

        mock_manager.identify.assert_not_called()
        mock_manager.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_message_errors_reported_not_fatal(
        self,
        handler: WebSocketHandler,
        mock_manager: MagicMock,
        mock_connection: Connection,
    ) -> None:
        """A failing message yields an error reply and the loop continues."""
        mock_manager.connect.return_value = mock_connection
        mock_connection.websocket.receive_json.side_effect = [
            ValueError("not json"),
            {"type": "ping"},
            WebSocketDisconnect(),
        ]

        await handler.handle_connection(AsyncMock())

        types = [m.type for m in sent_messages(mock_manager)]
        assert types == [WSMessageType.ERROR, WSMessageType.PONG]

    @pytest.mark.asyncio
    async def test_stops_when_client_unreachable(
        self,
        handler: WebSocketHandler,
        mock_manager: MagicMock,
        mock_connection: Connection,
    ) -> None:
        mock_manager.connect.return_value = mock_connection
        mock_manager.send_message.return_value = False
        mock_connection.websocket.receive_json.side_effect = RuntimeError("not connected")

        await handler.handle_connection(AsyncMock())

        assert mock_connection.websocket.receive_json.await_count == 1
        mock_manager.disconnect.assert_awaited_once()


class TestIdentify:
    """Tests for identify messages."""

    @pytest.mark.asyncio
    async def test_identify_with_user_id_when_auth_disabled(
        self,
        handler: WebSocketHandler,
        mock_manager: MagicMock,
        mock_connection: Connection,
    ) -> None:
        await handler._handle_message(
            mock_connection,
            {"type": "identify", "payload": {"user_id": "expert-1"}},
        )

        mock_manager.identify.assert_awaited_once_with(mock_connection, "expert-1")

    @pytest.mark.asyncio
    async def test_identify_without_credentials(
        self,
        handler: WebSocketHandler,
        mock_manager: MagicMock,
        mock_connection: Connection,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        from taskmarket.api.config import get_auth_settings

        monkeypatch.setenv("AUTH_AUTH_ENABLED", "true")
        get_auth_settings.cache_clear()

        await handler._handle_message(
            mock_connection,
            {"type": "identify", "payload": {"user_id": "expert-1"}},
        )

        mock_manager.identify.assert_not_called()
        error = sent_messages(mock_manager)[0]
        assert error.type == WSMessageType.ERROR
        assert error.payload["code"] == "UNAUTHORIZED"


class TestRooms:
    """Tests for join-room and leave-room messages."""

    @pytest.mark.asyncio
    async def test_party_joins_room(
        self,
        handler: WebSocketHandler,
        mock_manager: MagicMock,
        mock_connection: Connection,
        mock_session_manager: MagicMock,
    ) -> None:
        task_id = uuid4()

        with patch("taskmarket.api.websocket.handlers.ChatService") as mock_service_class:
            mock_service_class.return_value.get_task_for_party = AsyncMock()

            await handler._handle_message(
                mock_connection,
                {"type": "join-room", "payload": {"task_id": str(task_id)}},
            )

            mock_service_class.return_value.get_task_for_party.assert_awaited_once_with(
                task_id, "poster-1"
            )

        mock_manager.join_room.assert_awaited_once_with(mock_connection, task_id)
        reply = sent_messages(mock_manager)[0]
        assert reply.type == WSMessageType.JOINED
        assert reply.payload == {"task_id": str(task_id)}

    @pytest.mark.asyncio
    async def test_outsider_cannot_join(
        self,
        handler: WebSocketHandler,
        mock_manager: MagicMock,
        mock_connection: Connection,
        mock_session_manager: MagicMock,
    ) -> None:
        task_id = uuid4()

        with patch("taskmarket.api.websocket.handlers.ChatService") as mock_service_class:
            mock_service_class.return_value.get_task_for_party = AsyncMock(
                side_effect=AccessDeniedError("Task", task_id)
            )

            with pytest.raises(AccessDeniedError):
                await handler._handle_message(
                    mock_connection,
                    {"type": "join-room", "payload": {"task_id": str(task_id)}},
                )

        mock_manager.join_room.assert_not_called()

    @pytest.mark.asyncio
    async def test_join_requires_identity(
        self,
        handler: WebSocketHandler,
        mock_manager: MagicMock,
        mock_connection: Connection,
    ) -> None:
        mock_connection.user_id = None

        await handler._handle_message(
            mock_connection,
            {"type": "join-room", "payload": {"task_id": str(uuid4())}},
        )

        mock_manager.join_room.assert_not_called()
        assert sent_messages(mock_manager)[0].type == WSMessageType.ERROR

    @pytest.mark.asyncio
    async def test_join_requires_valid_task_id(
        self,
        handler: WebSocketHandler,
        mock_manager: MagicMock,
        mock_connection: Connection,
    ) -> None:
        await handler._handle_message(
            mock_connection,
            {"type": "join-room", "payload": {"task_id": "not-a-uuid"}},
        )

        mock_manager.join_room.assert_not_called()
        assert sent_messages(mock_manager)[0].payload["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_leave_room(
        self,
        handler: WebSocketHandler,
        mock_manager: MagicMock,
        mock_connection: Connection,
    ) -> None:
        task_id = uuid4()

        await handler._handle_message(
            mock_connection,
            {"type": "leave-room", "payload": {"task_id": str(task_id)}},
        )

        mock_manager.leave_room.assert_awaited_once_with(mock_connection, task_id)
        assert sent_messages(mock_manager)[0].type == WSMessageType.LEFT


class TestSendMessage:
    """Tests for send-message messages."""

    @pytest.mark.asyncio
    async def test_persists_through_chat_service(
        self,
        handler: WebSocketHandler,
        mock_event_bus: MagicMock,
        mock_connection: Connection,
        mock_session_manager: MagicMock,
    ) -> None:
        task_id = uuid4()

        with patch("taskmarket.api.websocket.handlers.ChatService") as mock_service_class:
            mock_service_class.return_value.send_message = AsyncMock()

            await handler._handle_message(
                mock_connection,
                {
                    "type": "send-message",
                    "payload": {"task_id": str(task_id), "content": "On it"},
                },
            )

            db = mock_session_manager.session_factory.return_value.__aenter__.return_value
            mock_service_class.assert_called_once_with(db, mock_event_bus)
            args = mock_service_class.return_value.send_message.call_args.args
            assert args[0] == task_id
            assert args[1] == "poster-1"
            assert args[2].content == "On it"

    @pytest.mark.asyncio
    async def test_empty_content_rejected(
        self,
        handler: WebSocketHandler,
        mock_manager: MagicMock,
        mock_connection: Connection,
    ) -> None:
        with patch("taskmarket.api.websocket.handlers.ChatService") as mock_service_class:
            await handler._handle_message(
                mock_connection,
                {"type": "send-message", "payload": {"task_id": str(uuid4()), "content": ""}},
            )

            mock_service_class.assert_not_called()

        assert sent_messages(mock_manager)[0].payload["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_closed_chat_error_reported(
        self,
        handler: WebSocketHandler,
        mock_manager: MagicMock,
        mock_connection: Connection,
        mock_session_manager: MagicMock,
    ) -> None:
        """Service errors surface to the client as error messages."""
        mock_manager.connect.return_value = mock_connection
        mock_connection.websocket.receive_json.side_effect = [
            {"type": "send-message", "payload": {"task_id": str(uuid4()), "content": "Hi"}},
            WebSocketDisconnect(),
        ]

        with patch("taskmarket.api.websocket.handlers.ChatService") as mock_service_class:
            mock_service_class.return_value.send_message = AsyncMock(
                side_effect=InvalidStateError("Task", "completed", "chat about")
            )
            await handler.handle_connection(AsyncMock())

        error = sent_messages(mock_manager)[0]
        assert error.type == WSMessageType.ERROR
        assert error.payload["code"] == "INVALID_STATE"


class TestMisc:
    """Tests for ping and unknown messages."""

    @pytest.mark.asyncio
    async def test_ping(
        self,
        handler: WebSocketHandler,
        mock_manager: MagicMock,
        mock_connection: Connection,
    ) -> None:
        await handler._handle_message(mock_connection, {"type": "ping"})

        assert sent_messages(mock_manager)[0].type == WSMessageType.PONG

    @pytest.mark.asyncio
    async def test_unknown_type(
        self,
        handler: WebSocketHandler,
        mock_manager: MagicMock,
        mock_connection: Connection,
    ) -> None:
        await handler._handle_message(mock_connection, {"type": "subscribe"})

        assert sent_messages(mock_manager)[0].type == WSMessageType.ERROR

    @pytest.mark.asyncio
    async def test_non_object_message(
        self,
        handler: WebSocketHandler,
        mock_manager: MagicMock,
        mock_connection: Connection,
    ) -> None:
        await handler._handle_message(mock_connection, ["ping"])  # type: ignore[arg-type]

        assert sent_messages(mock_manager)[0].type == WSMessageType.ERROR
