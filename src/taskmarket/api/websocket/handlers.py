"""WebSocket message handlers."""

from __future__ import annotations

from typing import Any
from uuid import UUID

import pydantic
import structlog
from fastapi import WebSocket, WebSocketDisconnect

from taskmarket.db.session import get_session_manager
from taskmarket.events.bus import EventBus

from ..auth import authenticate_websocket, resolve_websocket_identity
from ..exceptions import APIError, AuthenticationError
from ..schemas import MessageCreate, WSMessage, WSMessageType
from ..services.chat_service import ChatService
from .manager import Connection, ConnectionManager

logger = structlog.get_logger()


class WebSocketHandler:
    """Handles WebSocket message processing.

    Manages identification, chat room membership and chat messages sent
    over the socket.
    """

    def __init__(
        self,
        manager: ConnectionManager,
        event_bus: EventBus | None = None,
    ) -> None:
        """Initialize handler.

        Args:
            manager: Connection manager
            event_bus: Bus receiving events for messages sent over the socket
        """
        self.manager = manager
        self.event_bus = event_bus

    async def handle_connection(
        self,
        websocket: WebSocket,
        token: str | None = None,
    ) -> None:
        """Handle a WebSocket connection lifecycle.

        Args:
            websocket: WebSocket connection
            token: Optional auth token from query param
        """
        user_id = None
        if token:
            try:
                user_id = await authenticate_websocket(token)
            except AuthenticationError as e:
                logger.warning("ws_auth_failed", error=e.message)
                await websocket.close(code=4001, reason="Authentication failed")
                return

        connection = await self.manager.connect(websocket)

        try:
            if user_id:
                await self.manager.identify(connection, user_id)
                await self._send_identified(connection)

            await self._message_loop(connection)

        except WebSocketDisconnect:
            logger.debug("ws_client_disconnected", connection_id=connection.id)
        except Exception as e:
            logger.exception("ws_handler_error", error=str(e))
        finally:
            await self.manager.disconnect(connection)

    async def _message_loop(self, connection: Connection) -> None:
        while True:
            try:
                data = await connection.websocket.receive_json()
                await self._handle_message(connection, data)
            except WebSocketDisconnect:
                raise
            except APIError as e:
                await self._send_error(connection, e.message, code=e.code)
            except Exception as e:
                logger.error(
                    "ws_message_error",
                    connection_id=connection.id,
                    error=str(e),
                )
                if not await self._send_error(connection, str(e)):
                    return

    async def _handle_message(
        self,
        connection: Connection,
        data: dict[str, Any],
    ) -> None:
        """Route and handle a single message.

        Args:
            connection: Source connection
            data: Message data
        """
        if not isinstance(data, dict):
            await self._send_error(connection, "Message must be a JSON object", code="VALIDATION_ERROR")
            return

        msg_type = data.get("type")
        payload = data.get("payload") or {}

        match msg_type:
            case WSMessageType.IDENTIFY:
                await self._handle_identify(connection, payload)
            case WSMessageType.JOIN_ROOM:
                await self._handle_join_room(connection, payload)
            case WSMessageType.LEAVE_ROOM:
                await self._handle_leave_room(connection, payload)
            case WSMessageType.SEND_MESSAGE:
                await self._handle_send_message(connection, payload)
            case WSMessageType.PING:
                await self.manager.send_message(connection, WSMessage(type=WSMessageType.PONG))
            case _:
                logger.warning(
                    "ws_unknown_message",
                    connection_id=connection.id,
                    type=msg_type,
                )
                await self._send_error(connection, f"Unknown message type: {msg_type}")

    async def _handle_identify(
        self,
        connection: Connection,
        payload: dict[str, Any],
    ) -> None:
        try:
            user_id = await resolve_websocket_identity(payload)
        except AuthenticationError as e:
            logger.warning(
                "ws_identify_failed",
                connection_id=connection.id,
                error=e.message,
            )
            await self._send_error(connection, "Authentication failed", code="UNAUTHORIZED")
            return

        await self.manager.identify(connection, user_id)
        await self._send_identified(connection)

    async def _handle_join_room(
        self,
        connection: Connection,
        payload: dict[str, Any],
    ) -> None:
        if not connection.user_id:
            await self._send_error(connection, "Identify before joining a room", code="UNAUTHORIZED")
            return

        task_id = self._parse_task_id(payload)
        if task_id is None:
            await self._send_error(connection, "Valid task_id required", code="VALIDATION_ERROR")
            return

        # Only the task's poster and bound expert may listen in
        async with get_session_manager().session_factory() as db:
            await ChatService(db).get_task_for_party(task_id, connection.user_id)

        await self.manager.join_room(connection, task_id)
        await self.manager.send_message(
            connection,
            WSMessage(type=WSMessageType.JOINED, payload={"task_id": str(task_id)}),
        )

    async def _handle_leave_room(
        self,
        connection: Connection,
        payload: dict[str, Any],
    ) -> None:
        task_id = self._parse_task_id(payload)
        if task_id is None:
            await self._send_error(connection, "Valid task_id required", code="VALIDATION_ERROR")
            return

        await self.manager.leave_room(connection, task_id)
        await self.manager.send_message(
            connection,
            WSMessage(type=WSMessageType.LEFT, payload={"task_id": str(task_id)}),
        )

    async def _handle_send_message(
        self,
        connection: Connection,
        payload: dict[str, Any],
    ) -> None:
        if not connection.user_id:
            await self._send_error(connection, "Identify before sending messages", code="UNAUTHORIZED")
            return

        task_id = self._parse_task_id(payload)
        if task_id is None:
            await self._send_error(connection, "Valid task_id required", code="VALIDATION_ERROR")
            return

        try:
            request = MessageCreate.model_validate(
                {"content": payload.get("content"), "attachment": payload.get("attachment")}
            )
        except pydantic.ValidationError as e:
            await self._send_error(connection, "Invalid message", code="VALIDATION_ERROR", detail=str(e))
            return

        # Delivery back to the room happens through the event bus
        async with get_session_manager().session_factory() as db:
            await ChatService(db, self.event_bus).send_message(
                task_id,
                connection.user_id,
                request,
            )

    @staticmethod
    def _parse_task_id(payload: dict[str, Any]) -> UUID | None:
        try:
            return UUID(str(payload.get("task_id")))
        except ValueError:
            return None

    async def _send_identified(self, connection: Connection) -> None:
        await self.manager.send_message(
            connection,
            WSMessage(
                type=WSMessageType.IDENTIFIED,
                payload={"user_id": connection.user_id},
            ),
        )

    async def _send_error(
        self,
        connection: Connection,
        message: str,
        code: str = "ERROR",
        detail: str | None = None,
    ) -> bool:
        """Send error message.

        Args:
            connection: Target connection
            message: Error message
            code: Machine-readable error code
            detail: Additional detail

        Returns:
            True if the error reached the client
        """
        return await self.manager.send_message(
            connection,
            WSMessage(
                type=WSMessageType.ERROR,
                payload={"error": message, "code": code, "detail": detail},
            ),
        )
