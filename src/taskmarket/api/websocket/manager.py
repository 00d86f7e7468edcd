"""WebSocket connection registry for real-time notifications."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from uuid import UUID, uuid4

import structlog
from fastapi import WebSocket, WebSocketDisconnect

from taskmarket.cache import PresenceCache

from ..schemas import WSMessage

logger = structlog.get_logger()


@dataclass
class Connection:
    """Represents a WebSocket connection."""

    id: str
    websocket: WebSocket
    user_id: str | None = None
    rooms: set[UUID] = field(default_factory=set)

    @property
    def identified(self) -> bool:
        return self.user_id is not None


@dataclass
class ConnectionManager:
    """Tracks live connections, user identities and task chat rooms.

    A user maps to a single connection: identifying again from a new
    connection replaces the older mapping (last connect wins). Room
    membership is tracked per connection, independently of identity.

    Every send is best-effort. A failing connection is dropped and the
    failure logged; callers never see an exception.
    """

    presence: PresenceCache | None = None
    _connections: dict[str, Connection] = field(default_factory=dict)
    _users: dict[str, str] = field(default_factory=dict)
    _rooms: dict[UUID, set[str]] = field(default_factory=dict)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def connect(self, websocket: WebSocket) -> Connection:
        """Accept a new WebSocket connection.

        Args:
            websocket: WebSocket connection

        Returns:
            Connection object
        """
        await websocket.accept()

        connection = Connection(id=str(uuid4()), websocket=websocket)

        async with self._lock:
            self._connections[connection.id] = connection

        logger.info("ws_connected", connection_id=connection.id)

        return connection

    async def identify(self, connection: Connection, user_id: str) -> None:
        """Bind a connection to a user, replacing any previous binding.

        Args:
            connection: Connection presenting the identity
            user_id: Authenticated user ID
        """
        released: str | None = None

        async with self._lock:
            previous_user = connection.user_id
            if (
                previous_user
                and previous_user != user_id
                and self._users.get(previous_user) == connection.id
            ):
                del self._users[previous_user]
                released = previous_user

            replaced = self._users.get(user_id)
            connection.user_id = user_id
            self._users[user_id] = connection.id

        if self.presence is not None:
            if released is not None:
                await self.presence.mark_offline(released)
            await self.presence.mark_online(user_id)

        logger.info(
            "ws_identified",
            connection_id=connection.id,
            user_id=user_id,
            replaced_connection=replaced if replaced != connection.id else None,
        )

    async def disconnect(self, connection: Connection) -> None:
        """Handle connection disconnect.

        The user mapping is removed only if it still points to this
        connection; a newer connection for the same user stays reachable.

        Args:
            connection: Connection to remove
        """
        went_offline = False

        async with self._lock:
            if self._connections.pop(connection.id, None) is None:
                return

            for task_id in connection.rooms:
                members = self._rooms.get(task_id)
                if members:
                    members.discard(connection.id)
                    if not members:
                        del self._rooms[task_id]
            connection.rooms.clear()

            user_id = connection.user_id
            if user_id and self._users.get(user_id) == connection.id:
                del self._users[user_id]
                went_offline = True

        if went_offline and self.presence is not None:
            await self.presence.mark_offline(connection.user_id)

        logger.info(
            "ws_disconnected",
            connection_id=connection.id,
            user_id=connection.user_id,
        )

    async def join_room(self, connection: Connection, task_id: UUID) -> None:
        """Add a connection to a task's chat room.

        Args:
            connection: Connection joining
            task_id: Task whose room to join
        """
        async with self._lock:
            self._rooms.setdefault(task_id, set()).add(connection.id)
            connection.rooms.add(task_id)

        logger.info(
            "ws_room_joined",
            connection_id=connection.id,
            task_id=str(task_id),
        )

    async def leave_room(self, connection: Connection, task_id: UUID) -> None:
        """Remove a connection from a task's chat room.

        Args:
            connection: Connection leaving
            task_id: Task whose room to leave
        """
        async with self._lock:
            members = self._rooms.get(task_id)
            if members:
                members.discard(connection.id)
                if not members:
                    del self._rooms[task_id]
            connection.rooms.discard(task_id)

        logger.info(
            "ws_room_left",
            connection_id=connection.id,
            task_id=str(task_id),
        )

    async def send_message(
        self,
        connection: Connection,
        message: WSMessage,
    ) -> bool:
        """Send message to a specific connection.

        Args:
            connection: Target connection
            message: Message to send

        Returns:
            True if sent successfully
        """
        try:
            await connection.websocket.send_json(message.model_dump(mode="json"))
            return True
        except WebSocketDisconnect:
            await self.disconnect(connection)
            return False
        except Exception as e:
            logger.error(
                "ws_send_failed",
                connection_id=connection.id,
                error=str(e),
            )
            await self.disconnect(connection)
            return False

    async def send_to_user(self, user_id: str, message: WSMessage) -> bool:
        """Send a message to a user's active connection.

        Args:
            user_id: Target user
            message: Message to send

        Returns:
            True if the user was connected and the send succeeded
        """
        async with self._lock:
            connection_id = self._users.get(user_id)
            connection = self._connections.get(connection_id) if connection_id else None

        if connection is None:
            logger.debug(
                "ws_user_not_connected",
                user_id=user_id,
                message_type=message.type,
            )
            return False

        return await self.send_message(connection, message)

    async def broadcast(
        self,
        message: WSMessage,
        exclude_user: str | None = None,
    ) -> int:
        """Send a message to every connection except the excluded user's.

        Args:
            message: Message to broadcast
            exclude_user: User whose connections are skipped

        Returns:
            Number of connections message was sent to
        """
        async with self._lock:
            targets = [
                conn
                for conn in self._connections.values()
                if exclude_user is None or conn.user_id != exclude_user
            ]

        return await self._send_all(targets, message)

    async def broadcast_to_room(self, task_id: UUID, message: WSMessage) -> int:
        """Send a message to every connection in a task's room.

        Args:
            task_id: Target room
            message: Message to broadcast

        Returns:
            Number of connections message was sent to
        """
        async with self._lock:
            connection_ids = self._rooms.get(task_id, set()).copy()
            targets = [
                self._connections[conn_id]
                for conn_id in connection_ids
                if conn_id in self._connections
            ]

        if not targets:
            logger.debug(
                "ws_broadcast_no_connections",
                task_id=str(task_id),
                message_type=message.type,
            )
            return 0

        return await self._send_all(targets, message)

    async def _send_all(self, targets: list[Connection], message: WSMessage) -> int:
        sent_count = 0
        for connection in targets:
            if await self.send_message(connection, message):
                sent_count += 1

        logger.debug(
            "ws_broadcast_complete",
            message_type=message.type,
            sent_count=sent_count,
            failed_count=len(targets) - sent_count,
        )

        return sent_count

    def get_connection_for_user(self, user_id: str) -> Connection | None:
        """Active connection for a user, if any."""
        connection_id = self._users.get(user_id)
        return self._connections.get(connection_id) if connection_id else None

    def get_room_size(self, task_id: UUID) -> int:
        """Number of connections in a task's room."""
        return len(self._rooms.get(task_id, set()))

    def get_total_connections(self) -> int:
        """Get total number of active connections.

        Returns:
            Total connection count
        """
        return len(self._connections)
