"""WebSocket endpoint for real-time notifications."""

from fastapi import APIRouter, Query, WebSocket

from ..dependencies import AppEventBus, WSManager
from ..websocket import WebSocketHandler

router = APIRouter(tags=["websocket"])


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    ws_manager: WSManager,
    event_bus: AppEventBus,
    token: str | None = Query(default=None),
) -> None:
    """WebSocket endpoint for real-time notifications.

    Identification:
        - Via query parameter: ?token=<jwt>
        - Or via message: {"type": "identify", "payload": {"token": "<jwt>"}}

    Message Types (Client -> Server):
        - identify: Present a token (or user_id when auth is disabled)
        - join-room: Join a task's chat room ({"task_id": ...})
        - leave-room: Leave a task's chat room
        - send-message: Send a chat message ({"task_id", "content", "attachment"?})
        - ping: Keep-alive ping

    Message Types (Server -> Client):
        - identified, joined, left, pong, error
        - availability-changed: An expert toggled availability
        - task-assigned: A task was assigned to you
        - task-status-updated: A task changed status
        - new-message: A chat message in a joined room

    Args:
        websocket: WebSocket connection
        ws_manager: Connection manager from app state
        event_bus: EventBus for messages sent over the socket
        token: Optional JWT token for identification
    """
    handler = WebSocketHandler(manager=ws_manager, event_bus=event_bus)
    await handler.handle_connection(websocket=websocket, token=token)
