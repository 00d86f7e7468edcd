"""WebSocket event handler.

Projects committed domain events onto connected WebSocket clients.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

import structlog

from taskmarket.api.schemas import (
    AvailabilityChangedPayload,
    NewMessagePayload,
    TaskAssignedPayload,
    TaskStatusUpdatedPayload,
    WSMessage,
    WSMessageType,
)
from taskmarket.events.types import (
    AvailabilityChangedEvent,
    Event,
    EventType,
    MessageSentEvent,
    TaskAssignedEvent,
    TaskStatusUpdatedEvent,
)

if TYPE_CHECKING:
    from taskmarket.api.websocket.manager import ConnectionManager

logger = structlog.get_logger()


class WebSocketEventHandler:
    """Converts events to WebSocket messages and routes them.

    Routing per event type:
    - availability changes and status updates go to everyone but the actor
    - assignments go to the assigned expert only
    - chat messages go to the task's room
    """

    def __init__(self, ws_manager: ConnectionManager) -> None:
        """Initialize with WebSocket manager.

        Args:
            ws_manager: ConnectionManager used for delivery
        """
        self.ws_manager = ws_manager

    async def handle(self, event: Event) -> None:
        """Deliver an event. Delivery failures are logged, never raised.

        Args:
            event: Event to handle
        """
        try:
            delivered = await self._route(event)
        except Exception as e:
            logger.warning(
                "ws_relay_failed",
                event_type=str(event.type),
                error=str(e),
            )
            return

        logger.debug(
            "ws_event_relayed",
            event_type=str(event.type),
            delivered=delivered,
        )

    async def _route(self, event: Event) -> int:
        match event.type:
            case EventType.EXPERT_AVAILABILITY_CHANGED:
                availability = cast(AvailabilityChangedEvent, event)
                return await self.ws_manager.broadcast(
                    self._availability_changed(availability),
                    exclude_user=event.actor_id,
                )
            case EventType.TASK_ASSIGNED:
                assigned = cast(TaskAssignedEvent, event)
                sent = await self.ws_manager.send_to_user(
                    assigned.expert_id,
                    self._task_assigned(assigned),
                )
                return 1 if sent else 0
            case EventType.TASK_STATUS_UPDATED:
                return await self.ws_manager.broadcast(
                    self._task_status_updated(cast(TaskStatusUpdatedEvent, event)),
                    exclude_user=event.actor_id,
                )
            case EventType.MESSAGE_SENT:
                message = cast(MessageSentEvent, event)
                return await self.ws_manager.broadcast_to_room(
                    message.task_id,
                    self._new_message(message),
                )
            case _:
                logger.debug("unhandled_event_type", event_type=str(event.type))
                return 0

    def _availability_changed(self, event: AvailabilityChangedEvent) -> WSMessage:
        payload = AvailabilityChangedPayload(
            expert_id=event.expert_id,
            name=event.name,
            is_available=event.is_available,
            skills=event.skills,
            rating=event.rating,
        )
        return WSMessage(
            type=WSMessageType.AVAILABILITY_CHANGED,
            payload=payload.model_dump(mode="json"),
        )

    def _task_assigned(self, event: TaskAssignedEvent) -> WSMessage:
        payload = TaskAssignedPayload(
            task_id=event.task_id,
            title=event.title,
            poster_id=event.poster_id,
            expert_id=event.expert_id,
            budget=event.budget,
            timeline=event.timeline,
        )
        return WSMessage(
            type=WSMessageType.TASK_ASSIGNED,
            payload=payload.model_dump(mode="json"),
        )

    def _task_status_updated(self, event: TaskStatusUpdatedEvent) -> WSMessage:
        payload = TaskStatusUpdatedPayload(
            task_id=event.task_id,
            status=event.status,
            previous_status=event.previous_status,
            poster_id=event.poster_id,
            expert_id=event.expert_id,
        )
        return WSMessage(
            type=WSMessageType.TASK_STATUS_UPDATED,
            payload=payload.model_dump(mode="json"),
        )

    def _new_message(self, event: MessageSentEvent) -> WSMessage:
        payload = NewMessagePayload(
            message_id=event.message_id,
            task_id=event.task_id,
            sender_id=event.sender_id,
            receiver_id=event.receiver_id,
            content=event.content,
            attachment_filename=event.attachment_filename,
            attachment_url=event.attachment_url,
            created_at=event.created_at,
        )
        return WSMessage(
            type=WSMessageType.NEW_MESSAGE,
            payload=payload.model_dump(mode="json"),
        )
