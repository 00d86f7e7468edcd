"""Logging event handler for observability."""

from __future__ import annotations

from typing import Any

import structlog

from taskmarket.events.types import Event

logger = structlog.get_logger()

# Fields carried by every event; the rest are event-specific
_BASE_FIELDS = {"type", "actor_id", "timestamp"}

# Free text stays out of the logs
_REDACTED_FIELDS = {"content"}


class LoggingEventHandler:
    """Logs every event passing through the bus.

    Subscribed as a global handler.
    """

    def __init__(self, log_level: str = "info") -> None:
        """Initialize logging handler.

        Args:
            log_level: Log level for events (debug, info, warning)
        """
        self.log_level = log_level

    async def handle(self, event: Event) -> None:
        """Log the event with structured data.

        Args:
            event: Event to log
        """
        log_data: dict[str, Any] = {
            "event_type": str(event.type),
            "actor_id": event.actor_id,
            "timestamp": event.timestamp.isoformat(),
        }
        log_data.update(self._extract_extra_fields(event))

        log = getattr(logger, self.log_level, logger.info)
        log("event_logged", **log_data)

    def _extract_extra_fields(self, event: Event) -> dict[str, Any]:
        fields = event.model_dump(
            mode="json",
            exclude=_BASE_FIELDS | _REDACTED_FIELDS,
        )
        return {key: value for key, value in fields.items() if value is not None}
