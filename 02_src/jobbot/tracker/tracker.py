"""Tracker: the trace of everything that happens to jobs and conversations."""

import uuid
from datetime import datetime, timezone
from typing import Any, Protocol

from ..event_bus import IEventBus
from ..logging_config import get_logger
from ..models import BusMessage, Topic, TraceEvent
from ..storage import IStorage

logger = get_logger(__name__)

# Payload keys lifted into trace data so events can be correlated per job and conversation.
CORRELATION_KEYS = ("conversation_id", "job_id", "command_id")

# One trace event type per bus topic.
TOPIC_EVENTS = {
    Topic.INPUT: "activity_received",
    Topic.OUTPUT: "reply_published",
    Topic.RESUME: "resume_requested",
    Topic.RESUME_RESULT: "resume_reported",
}


def correlation(payload: dict[str, Any]) -> dict[str, Any]:
    """Pick job, conversation and command ids out of a bus payload.

    Resume commands carry the conversation inside their reference and name
    themselves ``id``.
    """
    found = {key: payload[key] for key in CORRELATION_KEYS if key in payload}

    reference = payload.get("reference")
    if isinstance(reference, dict) and "conversation_id" in reference:
        found.setdefault("conversation_id", reference["conversation_id"])
    if "continuation" in payload and "id" in payload:
        found.setdefault("command_id", payload["id"])

    return found


class ITracker(Protocol):
    """Records TraceEvents from bus traffic and from direct component calls."""

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create TraceEvent and save to Storage."""
        ...

    async def stop(self) -> None:
        """Stop tracker."""
        ...


class Tracker:
    """Traces every bus message plus the domain events components report."""

    def __init__(self, event_bus: IEventBus, storage: IStorage):
        self._event_bus = event_bus
        self._storage = storage

    async def start(self) -> None:
        for topic in Topic:
            self._event_bus.subscribe(topic, self._on_bus_message)

    async def stop(self) -> None:
        for topic in Topic:
            self._event_bus.unsubscribe(topic, self._on_bus_message)

    async def _on_bus_message(self, bus_message: BusMessage) -> None:
        data = correlation(bus_message.payload)
        data["source"] = bus_message.source
        data["payload_summary"] = str(bus_message.payload)[:100]

        await self.track(
            event_type=TOPIC_EVENTS[bus_message.topic],
            actor="event_bus",
            data=data,
        )

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create TraceEvent and save to Storage."""
        event = TraceEvent(
            id=str(uuid.uuid4()),
            event_type=event_type,
            actor=actor,
            data=data,
            timestamp=datetime.now(timezone.utc),
        )
        logger.debug(
            "%s by %s",
            event_type,
            actor,
            extra={key: data[key] for key in CORRELATION_KEYS if key in data},
        )
        await self._storage.save_trace_event(event)
