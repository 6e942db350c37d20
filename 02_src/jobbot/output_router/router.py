"""OutputRouter implementation."""

import uuid
from datetime import datetime, timezone
from typing import Protocol

from ..event_bus import IEventBus
from ..models import BusMessage, Message, Topic
from ..storage import IStorage
from ..tracker import ITracker


class IOutputRouter(Protocol):
    """Delivery of outbound activities into conversation transcripts."""

    async def start(self) -> None:
        """Subscribe to EventBus topic: OUTPUT."""
        ...

    async def stop(self) -> None:
        """Unsubscribe from EventBus."""
        ...


class OutputRouter:
    """Writes every outbound bot message to its conversation transcript."""

    def __init__(
        self,
        event_bus: IEventBus,
        storage: IStorage,
        tracker: ITracker,
    ):
        self._event_bus = event_bus
        self._storage = storage
        self._tracker = tracker

    async def start(self) -> None:
        """Subscribe to OUTPUT topic."""
        self._event_bus.subscribe(Topic.OUTPUT, self._handle_output)

    async def stop(self) -> None:
        """Unsubscribe from OUTPUT topic."""
        self._event_bus.unsubscribe(Topic.OUTPUT, self._handle_output)

    async def _handle_output(self, bus_message: BusMessage) -> None:
        payload = bus_message.payload
        conversation_id = payload["conversation_id"]
        content = payload.get("content", "")

        await self._storage.save_message(
            Message(
                id=str(uuid.uuid4()),
                conversation_id=conversation_id,
                role="bot",
                content=content,
                timestamp=datetime.now(timezone.utc),
            )
        )

        await self._tracker.track(
            event_type="output_delivered",
            actor="output_router",
            data={
                "conversation_id": conversation_id,
                "content_summary": content[:100],
            },
        )
