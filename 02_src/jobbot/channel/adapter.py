"""Channel adapter: runs inbound turns and re-enters stored conversations."""

import uuid
from datetime import datetime, timezone
from typing import Awaitable, Callable, Protocol

from ..errors import JobBotError, ResumeUnreachableError
from ..event_bus import IEventBus
from ..logging_config import get_logger
from ..models import (
    Activity,
    BusMessage,
    ConversationReference,
    EventActivity,
    Message,
    MessageActivity,
    Topic,
)
from ..storage import IStorage, Scope
from .locks import ConversationLocks
from .turn import TurnContext

logger = get_logger(__name__)

TurnLogic = Callable[[TurnContext], Awaitable[None]]
TurnErrorHandler = Callable[[TurnContext, JobBotError], Awaitable[None]]

REFERENCE_KEY = "conversation_reference"
CONTINUE_EVENT = "continueConversation"


class IChannelAdapter(Protocol):
    """Turn execution and outbound delivery for a chat channel."""

    async def process_activity(
        self,
        activity: Activity,
        logic: TurnLogic,
        on_error: TurnErrorHandler | None = None,
    ) -> list[str]:
        """Run ``logic`` for an inbound activity. Return the replies sent."""
        ...

    async def continue_conversation(
        self, reference: ConversationReference, logic: TurnLogic
    ) -> list[str]:
        """Open a proactive turn on a stored reference and run ``logic`` in it."""
        ...

    async def send_activity(self, reference: ConversationReference, text: str) -> None:
        """Deliver an outbound text to the referenced conversation."""
        ...


class ChannelAdapter:
    """In-process adapter.

    Outbound text is published on the OUTPUT topic for the OutputRouter to
    deliver. A conversation is reachable for proactive turns once an inbound
    turn has stored its reference in conversation scope, which keeps
    reachability intact across restarts.
    """

    def __init__(
        self,
        event_bus: IEventBus,
        storage: IStorage,
        locks: ConversationLocks | None = None,
    ):
        self._event_bus = event_bus
        self._storage = storage
        self._locks = locks or ConversationLocks()

    @property
    def locks(self) -> ConversationLocks:
        return self._locks

    async def process_activity(
        self,
        activity: Activity,
        logic: TurnLogic,
        on_error: TurnErrorHandler | None = None,
    ) -> list[str]:
        """Run ``logic`` for an inbound activity. Return the replies sent.

        Work queued with ``turn.after_turn`` runs once the conversation lock
        is released, so it may wait on turns in other conversations. A
        JobBotError raised anywhere in the turn, including the inbound
        bookkeeping writes, goes to ``on_error`` when one is given.
        """
        turn = TurnContext(activity, self, self._storage)
        key = turn.reference.conversation_key

        try:
            async with self._locks.hold(key):
                await self._record_inbound(activity)
                await self._storage.put_property(
                    Scope.CONVERSATION, key, REFERENCE_KEY, turn.reference.to_dict()
                )
                await logic(turn)
            await turn.run_after_turn()
        except JobBotError as e:
            if on_error is None:
                raise
            await on_error(turn, e)

        return turn.replies

    async def continue_conversation(
        self, reference: ConversationReference, logic: TurnLogic
    ) -> list[str]:
        """Open a proactive turn on a stored reference and run ``logic`` in it."""
        key = reference.conversation_key
        known = await self._storage.get_property(Scope.CONVERSATION, key, REFERENCE_KEY)
        if known is None:
            raise ResumeUnreachableError(
                f"Conversation {reference.conversation_id} on channel "
                f"{reference.channel_id} is not reachable"
            )

        activity = EventActivity(
            id=str(uuid.uuid4()),
            channel_id=reference.channel_id,
            conversation_id=reference.conversation_id,
            from_account=reference.user,
            recipient=reference.bot,
            service_url=reference.service_url,
            name=CONTINUE_EVENT,
        )
        turn = TurnContext(
            activity, self, self._storage, reference=reference, proactive=True
        )

        logger.info(
            "Continuing conversation %s",
            reference.conversation_id,
            extra={"conversation_id": reference.conversation_id},
        )
        async with self._locks.hold(key):
            await logic(turn)
        await turn.run_after_turn()

        return turn.replies

    async def send_activity(self, reference: ConversationReference, text: str) -> None:
        """Deliver an outbound text to the referenced conversation."""
        await self._event_bus.publish(
            BusMessage(
                id=str(uuid.uuid4()),
                topic=Topic.OUTPUT,
                payload={
                    "channel_id": reference.channel_id,
                    "conversation_id": reference.conversation_id,
                    "user_id": reference.user.id,
                    "content": text,
                },
                source="channel_adapter",
                timestamp=datetime.now(timezone.utc),
            )
        )

    async def _record_inbound(self, activity: Activity) -> None:
        now = datetime.now(timezone.utc)
        payload = {
            "channel_id": activity.channel_id,
            "conversation_id": activity.conversation_id,
            "from_id": activity.from_account.id,
            "activity_type": type(activity).__name__,
        }

        if isinstance(activity, MessageActivity):
            payload["text"] = activity.text
            await self._storage.save_message(
                Message(
                    id=str(uuid.uuid4()),
                    conversation_id=activity.conversation_id,
                    role="user",
                    content=activity.text,
                    timestamp=now,
                )
            )

        await self._event_bus.publish(
            BusMessage(
                id=str(uuid.uuid4()),
                topic=Topic.INPUT,
                payload=payload,
                source="channel_adapter",
                timestamp=now,
            )
        )
