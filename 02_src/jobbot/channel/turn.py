"""TurnContext: everything one turn of a conversation needs."""

from typing import TYPE_CHECKING, Awaitable, Callable

from ..models import Activity, ConversationReference, get_conversation_reference
from ..storage import IStorage, Scope
from .state import PropertyState

if TYPE_CHECKING:
    from .adapter import IChannelAdapter

AfterTurn = Callable[["TurnContext"], Awaitable[None]]


class TurnContext:
    """A single turn, inbound or proactive, bound to one conversation."""

    def __init__(
        self,
        activity: Activity,
        adapter: "IChannelAdapter",
        storage: IStorage,
        reference: ConversationReference | None = None,
        proactive: bool = False,
    ):
        self.activity = activity
        self.reference = reference or get_conversation_reference(activity)
        self.proactive = proactive
        self.conversation_state = PropertyState(
            storage, Scope.CONVERSATION, self.reference.conversation_key
        )
        self.user_state = PropertyState(storage, Scope.USER, self.reference.user_key)
        self.replies: list[str] = []
        self._adapter = adapter
        self._after_turn: list[AfterTurn] = []

    @property
    def responded(self) -> bool:
        return bool(self.replies)

    async def send_activity(self, text: str) -> None:
        await self._adapter.send_activity(self.reference, text)
        self.replies.append(text)

    def after_turn(self, work: AfterTurn) -> None:
        """Queue ``work`` to run once this turn has released its conversation lock.

        Replies sent from ``work`` still belong to this turn.
        """
        self._after_turn.append(work)

    async def run_after_turn(self) -> None:
        while self._after_turn:
            work = self._after_turn.pop(0)
            await work(self)

    async def save_changes(self) -> None:
        """Persist user and conversation state changed during this turn."""
        await self.user_state.save_changes()
        await self.conversation_state.save_changes()
