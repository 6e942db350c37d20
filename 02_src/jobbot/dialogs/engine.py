"""DialogEngine: runs dialogs against per-conversation persisted state."""

from typing import Protocol

from ..channel import TurnContext
from ..logging_config import get_logger
from ..models import DialogFrame, DialogId, MessageActivity, UserProfile
from ..tracker import ITracker
from . import machine

logger = get_logger(__name__)

DIALOG_STATE_KEY = "dialog_state"
USER_PROFILE_KEY = "user"


class IDialogEngine(Protocol):
    """Per-conversation dialog stack."""

    async def begin_dialog(self, turn: TurnContext, dialog_id: DialogId) -> None:
        """Start a dialog, replacing whatever was active in the conversation."""
        ...

    async def continue_dialog(self, turn: TurnContext) -> bool:
        """Feed the turn's text to the active dialog. False if none is active."""
        ...

    async def get_profile(self, turn: TurnContext) -> UserProfile:
        """Load the profile of the turn's user."""
        ...


class DialogEngine:
    """Persists the dialog stack in conversation scope and the profile in user scope.

    State is saved after every step so a proactive turn and the next inbound
    turn always see each other's progress.
    """

    def __init__(self, tracker: ITracker):
        self._tracker = tracker

    async def get_stack(self, turn: TurnContext) -> list[DialogFrame]:
        raw = await turn.conversation_state.get(DIALOG_STATE_KEY, [])
        return [DialogFrame.from_dict(item) for item in raw or []]

    async def get_profile(self, turn: TurnContext) -> UserProfile:
        return UserProfile.from_dict(await turn.user_state.get(USER_PROFILE_KEY))

    async def active_dialog(self, turn: TurnContext) -> DialogFrame | None:
        stack = await self.get_stack(turn)
        return stack[-1] if stack else None

    async def begin_dialog(self, turn: TurnContext, dialog_id: DialogId) -> None:
        stack = await self.get_stack(turn)
        if stack:
            logger.info(
                "Replacing active dialog %s with %s",
                stack[-1].dialog_id.value,
                dialog_id.value,
                extra={"conversation_id": turn.reference.conversation_id},
            )

        profile = await self.get_profile(turn)
        transition = machine.begin(dialog_id, profile)
        await self._apply(turn, profile, transition)

        await self._tracker.track(
            event_type="dialog_started",
            actor="dialog_engine",
            data={
                "conversation_id": turn.reference.conversation_id,
                "dialog_id": dialog_id.value,
                "proactive": turn.proactive,
            },
        )

    async def continue_dialog(self, turn: TurnContext) -> bool:
        stack = await self.get_stack(turn)
        if not stack:
            return False

        text = turn.activity.text if isinstance(turn.activity, MessageActivity) else None
        profile = await self.get_profile(turn)
        frame = stack[-1]
        transition = machine.resume(frame, text, profile)
        await self._apply(turn, profile, transition)

        if transition.frame is None:
            await self._tracker.track(
                event_type="dialog_ended",
                actor="dialog_engine",
                data={
                    "conversation_id": turn.reference.conversation_id,
                    "dialog_id": frame.dialog_id.value,
                },
            )
        return True

    async def _apply(
        self,
        turn: TurnContext,
        profile: UserProfile,
        transition: machine.Transition,
    ) -> None:
        for reply in transition.replies:
            await turn.send_activity(reply)

        if transition.profile != profile:
            turn.user_state.set(USER_PROFILE_KEY, transition.profile.to_dict())

        # A single active dialog per conversation: the stack holds at most one frame.
        stack = [transition.frame] if transition.frame is not None else []
        turn.conversation_state.set(
            DIALOG_STATE_KEY, [frame.to_dict() for frame in stack]
        )
        await turn.save_changes()
