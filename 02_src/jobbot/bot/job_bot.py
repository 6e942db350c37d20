"""JobBot: the turn handler tying commands, dialogs and notifications together."""

from ..channel import IChannelAdapter, TurnContext
from ..commands import CommandDispatcher, CommandKind, parse_job_id
from ..dialogs import IDialogEngine
from ..errors import JobBotError
from ..logging_config import get_logger
from ..models import (
    Activity,
    ConversationUpdateActivity,
    EventActivity,
    MessageActivity,
)
from ..proactive import IProactiveNotifier

logger = get_logger(__name__)

JOB_COMPLETED_EVENT = "jobCompleted"
WELCOME = (
    'Say "run" to start a job, "show" to view running jobs, '
    'or "done <job number>" to complete a job.'
)


class JobBot:
    """Handles every inbound activity for every conversation."""

    def __init__(
        self,
        adapter: IChannelAdapter,
        dispatcher: CommandDispatcher,
        dialogs: IDialogEngine,
        notifier: IProactiveNotifier,
    ):
        self._adapter = adapter
        self._dispatcher = dispatcher
        self._dialogs = dialogs
        self._notifier = notifier

    async def handle(self, activity: Activity) -> list[str]:
        """Process one inbound activity and return the replies sent in its turn."""
        return await self._adapter.process_activity(
            activity, self.on_turn, on_error=self.on_error
        )

    async def on_turn(self, turn: TurnContext) -> None:
        match turn.activity:
            case MessageActivity(text=text):
                await self._on_message(turn, text)
            case EventActivity(name=name, value=value):
                await self._on_event(turn, name, value)
            case ConversationUpdateActivity(members_added=members):
                await self._on_members_added(turn, members)
            case _:
                logger.debug("Ignoring activity %s", type(turn.activity).__name__)

        await turn.save_changes()

    async def on_error(self, turn: TurnContext, error: JobBotError) -> None:
        """Report a failed turn in the conversation that triggered it."""
        logger.warning(
            "Turn failed: %s",
            error,
            extra={"conversation_id": turn.reference.conversation_id},
        )
        await turn.send_activity(f"Sorry, something went wrong: {error}")

    async def _on_message(self, turn: TurnContext, text: str) -> None:
        command = await self._dispatcher.dispatch(turn, text)

        # Unclaimed text feeds the active dialog; without one it is dropped.
        if command.kind is CommandKind.UNRECOGNIZED and not turn.responded:
            await self._dialogs.continue_dialog(turn)

    async def _on_event(self, turn: TurnContext, name: str, value: object) -> None:
        if name != JOB_COMPLETED_EVENT:
            logger.debug("Ignoring event %s", name)
            return

        job_id = parse_job_id(value)
        if job_id is None:
            logger.info("Ignoring %s event with non-numeric value %r", name, value)
            return
        await self._notifier.complete_and_notify(turn, str(job_id))

    async def _on_members_added(self, turn: TurnContext, members) -> None:
        bot_id = turn.activity.recipient.id
        if any(member.id != bot_id for member in members):
            await turn.send_activity(WELCOME)
