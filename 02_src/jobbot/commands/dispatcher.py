"""CommandDispatcher: runs the job commands typed into a conversation."""

from ..channel import TurnContext
from ..errors import DuplicateJobError, PersistStoreError
from ..jobs import IJobRegistry, JobIdGenerator
from ..logging_config import get_logger
from ..models import JobRecord
from ..proactive import IProactiveNotifier
from ..tracker import ITracker
from .parser import Command, CommandKind, classify

logger = get_logger(__name__)

DONE_USAGE = 'Enter the job ID number after "done".'
EMPTY_JOB_LOG = "The job log is empty."


def render_job_table(jobs: list[JobRecord]) -> str:
    """Markdown table of job number, conversation id fragment and completed flag."""
    rows = [
        "| Job number | Conversation ID | Completed |",
        "| :--- | :---: | :---: |",
    ]
    for job in jobs:
        fragment = job.reference.conversation_id.split("|")[0]
        rows.append(f"| {job.id} | {fragment} | {str(job.completed).lower()} |")
    return "\n".join(rows)


class CommandDispatcher:
    """Dispatches classified text to the job registry and the notifier."""

    def __init__(
        self,
        registry: IJobRegistry,
        notifier: IProactiveNotifier,
        tracker: ITracker,
        id_generator: JobIdGenerator | None = None,
    ):
        self._registry = registry
        self._notifier = notifier
        self._tracker = tracker
        self._ids = id_generator or JobIdGenerator()

    async def dispatch(self, turn: TurnContext, text: str | None) -> Command:
        """Run the command ``text`` maps to. UNRECOGNIZED is returned untouched."""
        command = classify(text)

        if command.kind is CommandKind.RUN:
            await self.create_job(turn)
        elif command.kind is CommandKind.SHOW:
            await self.show_jobs(turn)
        elif command.kind is CommandKind.DONE:
            await self._notifier.complete_and_notify(turn, str(command.job_id))
        elif command.kind is CommandKind.DONE_MISSING_ID:
            await turn.send_activity(DONE_USAGE)

        return command

    async def create_job(self, turn: TurnContext) -> JobRecord | None:
        job_id = str(self._ids.next_id())

        await turn.send_activity(f"Need to create new job ID: {job_id}")
        try:
            record = await self._registry.create(job_id, turn.reference)
        except DuplicateJobError as e:
            await turn.send_activity(str(e))
            return None
        except PersistStoreError as e:
            logger.error("Job %s write failed: %s", job_id, e, extra={"job_id": job_id})
            await turn.send_activity(f"Write failed: {e}")
            return None

        await turn.send_activity("Successful write to log.")
        await self._tracker.track(
            event_type="job_created",
            actor="command_dispatcher",
            data={"job_id": job_id, "conversation_id": turn.reference.conversation_id},
        )
        return record

    async def show_jobs(self, turn: TurnContext) -> None:
        jobs = await self._registry.list_jobs()
        if not jobs:
            await turn.send_activity(EMPTY_JOB_LOG)
            return
        await turn.send_activity(render_job_table(jobs))
