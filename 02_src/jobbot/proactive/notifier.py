"""ProactiveNotifier: completes jobs and resumes the conversation that started them."""

import uuid
from typing import Protocol

from ..channel import TurnContext
from ..dialogs import IDialogEngine, choose_dialog
from ..errors import AlreadyCompletedError, NotFoundError
from ..jobs import IJobRegistry
from ..logging_config import get_logger
from ..models import JobRecord, ResumeCommand, ResumeResult
from ..tracker import ITracker
from .scheduler import IResumeScheduler

logger = get_logger(__name__)

JOB_COMPLETED = "job_completed"
NOTIFICATION_SENT = "Job completed. Notification sent."


class IProactiveNotifier(Protocol):
    """Job completion with proactive notification."""

    async def complete_and_notify(
        self, turn: TurnContext, job_id: str
    ) -> JobRecord | None:
        """Complete ``job_id`` and queue the notice to its conversation.

        The notice goes out after ``turn`` releases its conversation lock.
        Returns None when the job could not be completed.
        """
        ...


class ProactiveNotifier:
    """Marks a job complete, then resumes its conversation with a notice and a dialog."""

    def __init__(
        self,
        registry: IJobRegistry,
        scheduler: IResumeScheduler,
        dialogs: IDialogEngine,
        tracker: ITracker,
    ):
        self._registry = registry
        self._scheduler = scheduler
        self._dialogs = dialogs
        self._tracker = tracker

    async def start(self) -> None:
        """Register the job-completed continuation with the scheduler."""
        self._scheduler.register_continuation(JOB_COMPLETED, self._notify_job_completed)

    async def complete_and_notify(
        self, turn: TurnContext, job_id: str
    ) -> JobRecord | None:
        job_id = str(job_id)
        try:
            record = await self._registry.mark_complete(job_id)
        except (NotFoundError, AlreadyCompletedError) as e:
            logger.info("Job %s not completed: %s", job_id, e, extra={"job_id": job_id})
            await turn.send_activity(str(e))
            return None

        async def notify(after: TurnContext) -> None:
            await self.notify(after, record)

        # The resume must not run under this turn's conversation lock.
        turn.after_turn(notify)
        return record

    async def notify(self, turn: TurnContext, record: JobRecord) -> ResumeResult:
        """Resume the conversation that owns ``record`` and acknowledge in ``turn``."""
        command = ResumeCommand(
            id=str(uuid.uuid4()),
            job_id=record.id,
            reference=record.reference,
            continuation=JOB_COMPLETED,
        )
        result = await self._scheduler.submit(command)

        if result.ok:
            await turn.send_activity(NOTIFICATION_SENT)
        else:
            await turn.send_activity(
                f"Job {record.id} completed, but the notification could not be "
                f"delivered: {result.error}"
            )

        await self._tracker.track(
            event_type="job_completed",
            actor="proactive_notifier",
            data={
                "job_id": record.id,
                "conversation_id": record.reference.conversation_id,
                "completed_from": turn.reference.conversation_id,
                "notified": result.ok,
            },
        )
        return result

    async def _notify_job_completed(
        self, turn: TurnContext, command: ResumeCommand
    ) -> None:
        await turn.send_activity(f"Your queued job {command.job_id} just completed.")

        profile = await self._dialogs.get_profile(turn)
        await self._dialogs.begin_dialog(turn, choose_dialog(profile))
        await turn.save_changes()
