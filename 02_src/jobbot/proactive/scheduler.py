"""ResumeScheduler: executes proactive resume commands delivered over the EventBus."""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Awaitable, Callable, Protocol

from ..channel import IChannelAdapter, TurnContext
from ..errors import ResumeUnreachableError
from ..event_bus import IEventBus
from ..logging_config import get_logger
from ..models import BusMessage, ResumeCommand, ResumeResult, Topic
from ..tracker import ITracker

logger = get_logger(__name__)

Continuation = Callable[[TurnContext, ResumeCommand], Awaitable[None]]


class IResumeScheduler(Protocol):
    """Message-passing front for proactive resumes."""

    def register_continuation(self, name: str, handler: Continuation) -> None:
        """Make ``handler`` runnable by ResumeCommands naming ``name``."""
        ...

    async def submit(self, command: ResumeCommand) -> ResumeResult:
        """Enqueue a resume and wait for its outcome."""
        ...


class ResumeScheduler:
    """Runs ResumeCommands published on the RESUME topic.

    ``submit`` publishes the command and waits for the matching result; the
    subscriber side opens the proactive turn through the channel adapter,
    bounded by ``timeout`` seconds, and reports the outcome on RESUME_RESULT.
    Continuations are looked up by name, so a command is plain data.
    """

    def __init__(
        self,
        event_bus: IEventBus,
        adapter: IChannelAdapter,
        tracker: ITracker,
        timeout: float = 10.0,
    ):
        self._event_bus = event_bus
        self._adapter = adapter
        self._tracker = tracker
        self._timeout = timeout
        self._continuations: dict[str, Continuation] = {}
        self._pending: dict[str, asyncio.Future] = {}

    def register_continuation(self, name: str, handler: Continuation) -> None:
        self._continuations[name] = handler

    async def start(self) -> None:
        """Subscribe to RESUME topic."""
        self._event_bus.subscribe(Topic.RESUME, self._handle_resume)

    async def stop(self) -> None:
        """Unsubscribe and fail whatever is still waiting."""
        self._event_bus.unsubscribe(Topic.RESUME, self._handle_resume)
        for command_id, future in list(self._pending.items()):
            if not future.done():
                future.set_result(
                    ResumeResult(command_id, ok=False, error="Resume scheduler stopped")
                )

    async def submit(self, command: ResumeCommand) -> ResumeResult:
        future = asyncio.get_running_loop().create_future()
        self._pending[command.id] = future

        try:
            await self._event_bus.publish(
                BusMessage(
                    id=str(uuid.uuid4()),
                    topic=Topic.RESUME,
                    payload=command.to_dict(),
                    source="resume_scheduler",
                    timestamp=datetime.now(timezone.utc),
                )
            )

            # publish() runs a RESUME subscriber inline, so this wait only
            # applies when none answered; execute() bounds the resume itself.
            if not future.done():
                try:
                    await asyncio.wait_for(asyncio.shield(future), timeout=self._timeout)
                except asyncio.TimeoutError:
                    return ResumeResult(
                        command.id,
                        ok=False,
                        error=f"No resume result within {self._timeout:g}s",
                    )

            return future.result()
        finally:
            self._pending.pop(command.id, None)

    async def execute(self, command: ResumeCommand) -> ResumeResult:
        """Open the proactive turn for ``command`` and run its continuation."""
        handler = self._continuations.get(command.continuation)
        if handler is None:
            return ResumeResult(
                command.id,
                ok=False,
                error=f"Unknown continuation: {command.continuation}",
            )

        async def logic(turn: TurnContext) -> None:
            await handler(turn, command)

        try:
            await asyncio.wait_for(
                self._adapter.continue_conversation(command.reference, logic),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            error = f"Resume timed out after {self._timeout:g}s"
        except ResumeUnreachableError as e:
            error = str(e)
        except Exception as e:
            logger.error(
                "Resume %s failed: %s",
                command.id,
                e,
                exc_info=True,
                extra={"command_id": command.id, "job_id": command.job_id},
            )
            error = str(e) or type(e).__name__
        else:
            return ResumeResult(command.id, ok=True)

        logger.warning(
            "Resume %s for job %s failed: %s",
            command.id,
            command.job_id,
            error,
            extra={"command_id": command.id, "job_id": command.job_id},
        )
        return ResumeResult(command.id, ok=False, error=error)

    async def _handle_resume(self, bus_message: BusMessage) -> None:
        command = ResumeCommand.from_dict(bus_message.payload)
        result = await self.execute(command)

        future = self._pending.get(command.id)
        if future is not None and not future.done():
            future.set_result(result)

        await self._tracker.track(
            event_type="resume_completed" if result.ok else "resume_failed",
            actor="resume_scheduler",
            data={
                "command_id": command.id,
                "job_id": command.job_id,
                "conversation_id": command.reference.conversation_id,
                "error": result.error,
            },
        )

        await self._event_bus.publish(
            BusMessage(
                id=str(uuid.uuid4()),
                topic=Topic.RESUME_RESULT,
                payload=result.to_dict(),
                source="resume_scheduler",
                timestamp=datetime.now(timezone.utc),
            )
        )
