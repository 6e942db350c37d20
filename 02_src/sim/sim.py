"""SIM implementation - scripted job scenario driven through the HTTP API."""

import asyncio
import re
from typing import Protocol

import httpx

from jobbot.logging_config import get_logger
from jobbot.tracker import ITracker

logger = get_logger(__name__)

JOB_ID_PATTERN = re.compile(r"new job ID: (\d+)")


class ISim(Protocol):
    """Generate traffic against a running bot."""

    async def start(self) -> None:
        """Start the scenario."""
        ...

    async def stop(self) -> None:
        """Stop the scenario."""
        ...


class Sim:
    """Plays a user who starts jobs and an operator who completes them out-of-band."""

    def __init__(
        self,
        api_url: str = "http://localhost:8000",
        tracker: ITracker | None = None,
        completion_delay: float = 2.0,
    ):
        self._api_url = api_url
        self._tracker = tracker
        self._completion_delay = completion_delay
        self._running = False
        self._task: asyncio.Task | None = None
        self._client: httpx.AsyncClient | None = None

    def set_tracker(self, tracker: ITracker) -> None:
        """Inject tracker for SIM trace events."""
        self._tracker = tracker

    async def start(self) -> None:
        """Start the scenario in the background."""
        if self._running:
            return

        self._running = True
        self._client = httpx.AsyncClient(base_url=self._api_url, timeout=10.0)
        self._task = asyncio.create_task(self._run_scenario())

    async def stop(self) -> None:
        """Stop scenario."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._client:
            await self._client.aclose()
            self._client = None

    async def _run_scenario(self) -> None:
        user = {"id": "user_ada", "name": "Ada"}
        conversation_id = "sim-ada|livechat"
        operator = {"id": "operator", "name": "Operator"}
        operator_conversation = "sim-operator"

        try:
            if self._tracker:
                await self._tracker.track("sim_started", "sim", {"scenario": "jobs"})

            await self._send(
                {
                    "type": "conversationUpdate",
                    "conversation_id": conversation_id,
                    "user": user,
                    "members_added": [user],
                }
            )
            # The operator conversation must exist before it can send events.
            await self._send(
                {
                    "type": "conversationUpdate",
                    "conversation_id": operator_conversation,
                    "user": operator,
                    "members_added": [operator],
                }
            )

            # First job: the user has no profile yet, so onboarding runs.
            job_id = await self._start_job(conversation_id, user)
            await self._complete_job(operator_conversation, operator, job_id)
            for answer in ("Ada", "Seattle"):
                if not self._running:
                    return
                await self._send(
                    {
                        "type": "message",
                        "conversation_id": conversation_id,
                        "user": user,
                        "text": answer,
                    }
                )

            # Second job: the profile is known, so the user is greeted directly.
            job_id = await self._start_job(conversation_id, user)
            await self._complete_job(operator_conversation, operator, job_id)

            await self._send(
                {
                    "type": "message",
                    "conversation_id": conversation_id,
                    "user": user,
                    "text": "show",
                }
            )

        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("SIM scenario error: %s", e)
        finally:
            if self._tracker:
                await self._tracker.track("sim_completed", "sim", {"scenario": "jobs"})

    async def _start_job(self, conversation_id: str, user: dict) -> str | None:
        replies = await self._send(
            {
                "type": "message",
                "conversation_id": conversation_id,
                "user": user,
                "text": "run",
            }
        )
        for reply in replies:
            match = JOB_ID_PATTERN.search(reply)
            if match:
                return match.group(1)
        logger.error("SIM: no job id in replies %s", replies)
        return None

    async def _complete_job(
        self, conversation_id: str, operator: dict, job_id: str | None
    ) -> None:
        if job_id is None:
            return
        await asyncio.sleep(self._completion_delay)
        await self._send(
            {
                "type": "event",
                "conversation_id": conversation_id,
                "user": operator,
                "name": "jobCompleted",
                "value": job_id,
            }
        )

    async def _send(self, activity: dict) -> list[str]:
        """Post one activity and return the replies of its turn."""
        if not self._client:
            return []

        try:
            response = await self._client.post("/api/activities", json=activity)
        except httpx.HTTPError as e:
            logger.error("SIM: Failed to send activity: %s", e)
            return []

        if response.status_code != 200:
            logger.error("SIM: Error sending activity: %s", response.status_code)
            return []

        replies = response.json().get("replies", [])
        logger.info("SIM: %s -> %s", activity.get("text") or activity["type"], replies)
        return replies
