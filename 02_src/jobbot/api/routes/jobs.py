"""Job and transcript routes."""

from datetime import datetime

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ...app import Application


class JobResponse(BaseModel):
    """Response model for a job record."""

    id: str
    completed: bool
    channel_id: str
    conversation_id: str
    created_at: datetime
    completed_at: datetime | None = None


class MessageResponse(BaseModel):
    """Response model for a transcript line."""

    id: str
    role: str
    content: str
    timestamp: datetime


def create_jobs_router(app: Application) -> APIRouter:
    """Create jobs router."""
    router = APIRouter(prefix="/api", tags=["jobs"])

    @router.get("/jobs", response_model=list[JobResponse])
    async def list_jobs() -> list[dict]:
        """Current job registry snapshot."""
        try:
            jobs = await app.registry.list_jobs()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        return [
            {
                "id": job.id,
                "completed": job.completed,
                "channel_id": job.reference.channel_id,
                "conversation_id": job.reference.conversation_id,
                "created_at": job.created_at,
                "completed_at": job.completed_at,
            }
            for job in jobs
        ]

    @router.get(
        "/conversations/{conversation_id}/messages",
        response_model=list[MessageResponse],
    )
    async def get_transcript(conversation_id: str) -> list[dict]:
        """Inbound and outbound messages of a conversation, oldest first."""
        try:
            messages = await app.storage.get_messages(conversation_id)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        return [
            {
                "id": m.id,
                "role": m.role,
                "content": m.content,
                "timestamp": m.timestamp,
            }
            for m in messages
        ]

    return router
