"""Observability API routes: trace events per job or conversation, bus traffic."""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from ...app import Application
from ...models import TraceEvent


class TraceEventResponse(BaseModel):
    """Response model for trace event."""

    id: str
    event_type: str
    actor: str
    data: dict[str, Any]
    timestamp: datetime


class BusMessageResponse(BaseModel):
    """Response model for a persisted bus message."""

    id: str
    topic: str
    source: str
    payload: dict[str, Any]
    timestamp: datetime


def _parse_after(after: str | None) -> datetime | None:
    if not after:
        return None
    try:
        return datetime.fromisoformat(after)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid after timestamp format")


def _to_response(events: list[TraceEvent]) -> list[dict]:
    return [
        {
            "id": e.id,
            "event_type": e.event_type,
            "actor": e.actor,
            "data": e.data,
            "timestamp": e.timestamp,
        }
        for e in events
    ]


def create_observability_router(app: Application) -> APIRouter:
    """Create observability router."""
    router = APIRouter(prefix="/api", tags=["observability"])

    @router.get("/trace-events", response_model=list[TraceEventResponse])
    async def get_trace_events(
        after: str | None = Query(None, description="ISO timestamp filter"),
        limit: int = Query(100, ge=1, le=1000),
        event_type: str | None = Query(
            None, description="Comma-separated event types, e.g. job_created,job_completed"
        ),
        actor: str | None = Query(None, description="Filter by actor"),
        job_id: str | None = Query(None, description="Only events about this job"),
        conversation_id: str | None = Query(
            None, description="Only events about this conversation"
        ),
    ) -> list[dict]:
        """Trace events, newest first."""
        after_dt = _parse_after(after)
        event_types = [t.strip() for t in event_type.split(",") if t.strip()] if event_type else None

        try:
            events = await app.storage.get_trace_events(
                after=after_dt,
                event_types=event_types,
                actor=actor,
                job_id=job_id,
                conversation_id=conversation_id,
                limit=limit,
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        return _to_response(events)

    @router.get("/jobs/{job_id}/trace", response_model=list[TraceEventResponse])
    async def get_job_trace(job_id: str) -> list[dict]:
        """Lifecycle of one job, oldest first: creation, completion, resume outcome."""
        try:
            if await app.registry.lookup(job_id) is None:
                raise HTTPException(status_code=404, detail=f"Sorry no job with ID {job_id}.")
            events = await app.storage.get_trace_events(job_id=job_id, limit=1000)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        return _to_response(list(reversed(events)))

    @router.get("/bus-messages", response_model=list[BusMessageResponse])
    async def get_bus_messages(limit: int = Query(100, ge=1, le=1000)) -> list[dict]:
        """Most recent bus messages, newest first."""
        try:
            messages = await app.storage.get_bus_messages(limit=limit)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        return [
            {
                "id": m.id,
                "topic": m.topic.value,
                "source": m.source,
                "payload": m.payload,
                "timestamp": m.timestamp,
            }
            for m in messages
        ]

    return router
