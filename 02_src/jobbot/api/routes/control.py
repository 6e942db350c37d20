"""Control API routes: data reset and the scripted scenario."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ...app import IApplication
from ...logging_config import get_logger

logger = get_logger(__name__)


class StatusResponse(BaseModel):
    """Response model for status."""

    status: str


# Scenario driver registered by main.py; absent in tests and library use.
_sim_instance = None


def set_sim_instance(sim) -> None:
    global _sim_instance
    _sim_instance = sim


def get_sim_instance():
    return _sim_instance


def require_sim():
    """Dependency resolving the registered scenario driver or failing with 404."""
    if _sim_instance is None:
        raise HTTPException(status_code=404, detail="SIM not configured")
    return _sim_instance


def create_control_router(app: IApplication) -> APIRouter:
    """Create control router."""
    router = APIRouter(prefix="/api/control", tags=["control"])

    @router.post("/reset", response_model=StatusResponse)
    async def reset_system() -> dict:
        """Drop all jobs, profiles, dialogs and transcripts."""
        try:
            await app.reset()
        except Exception as e:
            logger.error("Reset failed: %s", e, exc_info=True)
            raise HTTPException(status_code=500, detail=str(e))
        return {"status": "ok"}

    @router.post("/sim/{action}", response_model=StatusResponse)
    async def control_sim(action: str, sim=Depends(require_sim)) -> dict:
        """Start or stop the scripted job scenario."""
        if action not in ("start", "stop"):
            raise HTTPException(status_code=404, detail=f"Unknown SIM action: {action}")

        try:
            await (sim.start() if action == "start" else sim.stop())
        except Exception as e:
            logger.error("SIM %s failed: %s", action, e, exc_info=True)
            raise HTTPException(status_code=500, detail=str(e))
        return {"status": "ok"}

    return router
