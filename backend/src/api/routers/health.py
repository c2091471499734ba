"""Health check endpoints."""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.dependencies import get_engine
from services.revision_engine import RevisionEngine


logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    storage: str
    save_queue: str


@router.get("/health", response_model=HealthResponse)
async def health_check(
    engine: RevisionEngine = Depends(get_engine),
) -> HealthResponse:
    """Check that the workspace is reachable and saves are being processed."""
    storage_status = "healthy"
    try:
        if not await engine.fs.exists(""):
            storage_status = "unhealthy"
    except OSError:
        logger.exception("Workspace health check failed")
        storage_status = "unhealthy"

    queue_status = "healthy" if engine.save_queue.running else "unhealthy"

    return HealthResponse(
        status="healthy" if storage_status == queue_status == "healthy" else "degraded",
        storage=storage_status,
        save_queue=queue_status,
    )
