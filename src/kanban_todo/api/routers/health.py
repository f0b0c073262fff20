"""Liveness endpoint for Docker/uptime probes."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Request

from kanban_todo import __version__
from kanban_todo.api.dependencies import get_session_store
from kanban_todo.api.schemas.todo import HealthResponse
from kanban_todo.application.services.session_store import SessionStore

router = APIRouter(tags=["health"])


# Hey future me - no Graph call here on purpose: the probe must stay green when
# Microsoft is down. Session count is the one number worth watching (leak check).
@router.get("/health", response_model=HealthResponse)
async def health(
    request: Request,
    session_store: SessionStore = Depends(get_session_store),
) -> HealthResponse:
    """Process is up and serving."""
    worker = getattr(request.app.state, "session_cleanup_worker", None)
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC).isoformat(),
        version=__version__,
        sessions=await session_store.count(),
        session_cleanup=worker.get_stats() if worker is not None else None,
    )
