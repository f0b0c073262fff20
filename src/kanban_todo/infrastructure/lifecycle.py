"""Application lifecycle management for startup and shutdown tasks.

Startup order:
1. Logging
2. Fail fast on missing MS_CLIENT_ID / MS_CLIENT_SECRET and broken templates
3. Shared HTTP client, MicrosoftClient, SessionStore (on app.state)
4. SessionCleanupWorker as a background task

Shutdown runs in reverse and never stops half-way.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI

from kanban_todo.api.routers._shared import verify_templates
from kanban_todo.application.services.session_store import SessionStore
from kanban_todo.application.workers.session_cleanup_worker import (
    create_session_cleanup_worker,
)
from kanban_todo.config import get_settings
from kanban_todo.infrastructure.integrations.http_pool import HttpClientPool
from kanban_todo.infrastructure.integrations.microsoft_client import MicrosoftClient
from kanban_todo.infrastructure.observability import configure_logging

logger = logging.getLogger(__name__)


# Listen future me, everything before `yield` runs at STARTUP, everything after at SHUTDOWN.
# A ConfigurationError raised here stops uvicorn from serving at all, which is exactly what
# we want for missing credentials. Routes find their collaborators on app.state.
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()

    configure_logging(
        log_level=settings.log_level,
        json_format=settings.observability.log_json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s", settings.app_name)

    cleanup_worker = None
    cleanup_task: asyncio.Task[None] | None = None
    try:
        settings.require_microsoft_credentials()
        verify_templates()

        # First get_client() call fixes the pool config; MicrosoftClient borrows
        # the same instance lazily and never closes it.
        await HttpClientPool.get_client(settings.http)
        microsoft_client = MicrosoftClient(settings.microsoft, http=settings.http)
        app.state.microsoft_client = microsoft_client

        session_store = SessionStore(
            token_client=microsoft_client,
            session_max_age_seconds=settings.api.session_max_age,
        )
        app.state.session_store = session_store
        logger.info("Session store initialized (in-memory)")

        cleanup_worker = create_session_cleanup_worker(
            session_store,
            check_interval=settings.api.session_cleanup_interval_seconds,
        )
        cleanup_task = asyncio.create_task(cleanup_worker.start())
        app.state.session_cleanup_worker = cleanup_worker

        yield

    except Exception as e:
        logger.exception("Error during application startup: %s", e)
        raise
    finally:
        logger.info("Shutting down application")

        if cleanup_worker is not None:
            cleanup_worker.stop()
        if cleanup_task is not None:
            cleanup_task.cancel()
            with suppress(asyncio.CancelledError):
                await cleanup_task

        session_store = getattr(app.state, "session_store", None)
        if session_store is not None:
            await session_store.close()

        microsoft_client = getattr(app.state, "microsoft_client", None)
        if microsoft_client is not None:
            await microsoft_client.close()

        await HttpClientPool.close()
        logger.info("Shutdown complete")
