"""Background workers."""

from kanban_todo.application.workers.session_cleanup_worker import (
    SessionCleanupWorker,
    create_session_cleanup_worker,
)

__all__ = ["SessionCleanupWorker", "create_session_cleanup_worker"]
