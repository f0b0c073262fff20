"""Application services - sessions, sign-in flow and board use cases."""

from kanban_todo.application.services.microsoft_auth_service import (
    AuthUrlResult,
    MicrosoftAuthService,
)
from kanban_todo.application.services.session_store import ReadWriteLock, SessionStore
from kanban_todo.application.services.todo_service import TodoService, parse_categories

__all__ = [
    "AuthUrlResult",
    "MicrosoftAuthService",
    "ReadWriteLock",
    "SessionStore",
    "TodoService",
    "parse_categories",
]
