"""API request/response schemas."""

from kanban_todo.api.schemas.todo import (
    CreateTaskResponse,
    HealthResponse,
    TaskDetailsResponse,
)

__all__ = ["CreateTaskResponse", "HealthResponse", "TaskDetailsResponse"]
