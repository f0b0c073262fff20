"""Task endpoints called by the board JavaScript (static/js/kanban.js).

Hey future me - the parameter names (listId, taskId, isImportant, ...) and the
plain-text success bodies are what kanban.js sends and expects. Don't "fix"
them to snake_case or JSON. Form fields default to "" and are checked by hand
so a missing field is a 400 like every other bad input, not FastAPI's 422.
"""

import logging

from fastapi import APIRouter, Depends, Form, Query
from fastapi.responses import JSONResponse, PlainTextResponse

from kanban_todo.api.dependencies import get_access_token, get_todo_service
from kanban_todo.api.schemas.todo import CreateTaskResponse, TaskDetailsResponse
from kanban_todo.application.services.todo_service import TodoService, parse_categories
from kanban_todo.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["tasks"])

MISSING_PARAMETERS = "Missing required parameters"


def _require(*values: str) -> None:
    if not all(values):
        raise ValidationError(MISSING_PARAMETERS)


@router.post("/updateTask", response_class=PlainTextResponse)
async def update_task(
    list_id: str = Form("", alias="listId"),
    task_id: str = Form("", alias="taskId"),
    column: str = Form(""),
    access_token: str = Depends(get_access_token),
    todo_service: TodoService = Depends(get_todo_service),
) -> PlainTextResponse:
    """Move a task to another column (drag & drop)."""
    _require(list_id, task_id, column)
    await todo_service.move_task(access_token, list_id, task_id, column)
    return PlainTextResponse("Task updated successfully")


@router.post("/toggleImportance", response_class=PlainTextResponse)
async def toggle_importance(
    list_id: str = Form("", alias="listId"),
    task_id: str = Form("", alias="taskId"),
    is_important: str = Form("", alias="isImportant"),
    access_token: str = Depends(get_access_token),
    todo_service: TodoService = Depends(get_todo_service),
) -> PlainTextResponse:
    """Star / unstar a task. Only the literal "true" means important."""
    _require(list_id, task_id)
    await todo_service.set_importance(
        access_token, list_id, task_id, is_important=is_important == "true"
    )
    return PlainTextResponse("Task importance updated successfully")


@router.get("/getTaskDetails")
async def get_task_details(
    list_id: str = Query("", alias="listId"),
    task_id: str = Query("", alias="taskId"),
    access_token: str = Depends(get_access_token),
    todo_service: TodoService = Depends(get_todo_service),
) -> JSONResponse:
    """Task data for the edit dialog."""
    _require(list_id, task_id)
    details = await todo_service.get_task_details(access_token, list_id, task_id)
    return JSONResponse(TaskDetailsResponse.from_details(details).to_payload())


@router.post("/updateTaskDetails", response_class=PlainTextResponse)
async def update_task_details(
    list_id: str = Form("", alias="listId"),
    task_id: str = Form("", alias="taskId"),
    title: str = Form(""),
    status: str = Form(""),
    importance: str = Form(""),
    due_date: str = Form("", alias="dueDate"),
    categories: str = Form(""),
    access_token: str = Depends(get_access_token),
    todo_service: TodoService = Depends(get_todo_service),
) -> PlainTextResponse:
    """Save the edit dialog."""
    _require(list_id, task_id, title)
    await todo_service.update_task_details(
        access_token,
        list_id,
        task_id,
        title=title,
        status=status,
        importance=importance,
        due_date=due_date,
        categories=parse_categories(categories),
    )
    return PlainTextResponse("Task updated successfully")


@router.post("/createTask")
async def create_task(
    list_id: str = Form("", alias="listId"),
    title: str = Form(""),
    access_token: str = Depends(get_access_token),
    todo_service: TodoService = Depends(get_todo_service),
) -> JSONResponse:
    """Create a task, answer with its id."""
    _require(list_id, title)
    task_id = await todo_service.create_task(access_token, list_id, title)
    return JSONResponse(CreateTaskResponse(task_id=task_id).model_dump(by_alias=True))


@router.post("/deleteTask", response_class=PlainTextResponse)
async def delete_task(
    list_id: str = Form("", alias="listId"),
    task_id: str = Form("", alias="taskId"),
    access_token: str = Depends(get_access_token),
    todo_service: TodoService = Depends(get_todo_service),
) -> PlainTextResponse:
    """Delete a task."""
    _require(list_id, task_id)
    await todo_service.delete_task(access_token, list_id, task_id)
    return PlainTextResponse("Task deleted successfully")
