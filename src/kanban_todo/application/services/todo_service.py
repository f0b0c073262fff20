"""Board and task use cases on top of Microsoft To Do.

Hey future me - this service holds NO state. Every call takes the caller's
access token (from get_access_token) and goes straight to Graph. Column
placement is recomputed from status + categories on every board load, see
domain/value_objects/kanban.py for the rules.
"""

import json
import logging
import re

from kanban_todo.domain.dtos import BoardView, TaskCard, TaskDetails
from kanban_todo.domain.entities import TaskImportance, TaskStatus
from kanban_todo.domain.exceptions import EntityNotFoundException, ValidationError
from kanban_todo.domain.value_objects.kanban import (
    derive_column,
    format_due_date,
    is_completed,
    plan_move,
)
from kanban_todo.infrastructure.integrations.microsoft_client import MicrosoftClient
from kanban_todo.infrastructure.integrations.microsoft_schemas import (
    DateTimeTimeZone,
    TaskUpdate,
    TodoList,
)

logger = logging.getLogger(__name__)

# <input type="date"> always submits YYYY-MM-DD.
_DUE_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_IMPORTANCE_VALUES = {i.value for i in TaskImportance}


def parse_categories(raw: str) -> list[str]:
    """Parse the JSON array the edit dialog sends as `categories`.

    Empty input means "no categories".

    Raises:
        ValidationError: If the value is not a JSON array of strings
    """
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid categories format: {e.msg}") from e
    if not isinstance(value, list) or not all(isinstance(c, str) for c in value):
        raise ValidationError("Invalid categories format: expected a JSON array of strings")
    return value


class TodoService:
    """Use cases behind the lists page, the board and the /api endpoints."""

    def __init__(self, client: MicrosoftClient) -> None:
        """Initialize todo service.

        Args:
            client: Microsoft Graph client
        """
        self._client = client

    async def list_lists(self, access_token: str) -> list[TodoList]:
        """All To Do lists of the user, in Graph order."""
        return await self._client.get_lists(access_token)

    async def build_board(self, access_token: str, list_id: str) -> BoardView:
        """Fetch a list and its tasks and sort them into the three columns.

        Args:
            access_token: Valid Graph access token
            list_id: To Do list id

        Returns:
            BoardView with columns Not Started, Doing, Done (in that order),
            tasks inside a column in Graph order
        """
        todo_list = await self._client.get_list(access_token, list_id)
        tasks = await self._client.get_tasks(access_token, list_id)

        board = BoardView.empty(list_id=list_id, list_name=todo_list.display_name)
        for task in tasks:
            card = TaskCard(
                id=task.id,
                title=task.title,
                completed=is_completed(task.status),
                important=task.importance == TaskImportance.HIGH.value,
                due_date=(
                    format_due_date(task.due_date_time.date_time)
                    if task.due_date_time
                    else None
                ),
                categories=list(task.categories),
            )
            board.column(derive_column(task.status, task.categories).value).tasks.append(card)

        logger.debug(
            "Built board for list %s: %s",
            list_id,
            {c.title: len(c.tasks) for c in board.columns},
        )
        return board

    # Hey future me, the move re-reads the list's tasks instead of trusting what the board
    # rendered. We need the CURRENT categories so a drag never drops labels someone added
    # in the To Do app since the page loaded.
    async def move_task(
        self, access_token: str, list_id: str, task_id: str, column: str
    ) -> None:
        """Apply a drag & drop: set status + categories for the target column.

        Raises:
            EntityNotFoundException: If the task is not in the list
        """
        tasks = await self._client.get_tasks(access_token, list_id)
        task = next((t for t in tasks if t.id == task_id), None)
        if task is None:
            raise EntityNotFoundException("Task", task_id)

        status, categories = plan_move(task.categories, column)
        await self._client.update_task_status(
            access_token, list_id, task_id, status.value, categories
        )
        logger.info(
            "Moved task %s to %s",
            task_id,
            column,
            extra={"list_id": list_id, "task_id": task_id, "column": column},
        )

    async def set_importance(
        self, access_token: str, list_id: str, task_id: str, is_important: bool
    ) -> None:
        """Star (high) or unstar (normal) a task."""
        importance = TaskImportance.HIGH if is_important else TaskImportance.NORMAL
        await self._client.update_task_importance(
            access_token, list_id, task_id, importance.value
        )

    async def get_task_details(
        self, access_token: str, list_id: str, task_id: str
    ) -> TaskDetails:
        """Task data for the edit dialog."""
        task = await self._client.get_task(access_token, list_id, task_id)
        details = TaskDetails(
            id=task.id,
            title=task.title,
            status=task.status,
            importance=task.importance,
            categories=list(task.categories),
        )
        if task.due_date_time is not None:
            details.due_date_raw = task.due_date_time.date_time
            details.due_date = format_due_date(task.due_date_time.date_time)
        return details

    async def update_task_details(
        self,
        access_token: str,
        list_id: str,
        task_id: str,
        title: str,
        status: str,
        importance: str,
        due_date: str,
        categories: list[str],
    ) -> None:
        """Save the edit dialog.

        Args:
            title: New title (required, non-blank)
            status: "completed" marks the task done, anything else not started
            importance: low / normal / high, empty means normal
            due_date: YYYY-MM-DD or empty for no due date
            categories: Full category list to store

        Raises:
            ValidationError: On a blank title, unknown importance or bad date
        """
        if not title.strip():
            raise ValidationError("Missing required parameters")

        importance = importance or TaskImportance.NORMAL.value
        if importance not in _IMPORTANCE_VALUES:
            raise ValidationError(f"Invalid importance: {importance}")

        due: DateTimeTimeZone | None = None
        if due_date:
            if not _DUE_DATE_RE.match(due_date):
                raise ValidationError(f"Invalid due date: {due_date}")
            due = DateTimeTimeZone(date_time=f"{due_date}T00:00:00Z", time_zone="UTC")

        update = TaskUpdate(
            title=title,
            status=(
                TaskStatus.COMPLETED.value
                if status == TaskStatus.COMPLETED.value
                else TaskStatus.NOT_STARTED.value
            ),
            importance=importance,
            categories=categories,
            due_date_time=due,
        )
        await self._client.update_task_fields(access_token, list_id, task_id, update)

    async def create_task(self, access_token: str, list_id: str, title: str) -> str:
        """Create a task and return its id."""
        task = await self._client.create_task(access_token, list_id, title)
        logger.info("Created task %s in list %s", task.id, list_id)
        return task.id

    async def delete_task(self, access_token: str, list_id: str, task_id: str) -> None:
        """Delete a task."""
        await self._client.delete_task(access_token, list_id, task_id)
        logger.info("Deleted task %s from list %s", task_id, list_id)
