"""Kanban column rules.

Hey future me - the board has no storage of its own! A task's column is
DERIVED every time tasks are fetched:

    status == completed            -> Done
    any category ~= "doing" (icase) -> Doing
    otherwise                      -> Not Started

The "Doing" category label on the Microsoft To Do task is the only persistent
record of the Doing column. plan_move() is the inverse used on drag & drop.
"""

import logging
import re
from collections.abc import Iterable
from datetime import datetime

from kanban_todo.domain.entities import DOING_CATEGORY, KanbanColumn, TaskStatus

logger = logging.getLogger(__name__)

# Graph emits 7 fractional digits ("2025-06-01T00:00:00.0000000"); datetime
# only takes up to 6, so anything beyond gets cut before parsing.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def is_doing_category(category: str) -> bool:
    """Case-insensitive match against the Doing label."""
    return category.casefold() == DOING_CATEGORY.casefold()


def is_completed(status: str | None) -> bool:
    """True for the completed status only."""
    return status == TaskStatus.COMPLETED.value


def derive_column(status: str | None, categories: Iterable[str] | None) -> KanbanColumn:
    """Compute which column a task renders into."""
    if is_completed(status):
        return KanbanColumn.DONE
    if any(is_doing_category(c) for c in categories or ()):
        return KanbanColumn.DOING
    return KanbanColumn.NOT_STARTED


def plan_move(
    categories: Iterable[str] | None, column: str
) -> tuple[TaskStatus, list[str]]:
    """Compute the new remote status and categories for a drag into `column`.

    Every "doing" label (any case) is stripped first, then exactly one "Doing"
    is appended when the target is the Doing column, so moving twice never
    duplicates it. Other categories keep their relative order.

    Args:
        categories: Current categories of the task
        column: Target column title as sent by the UI

    Returns:
        Tuple of (new status, new categories)
    """
    kept = [c for c in categories or () if not is_doing_category(c)]
    target = KanbanColumn.from_title(column)

    if target is KanbanColumn.DONE:
        return TaskStatus.COMPLETED, kept
    if target is KanbanColumn.DOING:
        return TaskStatus.NOT_STARTED, [*kept, DOING_CATEGORY]
    if target is None:
        logger.warning("Unknown column name received: %s", column)
    return TaskStatus.NOT_STARTED, kept


def parse_graph_datetime(raw: str) -> datetime | None:
    """Parse a Graph ISO-8601 date-time, None if it is not one."""
    value = raw.strip()
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    value = _FRACTION_RE.sub(r"\1", value)
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def format_due_date(raw: str) -> str:
    """Human format for a due date, e.g. "Jun 1, 2025".

    Unparseable input is returned unchanged so the UI still shows something.
    """
    parsed = parse_graph_datetime(raw)
    if parsed is None:
        return raw
    return f"{parsed:%b} {parsed.day}, {parsed.year}"
