"""View DTOs for the board and task detail pages.

Hey future me - these are dumb data carriers between TodoService and the
templates / JSON responses. Graph payloads never reach a template directly.
"""

from dataclasses import dataclass, field

from kanban_todo.domain.entities import KanbanColumn


@dataclass
class TaskCard:
    """One task as rendered on the board."""

    id: str
    title: str
    completed: bool
    important: bool
    due_date: str | None = None
    categories: list[str] = field(default_factory=list)


@dataclass
class BoardColumn:
    """A board column with its cards."""

    title: str
    tasks: list[TaskCard] = field(default_factory=list)


@dataclass
class BoardView:
    """The whole Kanban board for one list."""

    list_id: str
    list_name: str
    columns: list[BoardColumn]

    @classmethod
    def empty(cls, list_id: str, list_name: str) -> "BoardView":
        """Board with the three columns in display order and no cards."""
        return cls(
            list_id=list_id,
            list_name=list_name,
            columns=[BoardColumn(title=c.value) for c in KanbanColumn],
        )

    def column(self, title: str) -> BoardColumn:
        """Look up a column by title."""
        for col in self.columns:
            if col.title == title:
                return col
        raise KeyError(title)


@dataclass
class TaskDetails:
    """Task data for the edit dialog.

    due_date_raw is the Graph value (for the date input), due_date the
    human-formatted one.
    """

    id: str
    title: str
    status: str
    importance: str
    categories: list[str] = field(default_factory=list)
    due_date_raw: str | None = None
    due_date: str | None = None


__all__ = ["BoardColumn", "BoardView", "TaskCard", "TaskDetails"]
