"""Value objects and pure domain rules."""

from kanban_todo.domain.value_objects.kanban import (
    derive_column,
    format_due_date,
    is_doing_category,
    parse_graph_datetime,
    plan_move,
)

__all__ = [
    "derive_column",
    "format_due_date",
    "is_doing_category",
    "parse_graph_datetime",
    "plan_move",
]
