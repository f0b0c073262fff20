"""API schemas for the task endpoints."""

from pydantic import BaseModel, ConfigDict, Field

from kanban_todo.domain.dtos import TaskDetails


class TaskDetailsResponse(BaseModel):
    """Body of GET /api/getTaskDetails.

    The due date keys are left out entirely (not null) when the task has no
    due date; the edit dialog checks for their presence.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    status: str
    importance: str
    categories: list[str] = Field(default_factory=list)
    due_date_time_raw: str | None = Field(default=None, alias="dueDateTimeRaw")
    due_date_time: str | None = Field(default=None, alias="dueDateTime")

    @classmethod
    def from_details(cls, details: TaskDetails) -> "TaskDetailsResponse":
        return cls(
            id=details.id,
            title=details.title,
            status=details.status,
            importance=details.importance,
            categories=details.categories,
            due_date_time_raw=details.due_date_raw,
            due_date_time=details.due_date,
        )

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class CreateTaskResponse(BaseModel):
    """Body of POST /api/createTask."""

    model_config = ConfigDict(populate_by_name=True)

    task_id: str = Field(alias="taskId")


class HealthResponse(BaseModel):
    """Body of GET /health."""

    status: str = Field(description="Always 'healthy' while the process serves")
    timestamp: str = Field(description="ISO timestamp of the check")
    version: str
    sessions: int = Field(description="Sessions currently held in memory")
    session_cleanup: dict | None = Field(
        default=None, description="Cleanup worker statistics"
    )
