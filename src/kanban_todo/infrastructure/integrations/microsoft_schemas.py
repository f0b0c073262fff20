"""Typed payloads for the Microsoft token endpoint and Graph To Do API.

Hey future me - every response body goes through one of these models before
anything else touches it. A missing required field fails at deserialization
(MalformedResponseError / TokenExchangeError in the client) instead of as a
KeyError three layers up. Graph adds fields all the time, so extra="ignore".
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _GraphModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TokenResponse(_GraphModel):
    """OAuth2 token endpoint response."""

    access_token: str = Field(min_length=1)
    token_type: str = "Bearer"
    expires_in: int = Field(default=3600, ge=0)
    refresh_token: str = ""
    scope: str | None = None


class TokenErrorResponse(_GraphModel):
    """OAuth2 error body ({"error": "invalid_grant", ...})."""

    error: str | None = None
    error_description: str | None = None


class DateTimeTimeZone(_GraphModel):
    """Graph dateTimeTimeZone resource."""

    date_time: str = Field(alias="dateTime")
    time_zone: str = Field(default="UTC", alias="timeZone")


class TodoList(_GraphModel):
    """A Microsoft To Do list."""

    id: str
    display_name: str = Field(default="", alias="displayName")


class TodoListCollection(_GraphModel):
    value: list[TodoList] = Field(default_factory=list)


class TodoTask(_GraphModel):
    """A Microsoft To Do task."""

    id: str
    title: str = ""
    status: str = "notStarted"
    importance: str = "normal"
    due_date_time: DateTimeTimeZone | None = Field(default=None, alias="dueDateTime")
    created_date_time: str | None = Field(default=None, alias="createdDateTime")
    # Graph omits the key, or sends null, when there are no categories.
    categories: list[str] = Field(default_factory=list)

    @field_validator("categories", mode="before")
    @classmethod
    def _null_categories(cls, value: object) -> object:
        return [] if value is None else value


class TodoTaskCollection(_GraphModel):
    value: list[TodoTask] = Field(default_factory=list)


class TaskUpdate(_GraphModel):
    """PATCH body for the task edit dialog.

    Serialized with by_alias + exclude_none, so due_date_time only goes out
    when a due date was given.
    """

    title: str
    status: str
    importance: str
    categories: list[str] = Field(default_factory=list)
    due_date_time: DateTimeTimeZone | None = Field(default=None, alias="dueDateTime")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


__all__ = [
    "DateTimeTimeZone",
    "TaskUpdate",
    "TodoList",
    "TodoListCollection",
    "TodoTask",
    "TodoTaskCollection",
    "TokenErrorResponse",
    "TokenResponse",
]
