"""Domain entities: sessions, tokens and the task enumerations."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


class TaskStatus(str, Enum):
    """Microsoft To Do task status values we write.

    Graph knows a few more (inProgress, waitingOnOthers, deferred); anything
    that is not COMPLETED is treated as "not completed" when reading.
    """

    NOT_STARTED = "notStarted"
    COMPLETED = "completed"


class TaskImportance(str, Enum):
    """Microsoft To Do importance values."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class KanbanColumn(str, Enum):
    """The three board columns. Values are the titles the UI sends back."""

    NOT_STARTED = "Not Started"
    DOING = "Doing"
    DONE = "Done"

    @classmethod
    def from_title(cls, title: str) -> "KanbanColumn | None":
        """Map a column title from the UI to a column, None if unknown."""
        for column in cls:
            if column.value == title:
                return column
        return None


# The category label that marks a task as "in progress" on the board.
DOING_CATEGORY = "Doing"


@dataclass(frozen=True)
class TokenResult:
    """Result of a token endpoint call.

    Hey future me - refresh_token may be empty on refresh! Microsoft usually
    rotates it, but when it doesn't the old one stays valid and must be kept.
    """

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "Bearer"
    scope: str | None = None


@dataclass(frozen=True)
class Session:
    """One authenticated browser.

    Frozen on purpose: the session store swaps whole records, so a failed
    refresh can never leave a half-updated session behind.
    """

    session_id: str
    access_token: str
    refresh_token: str
    expires_at: datetime
    created_at: datetime

    def is_token_expired(self, now: datetime) -> bool:
        """True when `now` is strictly after the access token expiry."""
        return now > self.expires_at

    def is_stale(self, now: datetime, max_age: timedelta) -> bool:
        """True when the token has been expired for longer than max_age."""
        return now > self.expires_at + max_age


__all__ = [
    "DOING_CATEGORY",
    "KanbanColumn",
    "Session",
    "TaskImportance",
    "TaskStatus",
    "TokenResult",
]
