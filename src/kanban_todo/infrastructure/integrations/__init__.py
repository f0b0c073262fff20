"""External integration client implementations."""

from kanban_todo.infrastructure.integrations.http_pool import HttpClientPool
from kanban_todo.infrastructure.integrations.microsoft_client import MicrosoftClient

__all__ = [
    "HttpClientPool",
    "MicrosoftClient",
]
