"""Configuration module for Kanban To Do."""

from .settings import (
    ApiSettings,
    HttpSettings,
    MicrosoftSettings,
    ObservabilitySettings,
    Settings,
    TlsFiles,
    get_settings,
)

__all__ = [
    "ApiSettings",
    "HttpSettings",
    "MicrosoftSettings",
    "ObservabilitySettings",
    "Settings",
    "TlsFiles",
    "get_settings",
]
