"""Kanban To Do - a Kanban board on top of Microsoft To Do."""

__version__ = "0.1.0"
