"""Kanban board ordering engine."""

__version__ = "0.1.0"
