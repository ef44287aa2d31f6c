"""Planko: collaborative kanban boards."""

__version__ = "1.0.0"
