"""Schemas for the application."""

from .git import FileChangeKind, LogFilter

__all__ = ["FileChangeKind", "LogFilter"]
