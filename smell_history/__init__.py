"""Commit history and code smell lifespan analysis on top of git."""

__version__ = "0.1.0"
