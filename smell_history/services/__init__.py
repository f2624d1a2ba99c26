"""Services for the application."""

from .git_manager import GitManager
from .git_manager_factory import (
    create_git_manager,
    create_git_manager_from_settings,
)
from .history_streamer import CommitStream
from .process_runner import CancellationToken, GitRunner, GitStream

__all__ = [
    "CancellationToken",
    "CommitStream",
    "GitManager",
    "GitRunner",
    "GitStream",
    "create_git_manager",
    "create_git_manager_from_settings",
]
