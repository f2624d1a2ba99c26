"""Factory for creating GitManager instances from settings."""

import logging
from typing import Optional

import git

from ..config.settings import Settings
from ..logging_utils import configure_logging
from ..protocols.git_manager_protocol import GitManagerProtocol
from .git_manager import GitManager
from .process_runner import CancellationToken

LOG = logging.getLogger(__name__)


def create_git_manager(
    repo_root: str,
    git_executable: Optional[str] = None,
    chunk_size: int = 65536,
    cancellation: Optional[CancellationToken] = None,
) -> GitManagerProtocol:
    """
    Create a GitManager for the repositories under repo_root.

    Args:
        repo_root: Directory holding one repository per subdirectory
        git_executable: Path to git; when given GitPython is pointed at it
        chunk_size: Bytes read per iteration of a streamed git process
        cancellation: Token whose cancellation kills running git processes

    Returns:
        GitManagerProtocol implementation
    """
    if git_executable:
        LOG.debug("Using git executable %s", git_executable)
        git.refresh(git_executable)
    return GitManager(repo_root, cancellation=cancellation, chunk_size=chunk_size)


def create_git_manager_from_settings(settings: Settings) -> GitManagerProtocol:
    """
    Create a GitManager instance using application settings.

    Root logging is configured from LOG_LEVEL and DEBUG.

    Args:
        settings: Application settings

    Returns:
        GitManagerProtocol implementation
    """
    configure_logging(settings.LOG_LEVEL, settings.DEBUG)
    return create_git_manager(
        repo_root=settings.REPO_ROOT,
        git_executable=settings.GIT_EXECUTABLE,
        chunk_size=settings.STREAM_CHUNK_SIZE,
    )
