"""
Exception types raised by smell-history.

Every failure of a git invocation is classified into exactly one of
these before it leaves the component that spawned the process, so
callers can tell a missing repository from a bad revision from a
cancelled request without inspecting stderr themselves.
"""

from __future__ import annotations

from typing import Optional, Sequence


class SmellHistoryError(Exception):
    """Base class for all smell-history specific errors."""


class UnknownRepositoryError(SmellHistoryError):
    """Raised when a repository does not exist under the repository root."""

    def __init__(self, repository: str):
        super().__init__(f"Unknown repository: {repository}")
        self.repository = repository


class UnknownCommitError(SmellHistoryError):
    """Raised when an object ID does not resolve to a commit."""

    def __init__(self, repository: Optional[str], commit: str):
        super().__init__(f"Unknown commit {commit} in repository {repository}")
        self.repository = repository
        self.commit = commit


class UnknownRevisionError(SmellHistoryError):
    """Raised when a named revision (branch, tag, expression) cannot be resolved."""

    def __init__(self, repository: Optional[str], revision: str):
        super().__init__(f"Unknown revision {revision} in repository {repository}")
        self.repository = repository
        self.revision = revision


class ValidationError(SmellHistoryError):
    """Raised for malformed object IDs, repository names or paths."""


class CancelledError(SmellHistoryError):
    """Raised when a git process was terminated on the caller's request."""


class UnexpectedProcessError(SmellHistoryError):
    """Raised for any other git failure, including failures to spawn git."""

    def __init__(self, command: Sequence[str], status: Optional[int], stderr: str):
        message = f"git command failed: {' '.join(command)}"
        if status is not None:
            message += f" (exit status {status})"
        if stderr:
            message += f": {stderr}"
        super().__init__(message)
        self.command = list(command)
        self.status = status
        self.stderr = stderr


class OutputParseError(SmellHistoryError):
    """Raised when git output does not have the expected shape."""
