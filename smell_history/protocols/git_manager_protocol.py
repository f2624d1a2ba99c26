"""Git Manager protocol interface."""

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, runtime_checkable

from ..models import (
    CodeSmellDetection,
    CodeSmellLifespan,
    Commit,
    CombinedFileDifference,
    File,
    FileSpec,
)
from ..schemas.git import LogFilter


@runtime_checkable
class GitManagerProtocol(Protocol):
    """Protocol for the history operations offered to the transport and storage layers."""

    @property
    def repo_root(self) -> Path:
        """Directory holding the repositories."""
        ...

    def list_repositories(self) -> List[str]:
        ...

    def repository_exists(self, repository: str) -> bool:
        ...

    def commit_exists(self, repository: str, commit: str) -> bool:
        ...

    def get_commit(self, repository: str, commit: str) -> Commit:
        ...

    def get_commits(self, repository: str, commits: Iterable[str]) -> Dict[str, Commit]:
        ...

    def list_files(
        self,
        repository: str,
        commit: str,
        directory: Optional[str] = None,
        path_pattern: Optional[str] = None,
    ) -> List[File]:
        ...

    def get_file_content(self, repository: str, commit: str, path: str) -> bytes:
        ...

    def get_file_contents(
        self, repository: str, files: Sequence[FileSpec]
    ) -> List[Optional[bytes]]:
        ...

    def get_combined_differences(
        self, repository: str, commits: Iterable[str]
    ) -> Dict[str, List[CombinedFileDifference]]:
        ...

    def log(self, repository: str, log_filter: Optional[LogFilter] = None):
        """Lazy, closeable iterator of commits."""
        ...

    def init_repository(self, repository: str) -> None:
        ...

    def import_bundle(self, repository: str, bundle_path: str) -> None:
        ...

    def sequence_lifespans(
        self, repository: str, detections: Sequence[CodeSmellDetection]
    ) -> List[CodeSmellLifespan]:
        ...
