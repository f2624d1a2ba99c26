import logging
import os
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from ..errors import (
    SmellHistoryError,
    UnexpectedProcessError,
    UnknownCommitError,
    UnknownRepositoryError,
    ValidationError,
)
from ..models import (
    CodeSmellDetection,
    CodeSmellLifespan,
    Commit,
    CombinedFileDifference,
    File,
    FileSpec,
)
from ..parsers.commit_parser import COMMIT_FORMAT, parse_commits
from ..parsers.content_reader import (
    BATCH_FORMAT,
    build_batch_request,
    read_batch_contents,
)
from ..parsers.diff_parser import COMBINED_DIFF_FORMAT, parse_combined_differences
from ..parsers.records import unquote_path
from ..schemas.git import LogFilter
from .history_streamer import CommitStream, stream_history
from .lifespan_sequencer import normalize_detection, sequence_lifespans, sort_detections
from .process_runner import DEFAULT_CHUNK_SIZE, CancellationToken, GitRunner
from .validators import (
    is_object_id,
    validate_object_id,
    validate_relative_path,
    validate_repository_name,
)

LOG = logging.getLogger(__name__)


def _unknown_commit_classifier(repository: str, commit: str, markers: Sequence[str]):
    def classify(stderr: str) -> Optional[SmellHistoryError]:
        if any(marker in stderr for marker in markers):
            return UnknownCommitError(repository, commit)
        return None

    return classify


class GitManager:
    """
    Read access to the repositories stored under one root directory.

    Every method maps to a single git invocation (existence pre-checks
    aside) and returns freshly parsed records; nothing is cached.
    """

    def __init__(
        self,
        repo_root: str,
        cancellation: Optional[CancellationToken] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.repo_root = Path(repo_root)
        self.cancellation = cancellation
        self.chunk_size = chunk_size

    def with_cancellation(self, cancellation: CancellationToken) -> "GitManager":
        """Return a manager whose git processes are killed when cancellation fires."""
        return GitManager(str(self.repo_root), cancellation, self.chunk_size)

    # Repositories

    def list_repositories(self) -> List[str]:
        """List the names of all repositories under the root."""
        if not self.repo_root.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.repo_root.iterdir()
            if entry.is_dir() and not entry.name.startswith(".")
        )

    def repository_path(self, repository: str) -> Path:
        return self.repo_root / validate_repository_name(repository)

    def repository_exists(self, repository: str) -> bool:
        return self.repository_path(repository).is_dir()

    def validate_repository(self, repository: str) -> None:
        if not self.repository_exists(repository):
            raise UnknownRepositoryError(repository)

    def init_repository(self, repository: str) -> None:
        """Create an empty bare repository that accepts pushes over HTTP."""
        path = self.repository_path(repository)
        try:
            path.mkdir(parents=True)
        except FileExistsError as exc:
            raise ValidationError(f"Repository already exists: {repository}") from exc

        runner = self._runner(repository)
        runner.run(["init", "--bare"])
        runner.run(["config", "--bool", "http.receivepack", "true"])
        LOG.info("Initialized repository %s at %s", repository, path)

    def import_bundle(self, repository: str, bundle_path: str) -> None:
        """Fetch all branches and tags of a git bundle into the repository."""
        runner = self._runner(repository)
        runner.run(
            ["fetch", "--tags", os.fspath(bundle_path), "refs/heads/*:refs/heads/*"]
        )
        LOG.info("Imported bundle %s into repository %s", bundle_path, repository)

    # Commits

    def filter_valid_commits(self, repository: str, commits: Iterable[str]) -> List[str]:
        """Return the given object IDs that name commits in the repository."""
        candidates = [commit for commit in commits if is_object_id(commit)]
        if not candidates:
            self.validate_repository(repository)
            return []
        result = self._runner(repository).run(
            ["rev-list", "--ignore-missing", "--no-walk", "--stdin", "--"],
            input="".join(f"{commit}\n" for commit in candidates).encode("ascii"),
        )
        return [line for line in result.text.split("\n") if line]

    def commit_exists(self, repository: str, commit: str) -> bool:
        validate_object_id(commit)
        return bool(self.filter_valid_commits(repository, [commit]))

    def validate_commit(self, repository: str, commit: str) -> None:
        if not self.commit_exists(repository, commit):
            raise UnknownCommitError(repository, commit)

    def get_commit(self, repository: str, commit: str) -> Commit:
        validate_object_id(commit)
        commits = self.get_commits(repository, [commit])
        if commit not in commits:
            raise UnknownCommitError(repository, commit)
        return commits[commit]

    def get_commits(self, repository: str, commits: Iterable[str]) -> Dict[str, Commit]:
        """
        Fetch metadata of many commits at once, keyed by object ID.

        Unknown object IDs are left out of the result instead of failing
        the whole request, since ``git show`` fails hard on them.
        """
        requested = list(dict.fromkeys(commits))
        valid = set(self.filter_valid_commits(repository, requested))
        oids = [commit for commit in requested if commit in valid]
        if not oids:
            return {}
        result = self._runner(repository).run(
            [
                "show",
                "--no-decorate",
                "--no-patch",
                "--no-color",
                "-z",  # separate commits with NUL
                f"--format={COMMIT_FORMAT}",
                *oids,
                "--",
            ]
        )
        parsed = {commit.oid: commit for commit in parse_commits(result.text)}
        return {oid: parsed[oid] for oid in oids if oid in parsed}

    def get_combined_differences(
        self, repository: str, commits: Iterable[str]
    ) -> Dict[str, List[CombinedFileDifference]]:
        """Fetch how each file changed in each commit against every parent."""
        requested = list(dict.fromkeys(commits))
        valid = set(self.filter_valid_commits(repository, requested))
        oids = [commit for commit in requested if commit in valid]
        if not oids:
            return {}
        result = self._runner(repository).run(
            [
                "show",
                "--no-decorate",
                "--no-color",
                "--name-status",
                "--find-renames",
                "--find-copies",
                "--cc",
                "--combined-all-paths",  # list the file path in every parent
                f"--format={COMBINED_DIFF_FORMAT}",
                *oids,
                "--",
            ]
        )
        parsed = parse_combined_differences(result.text)
        return {oid: parsed.get(oid, []) for oid in oids}

    def log(self, repository: str, log_filter: Optional[LogFilter] = None) -> CommitStream:
        """
        Walk the history lazily.

        The returned stream owns a running git process; use it as a
        context manager or close it when stopping early.
        """
        runner = self._runner(repository)
        return stream_history(runner, log_filter or LogFilter())

    # Files

    def list_files(
        self,
        repository: str,
        commit: str,
        directory: Optional[str] = None,
        path_pattern: Optional[str] = None,
    ) -> List[File]:
        """List the files of a commit, optionally below directory and matching path_pattern."""
        validate_object_id(commit)
        args = ["ls-tree", "-r", "--name-only", "--full-name", commit]
        if directory:
            args.append(validate_relative_path(directory))
        try:
            pattern = re.compile(path_pattern, re.IGNORECASE) if path_pattern else None
        except re.error as exc:
            raise ValidationError(f"Invalid path pattern {path_pattern!r}: {exc}") from exc

        result = self._runner(repository).run(
            args,
            classify=_unknown_commit_classifier(
                repository, commit, ("fatal: not a tree object", "fatal: bad object")
            ),
        )
        paths = [unquote_path(line) for line in result.text.split("\n") if line]
        if pattern is not None:
            paths = [path for path in paths if pattern.search(path)]
        return [File(path=path) for path in paths]

    def get_file_content(self, repository: str, commit: str, path: str) -> bytes:
        """Return the raw bytes of path at commit."""
        validate_object_id(commit)
        path = validate_relative_path(path)
        try:
            result = self._runner(repository).run(["show", f"{commit}:{path}"])
        except UnexpectedProcessError:
            # git words an unknown commit like a missing path here
            if not self.commit_exists(repository, commit):
                raise UnknownCommitError(repository, commit) from None
            raise
        return result.stdout

    def get_file_contents(
        self, repository: str, files: Sequence[FileSpec]
    ) -> List[Optional[bytes]]:
        """Return the bytes of many files at once, None for files that do not exist."""
        specs = [
            FileSpec(
                commit=validate_object_id(spec.commit),
                path=validate_relative_path(spec.path),
            )
            for spec in files
        ]
        if not specs:
            self.validate_repository(repository)
            return []
        request = build_batch_request(specs)
        result = self._runner(repository).run(
            ["cat-file", f"--batch={BATCH_FORMAT}"], input=request
        )
        return read_batch_contents(result.stdout, specs)

    # Code smells

    def sort_detections(
        self, repository: str, detections: Sequence[CodeSmellDetection]
    ) -> List[CodeSmellDetection]:
        """Order detections along the commit graph and assign their ordinals."""
        return sort_detections(self._runner(repository), detections)

    def sequence_lifespans(
        self, repository: str, detections: Sequence[CodeSmellDetection]
    ) -> List[CodeSmellLifespan]:
        """Normalize detections, group them by lifespan and order each lifespan."""
        normalized = [normalize_detection(detection) for detection in detections]
        return sequence_lifespans(self._runner(repository), normalized)

    def _runner(self, repository: str) -> GitRunner:
        path = self.repository_path(repository)
        if not path.is_dir():
            raise UnknownRepositoryError(repository)
        return GitRunner(
            path,
            repository=repository,
            cancellation=self.cancellation,
            chunk_size=self.chunk_size,
        )
