"""Lazy commit history walks backed by a live ``git log`` process."""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional

from ..errors import SmellHistoryError, UnknownCommitError, UnknownRevisionError
from ..models import Commit
from ..parsers.commit_parser import COMMIT_FORMAT, parse_commit
from ..parsers.records import NUL, split_records
from ..schemas.git import LogFilter
from .process_runner import GitRunner, GitStream
from .validators import is_object_id, validate_relative_path, validate_revision

LOG = logging.getLogger(__name__)

_UNKNOWN_REVISION_MARKERS = (
    "fatal: bad revision",
    "unknown revision",
    "fatal: ambiguous argument",
    "does not have any commits yet",
)


def build_log_args(log_filter: LogFilter) -> List[str]:
    """Build the ``git log`` argument vector for log_filter."""

    revision = validate_revision(log_filter.start_revision)

    args = ["log", "-z", f"--format={COMMIT_FORMAT}"]
    if log_filter.message_pattern:
        args += [
            f"--grep={log_filter.message_pattern}",
            "--extended-regexp",
            "--regexp-ignore-case",
        ]
    if log_filter.since:
        args.append(f"--since={log_filter.since}")
    if log_filter.until:
        args.append(f"--until={log_filter.until}")
    if log_filter.skip is not None:
        args.append(f"--skip={log_filter.skip}")
    if log_filter.limit is not None:
        args.append(f"--max-count={log_filter.limit}")
    args += [revision, "--"]
    if log_filter.path:
        args.append(validate_relative_path(log_filter.path))
    return args


def log_failure_classifier(repository: str, revision: str):
    def classify(stderr: str) -> Optional[SmellHistoryError]:
        if stderr.startswith("fatal: bad object"):
            return UnknownCommitError(repository, revision)
        if any(marker in stderr for marker in _UNKNOWN_REVISION_MARKERS):
            if is_object_id(revision):
                return UnknownCommitError(repository, revision)
            return UnknownRevisionError(repository, revision)
        return None

    return classify


class CommitStream:
    """
    Commits of one ``git log`` walk, parsed as the consumer pulls them.

    The stream owns the git process. It is terminated when the walk is
    exhausted, when parsing or git fails, and when the consumer calls
    ``close`` or leaves a ``with`` block early. A stream cannot be
    restarted; start a new walk instead.
    """

    def __init__(self, stream: GitStream):
        self._stream = stream
        self._records = split_records(stream, NUL)

    @property
    def process(self):
        return self._stream.process

    @property
    def closed(self) -> bool:
        return self._stream.closed

    def __iter__(self) -> Iterator[Commit]:
        return self

    def __next__(self) -> Commit:
        try:
            record = next(self._records)
            return parse_commit(record.decode("utf-8", errors="replace"))
        except BaseException:
            self.close()
            raise

    def __enter__(self) -> "CommitStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._records.close()
        self._stream.close()


def stream_history(runner: GitRunner, log_filter: LogFilter) -> CommitStream:
    """Start a history walk; arguments are validated before git is spawned."""

    args = build_log_args(log_filter)
    LOG.debug("Streaming history of %s from %s", runner.repository, log_filter.start_revision)
    stream = runner.stream(
        args,
        classify=log_failure_classifier(runner.repository, log_filter.start_revision),
    )
    return CommitStream(stream)
