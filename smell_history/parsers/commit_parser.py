"""
Commit metadata parsing.

git prints each commit with ``COMMIT_FORMAT``: one field per line in a
fixed order, followed by the raw message, which may itself span any
number of lines. Commits are separated by NUL (``-z``) so a multi-line
message can never be mistaken for the start of the next commit.
"""

from __future__ import annotations

from typing import Iterable, List

from ..errors import OutputParseError
from ..models import Commit, Signature

COMMIT_FORMAT_TOKENS = (
    "%H",  # commit hash
    "%P",  # parent hashes, space separated
    "%aN",
    "%aE",
    "%aI",  # author date, strict ISO-8601
    "%cN",
    "%cE",
    "%cI",  # committer date, strict ISO-8601
    "%B",  # raw body
)
COMMIT_FORMAT = "%n".join(COMMIT_FORMAT_TOKENS)

_HEADER_FIELDS = len(COMMIT_FORMAT_TOKENS) - 1


def parse_commit(chunk: str) -> Commit:
    """Parse a single chunk formatted according to ``COMMIT_FORMAT``."""

    lines = chunk.split("\n")
    if len(lines) < _HEADER_FIELDS:
        raise OutputParseError(
            f"Commit record has {len(lines)} lines, expected at least {_HEADER_FIELDS}"
        )

    (
        oid,
        parents,
        author_name,
        author_email,
        author_date,
        committer_name,
        committer_email,
        committer_date,
    ) = lines[:_HEADER_FIELDS]
    message_lines = lines[_HEADER_FIELDS:]

    return Commit(
        oid=oid,
        # "".split() is [], so root commits get no parents
        parents=parents.split(),
        author=Signature(name=author_name, email=author_email, date=author_date),
        committer=Signature(
            name=committer_name, email=committer_email, date=committer_date
        ),
        message="\n".join(message_lines),
    )


def parse_commits(output: str) -> List[Commit]:
    """Parse the NUL separated output of ``git show -z`` / ``git log -z``."""

    return [parse_commit(chunk) for chunk in output.split("\0") if chunk]


def encode_commit(commit: Commit) -> str:
    """Render commit the way git prints it with ``COMMIT_FORMAT``."""

    return "\n".join(
        [
            commit.oid,
            " ".join(commit.parents),
            commit.author.name,
            commit.author.email,
            commit.author.date,
            commit.committer.name,
            commit.committer.email,
            commit.committer.date,
            commit.message,
        ]
    )


def encode_commits(commits: Iterable[Commit]) -> str:
    return "".join(encode_commit(commit) + "\0" for commit in commits)
