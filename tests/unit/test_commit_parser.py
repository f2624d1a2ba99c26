"""Unit tests for commit record parsing."""

import pytest

from smell_history.errors import OutputParseError
from smell_history.models import Commit, Signature
from smell_history.parsers.commit_parser import (
    COMMIT_FORMAT,
    encode_commits,
    parse_commit,
    parse_commits,
)

ROOT = "1111111111111111111111111111111111111111"
CHILD = "2222222222222222222222222222222222222222"
SIDE = "3333333333333333333333333333333333333333"
MERGE = "4444444444444444444444444444444444444444"


def _signature(name, date):
    return Signature(name=name, email=f"{name.lower()}@example.com", date=date)


class TestCommitFormat:
    """Test cases for the git format template."""

    def test_fields_in_fixed_order(self):
        """Test that the template lists one field per line ending with the body."""
        assert COMMIT_FORMAT == "%H%n%P%n%aN%n%aE%n%aI%n%cN%n%cE%n%cI%n%B"


class TestParseCommit:
    """Test cases for parse_commit."""

    def test_parse_golden_chunk(self):
        """Test parsing a chunk exactly as git prints it."""
        chunk = "\n".join(
            [
                CHILD,
                ROOT,
                "Ada Lovelace",
                "ada@example.com",
                "2020-05-01T10:00:00+02:00",
                "Grace Hopper",
                "grace@example.com",
                "2020-05-02T11:30:00+00:00",
                "Fix parser",
                "",
                "Handles tabs in paths.",
                "",
            ]
        )

        commit = parse_commit(chunk)

        assert commit.oid == CHILD
        assert commit.parents == [ROOT]
        assert commit.author == Signature(
            name="Ada Lovelace", email="ada@example.com", date="2020-05-01T10:00:00+02:00"
        )
        assert commit.committer.name == "Grace Hopper"
        assert commit.committer.date == "2020-05-02T11:30:00+00:00"
        assert commit.message == "Fix parser\n\nHandles tabs in paths.\n"

    def test_root_commit_has_no_parents(self):
        """Test that an empty parent line yields an empty list, not ['']."""
        chunk = "\n".join([ROOT, "", "A", "a@x", "d", "C", "c@x", "d", "init"])
        assert parse_commit(chunk).parents == []

    def test_merge_commit_keeps_parent_order(self):
        """Test that parents stay first-parent first."""
        chunk = "\n".join([MERGE, f"{CHILD} {SIDE}", "A", "a@x", "d", "C", "c@x", "d", ""])
        commit = parse_commit(chunk)
        assert commit.parents == [CHILD, SIDE]
        assert commit.message == ""

    def test_truncated_chunk_raises(self):
        """Test that a chunk without all header fields is rejected."""
        with pytest.raises(OutputParseError):
            parse_commit(f"{ROOT}\n\nA")


class TestParseCommits:
    """Test cases for NUL separated output."""

    def test_round_trip(self):
        """Test encoding commits and parsing them back yields the same commits."""
        commits = [
            Commit(
                oid=ROOT,
                parents=[],
                author=_signature("Ada", "2020-01-01T00:00:00+00:00"),
                committer=_signature("Ada", "2020-01-01T00:00:00+00:00"),
                message="Initial commit\n",
            ),
            Commit(
                oid=CHILD,
                parents=[ROOT],
                author=_signature("Grace", "2020-01-02T00:00:00+01:00"),
                committer=_signature("Linus", "2020-01-03T00:00:00-05:00"),
                message="Subject\n\nBody line one\nBody line two\n",
            ),
            Commit(
                oid=MERGE,
                parents=[CHILD, SIDE],
                author=_signature("Ada", "2020-01-04T00:00:00+00:00"),
                committer=_signature("Ada", "2020-01-04T00:00:00+00:00"),
                message="",
            ),
        ]

        assert parse_commits(encode_commits(commits)) == commits

    def test_ignores_trailing_separator(self):
        """Test that the terminating NUL does not produce an extra commit."""
        chunk = "\n".join([ROOT, "", "A", "a@x", "d", "C", "c@x", "d", "msg"])
        assert len(parse_commits(chunk + "\0")) == 1
        assert parse_commits("") == []
