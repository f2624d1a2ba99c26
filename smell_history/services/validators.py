"""
Argument validation that runs before any git process is spawned.

Everything that ends up on a git command line and comes from a caller
goes through one of these functions first.
"""

from __future__ import annotations

import posixpath
import re

from ..errors import ValidationError

OBJECT_ID_RE = re.compile(r"[0-9a-f]{40}")
REPOSITORY_NAME_RE = re.compile(r"[A-Za-z0-9._-]+")

# Suffix reserved for the repository directories git itself creates
RESERVED_REPOSITORY_SUFFIX = ".git"

NULL_OBJECT_ID = "0" * 40


def is_object_id(value: str) -> bool:
    return isinstance(value, str) and OBJECT_ID_RE.fullmatch(value) is not None


def validate_object_id(value: str) -> str:
    """Return value if it is a 40 character lowercase hex object ID."""

    if not is_object_id(value):
        raise ValidationError(f"Invalid object ID: {value!r}")
    return value


def validate_repository_name(name: str) -> str:
    if not isinstance(name, str) or REPOSITORY_NAME_RE.fullmatch(name) is None:
        raise ValidationError(f"Invalid repository name: {name!r}")
    if name in (".", ".."):
        raise ValidationError(f"Invalid repository name: {name!r}")
    if name.endswith(RESERVED_REPOSITORY_SUFFIX):
        raise ValidationError(
            f"Repository names cannot end with {RESERVED_REPOSITORY_SUFFIX}: {name!r}"
        )
    return name


def validate_relative_path(path: str) -> str:
    """
    Normalize path and return it if it stays inside the repository root.

    Interior ``..`` segments are resolved (``a/b/../c`` becomes ``a/c``);
    absolute paths and paths escaping the root are rejected.
    """

    if not isinstance(path, str) or not path:
        raise ValidationError("Path must be a non-empty string")
    if "\0" in path:
        raise ValidationError(f"Path contains a NUL byte: {path!r}")

    normalized = posixpath.normpath(path)
    if posixpath.isabs(normalized):
        raise ValidationError(f"Path must be relative to repository root: {path!r}")
    if normalized == ".." or normalized.startswith("../"):
        raise ValidationError(f"Path escapes the repository root: {path!r}")
    if normalized == ".":
        raise ValidationError(f"Path does not name a file or directory: {path!r}")
    return normalized


def validate_revision(revision: str) -> str:
    """Accept a single revision name, never a range or a command line option."""

    if not isinstance(revision, str) or not revision.strip():
        raise ValidationError("Revision must be a non-empty string")
    if ".." in revision:
        raise ValidationError(f"Revision ranges are not supported: {revision!r}")
    if revision.startswith("-") or any(c.isspace() for c in revision):
        raise ValidationError(f"Invalid revision: {revision!r}")
    return revision
