"""
Combined diff parsing for smell-history.

The parser reads the output of::

    git show --name-status --find-renames --find-copies --cc
             --combined-all-paths --format=%x00%H <oids...>

Each commit starts with a NUL followed by its object ID on one line,
then one tab separated line per changed file. The first field holds one
change letter per parent, optionally followed by similarity digits
(``R100``, ``C075``); the remaining fields are paths.

Two path layouts occur:

* a single path, shared by the commit and every parent;
* one path per parent followed by the path at the commit. Merges print
  this with ``--combined-all-paths``, single-parent renames and copies
  print ``<old>\\t<new>``, which is the same layout with k == 1.

The head path is therefore the last field, as git 2.39 prints it.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from ..errors import OutputParseError
from ..models import CombinedFileDifference
from ..schemas.git import FileChangeKind
from .records import unquote_path

COMBINED_DIFF_FORMAT = "%x00%H"

_DIGITS_RE = re.compile(r"\d")


def parse_change_kinds(field: str) -> List[FileChangeKind]:
    """Split the status field into one change kind per parent."""

    letters = _DIGITS_RE.sub("", field)
    if not letters:
        raise OutputParseError(f"Missing change kind in status field {field!r}")
    try:
        return [FileChangeKind(letter) for letter in letters]
    except ValueError as exc:
        raise OutputParseError(f"Unknown change kind in status field {field!r}") from exc


def parse_file_change(line: str) -> CombinedFileDifference:
    """Parse one ``--name-status`` line of a (combined) diff."""

    status, *raw_paths = line.split("\t")
    change_kinds = parse_change_kinds(status)
    paths = [unquote_path(path) for path in raw_paths]
    parent_count = len(change_kinds)

    if len(paths) == 1:
        # No rename, copy or merge: every parent shares the head path
        head_path: Optional[str] = paths[0]
        base_paths: List[Optional[str]] = [paths[0]] * parent_count
    elif len(paths) == parent_count + 1:
        head_path = paths[-1]
        base_paths = list(paths[:-1])
    else:
        raise OutputParseError(
            f"Expected 1 or {parent_count + 1} paths for status {status!r}, "
            f"got {len(paths)}: {line!r}"
        )

    for index, kind in enumerate(change_kinds):
        if kind is FileChangeKind.ADDED:
            # Added compared to this parent: the file did not exist there
            base_paths[index] = None
        elif kind is FileChangeKind.DELETED:
            # Deleted compared to any parent: the file does not exist at
            # the commit, whatever the other parents say
            head_path = None

    return CombinedFileDifference(
        change_kinds=change_kinds, head_path=head_path, base_paths=base_paths
    )


def parse_combined_differences(output: str) -> Dict[str, List[CombinedFileDifference]]:
    """Parse the output of a multi-commit combined diff, keyed by commit."""

    differences: Dict[str, List[CombinedFileDifference]] = {}
    for chunk in output.split("\0"):
        if not chunk.strip():
            continue
        oid, *file_lines = chunk.split("\n")
        oid = oid.strip()
        differences[oid] = [
            parse_file_change(file_line) for file_line in file_lines if file_line
        ]
    return differences
