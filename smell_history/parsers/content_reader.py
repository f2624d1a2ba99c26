"""
Decoding of ``git cat-file --batch=<format>`` output for many files at once.

One object name is sent per line. Because the format has no
``%(rest)`` placeholder, cat-file resolves the whole line, so paths
containing spaces work. Each found object is answered with a header
line ``<oid> <type> <size>``, exactly ``size`` bytes of content and a
newline; names that do not resolve are answered with ``<name> missing``.
Content is sliced by byte count, never by searching for markers, so a
blob may contain any bytes at all.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from ..errors import OutputParseError, ValidationError
from ..models import FileSpec

BATCH_FORMAT = "%(objectname) %(objecttype) %(objectsize)"
MISSING_SUFFIX = b" missing"


def build_batch_request(specs: Sequence[FileSpec]) -> bytes:
    """Build the stdin for ``git cat-file --batch=<BATCH_FORMAT>``."""

    lines = []
    for spec in specs:
        if "\n" in spec.object_name:
            raise ValidationError(
                f"Path cannot be read in a batch, it contains a newline: {spec.path!r}"
            )
        lines.append(f"{spec.object_name}\n")
    return "".join(lines).encode("utf-8")


def _parse_header(header: bytes, spec: FileSpec):
    fields = header.split(b" ")
    if len(fields) != 3 or not fields[2].isdigit():
        raise OutputParseError(
            f"Unexpected batch header {header!r} for {spec.object_name}"
        )
    return fields[1], int(fields[2])


def read_batch_contents(
    output: bytes, specs: Sequence[FileSpec]
) -> List[Optional[bytes]]:
    """
    Split batch output into one entry per requested file, in request order.

    Each entry is the file's bytes, or None when nothing exists at that
    path of the commit. A path naming a directory is None as well.
    """

    contents: List[Optional[bytes]] = []
    position = 0
    for spec in specs:
        header_end = output.find(b"\n", position)
        if header_end < 0:
            raise OutputParseError(
                f"Batch output ended before the entry for {spec.object_name}"
            )
        header = output[position:header_end]
        position = header_end + 1

        if header == spec.object_name.encode("utf-8") + MISSING_SUFFIX:
            contents.append(None)
            continue

        object_type, size = _parse_header(header, spec)
        end = position + size
        if output[end : end + 1] != b"\n":
            raise OutputParseError(
                f"Batch output ended inside the content of {spec.object_name}"
            )
        contents.append(output[position:end] if object_type == b"blob" else None)
        position = end + 1
    return contents
