"""
Low-level helpers shared by the git output parsers.
"""

from __future__ import annotations

from typing import Iterable, Iterator

NUL = b"\0"
NEWLINE = b"\n"

_C_ESCAPES = {
    "a": 0x07,
    "b": 0x08,
    "f": 0x0C,
    "n": 0x0A,
    "r": 0x0D,
    "t": 0x09,
    "v": 0x0B,
    '"': 0x22,
    "\\": 0x5C,
}


def split_records(chunks: Iterable[bytes], separator: bytes) -> Iterator[bytes]:
    """
    Turn a sequence of byte chunks into separator-delimited records.

    Chunks may end anywhere, including in the middle of a multi-byte
    character or of the separator's record; a record is only yielded
    once its separator (or the end of input) has been seen. Empty
    records are dropped.
    """

    buffer = bytearray()
    for chunk in chunks:
        buffer += chunk
        start = 0
        while True:
            index = buffer.find(separator, start)
            if index < 0:
                break
            if index > start:
                yield bytes(buffer[start:index])
            start = index + len(separator)
        del buffer[:start]
    if buffer:
        yield bytes(buffer)


def unquote_path(path: str) -> str:
    """
    Undo git's C-style quoting of unusual path names.

    Paths that git did not quote are returned unchanged. Octal escapes
    are collected as raw bytes and decoded as UTF-8.
    """

    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path

    body = path[1:-1]
    out = bytearray()
    i = 0
    while i < len(body):
        char = body[i]
        if char != "\\":
            out += char.encode("utf-8")
            i += 1
            continue
        escape = body[i + 1 : i + 2]
        if escape in _C_ESCAPES:
            out.append(_C_ESCAPES[escape])
            i += 2
        elif escape.isdigit():
            out.append(int(body[i + 1 : i + 4], 8))
            i += 4
        else:
            # Unknown escape, keep it literally
            out += char.encode("utf-8")
            i += 1
    return out.decode("utf-8", errors="replace")
