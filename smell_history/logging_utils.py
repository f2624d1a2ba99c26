"""
Logging helpers for smell-history.

Only the root logger is configured here; every module logs through its
own ``logging.getLogger(__name__)``.
"""

from __future__ import annotations

import logging


def configure_logging(level: str = "INFO", debug: bool = False) -> None:
    """
    Configure the root logger from a level name.

    Unknown level names fall back to INFO. ``debug`` forces DEBUG so the
    git command lines become visible.
    """

    if debug:
        resolved = logging.DEBUG
    else:
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            resolved = logging.INFO

    logging.basicConfig(
        level=resolved,
        format="%(levelname)s %(name)s: %(message)s",
    )
