from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class FileChangeKind(str, Enum):
    """Enum for the change letters git reports per parent."""

    ADDED = "A"
    COPIED = "C"
    DELETED = "D"
    MODIFIED = "M"
    RENAMED = "R"
    TYPE_CHANGED = "T"


class LogFilter(BaseModel):
    """Filters and pagination for a history walk."""

    start_revision: str = "HEAD"
    message_pattern: Optional[str] = None  # git extended regex, case-insensitive
    since: Optional[str] = None
    until: Optional[str] = None
    skip: Optional[int] = Field(default=None, ge=0)
    limit: Optional[int] = Field(default=None, ge=0)
    path: Optional[str] = None  # file or directory the history is scoped to
