"""Git-related model classes."""

from typing import List, Optional

from pydantic import BaseModel, Field

from ..schemas.git import FileChangeKind


class Signature(BaseModel):
    """Author or committer of a commit."""

    name: str
    email: str
    date: str  # ISO-8601 strict, exactly as git prints it


class Commit(BaseModel):
    """A commit reconstructed from git's formatted output."""

    oid: str
    parents: List[str] = Field(default_factory=list)  # first parent first
    author: Signature
    committer: Signature
    message: str = ""


class File(BaseModel):
    """A file in the tree of a commit."""

    path: str


class FileSpec(BaseModel):
    """A file at a specific commit."""

    commit: str
    path: str

    @property
    def object_name(self) -> str:
        return f"{self.commit}:{self.path}"


class CombinedFileDifference(BaseModel):
    """
    How one file changed in a commit compared to each of its parents.

    change_kinds and base_paths hold one entry per parent. head_path is
    None when the file does not exist at the commit, base_paths[i] is
    None when it did not exist in parent i.
    """

    change_kinds: List[FileChangeKind]
    head_path: Optional[str]
    base_paths: List[Optional[str]]
