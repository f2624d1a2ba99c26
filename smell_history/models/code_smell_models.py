"""Code smell detections and the lifespans linking them across commits."""

from datetime import datetime, timedelta
from typing import List, Mapping, Optional

from pydantic import BaseModel, Field, model_validator

from .git_models import Commit


class Position(BaseModel):
    """Zero-based line and character offset."""

    line: int = Field(ge=0)
    character: int = Field(ge=0)


class Range(BaseModel):
    start: Position
    end: Position  # exclusive


class Location(BaseModel):
    file: str  # relative to the repository root
    range: Range


class CodeSmellDetection(BaseModel):
    """
    One instance of a code smell found in one commit.

    The id and lifespan_id are chosen by the caller. The ordinal is only
    known once the detection has been sequenced with the rest of its
    lifespan.
    """

    id: str
    kind: str
    message: Optional[str] = None
    locations: List[Location] = Field(default_factory=list)
    commit_oid: str
    lifespan_id: str
    ordinal: Optional[int] = None


class CodeSmellLifespan(BaseModel):
    """The detections of one logical code smell, ordered along the commit graph."""

    id: str
    kind: str
    detections: List[CodeSmellDetection] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_ordinals(self) -> "CodeSmellLifespan":
        previous = -1
        for detection in self.detections:
            if detection.ordinal is None or detection.ordinal <= previous:
                raise ValueError("detections must have strictly increasing ordinals")
            previous = detection.ordinal
        return self

    def get(self, ordinal: int) -> Optional[CodeSmellDetection]:
        """Return the detection with the given ordinal, if any."""
        if 0 <= ordinal < len(self.detections):
            detection = self.detections[ordinal]
            if detection.ordinal == ordinal:
                return detection
        for detection in self.detections:
            if detection.ordinal == ordinal:
                return detection
        return None

    def predecessor(self, detection: CodeSmellDetection) -> Optional[CodeSmellDetection]:
        if detection.ordinal is None:
            return None
        return self.get(detection.ordinal - 1)

    def successor(self, detection: CodeSmellDetection) -> Optional[CodeSmellDetection]:
        if detection.ordinal is None:
            return None
        return self.get(detection.ordinal + 1)

    def interval(self, commits: Mapping[str, Commit]) -> str:
        """ISO-8601 interval from the first to the last detection's committer date."""
        start, end = self._boundary_commits(commits)
        return f"{start.committer.date}/{end.committer.date}"

    def duration(self, commits: Mapping[str, Commit]) -> timedelta:
        start, end = self._boundary_commits(commits)
        return datetime.fromisoformat(end.committer.date) - datetime.fromisoformat(
            start.committer.date
        )

    def _boundary_commits(self, commits: Mapping[str, Commit]):
        if not self.detections:
            raise ValueError(f"lifespan {self.id} has no detections")
        return (
            commits[self.detections[0].commit_oid],
            commits[self.detections[-1].commit_oid],
        )
