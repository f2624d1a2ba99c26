"""Models for the application."""

from .code_smell_models import (
    CodeSmellDetection,
    CodeSmellLifespan,
    Location,
    Position,
    Range,
)
from .git_models import Commit, CombinedFileDifference, File, FileSpec, Signature

__all__ = [
    "CodeSmellDetection",
    "CodeSmellLifespan",
    "CombinedFileDifference",
    "Commit",
    "File",
    "FileSpec",
    "Location",
    "Position",
    "Range",
    "Signature",
]
