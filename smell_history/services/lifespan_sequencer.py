"""
Ordering of code smell detections along the commit graph.

Detections arrive in arbitrary order. Their commits are listed with
``git rev-list --topo-order``, which never shows a commit before any of
its descendants; reversing the listing gives ancestors first. Each
detection is ranked by the position of its commit in that order and
ordinals 0..n-1 follow from a stable sort, so detections sharing a
commit keep their input order.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from ..errors import SmellHistoryError, UnknownCommitError, ValidationError
from ..models import CodeSmellDetection, CodeSmellLifespan
from ..parsers.records import NEWLINE, split_records
from .process_runner import GitRunner
from .validators import validate_object_id, validate_relative_path

LOG = logging.getLogger(__name__)


def normalize_detection(detection: CodeSmellDetection) -> CodeSmellDetection:
    """
    Return a copy of detection in canonical form.

    Messages are stripped (blank becomes None), location paths are
    normalized relative paths and locations are sorted by file and range.
    """

    message = (detection.message or "").strip() or None
    locations = [
        location.model_copy(update={"file": validate_relative_path(location.file)})
        for location in detection.locations
    ]
    locations.sort(
        key=lambda location: (
            location.file,
            location.range.start.line,
            location.range.start.character,
            location.range.end.line,
            location.range.end.character,
        )
    )
    return detection.model_copy(update={"message": message, "locations": locations})


def _bad_object_classifier(repository: str, commits: Sequence[str]):
    def classify(stderr: str) -> Optional[SmellHistoryError]:
        if stderr.startswith("fatal: bad object"):
            missing = stderr[len("fatal: bad object") :].strip() or commits[0]
            return UnknownCommitError(repository, missing)
        return None

    return classify


def topological_commit_order(runner: GitRunner, commits: Iterable[str]) -> List[str]:
    """
    Order the given commits so that ancestors come before descendants.

    The rev-list walk is stopped as soon as every commit was seen, so
    only the part of the history spanned by the commits is read.
    """

    involved = list(dict.fromkeys(validate_object_id(commit) for commit in commits))
    if not involved:
        return []

    wanted = set(involved)
    seen: List[str] = []
    with runner.stream(
        ["rev-list", "--topo-order", *involved, "--"],
        classify=_bad_object_classifier(runner.repository, involved),
    ) as stream:
        for line in split_records(stream, NEWLINE):
            oid = line.decode("ascii", errors="replace").strip()
            if oid in wanted:
                seen.append(oid)
                wanted.discard(oid)
                if not wanted:
                    break

    if wanted:
        raise UnknownCommitError(runner.repository, sorted(wanted)[0])

    seen.reverse()
    return seen


def sort_detections(
    runner: GitRunner, detections: Sequence[CodeSmellDetection]
) -> List[CodeSmellDetection]:
    """Return copies of detections in graph order with ordinals 0..n-1."""

    order = topological_commit_order(runner, (d.commit_oid for d in detections))
    rank: Dict[str, int] = {commit: index for index, commit in enumerate(order)}
    ordered = sorted(detections, key=lambda detection: rank[detection.commit_oid])
    return [
        detection.model_copy(update={"ordinal": ordinal})
        for ordinal, detection in enumerate(ordered)
    ]


def sequence_lifespan(
    runner: GitRunner,
    lifespan_id: str,
    detections: Sequence[CodeSmellDetection],
) -> CodeSmellLifespan:
    """Order the detections of one lifespan and wrap them in a CodeSmellLifespan."""

    if not detections:
        raise ValidationError(f"Lifespan {lifespan_id} has no detections")
    kinds = {detection.kind for detection in detections}
    if len(kinds) > 1:
        raise ValidationError(
            f"Detections of lifespan {lifespan_id} have different kinds: {sorted(kinds)}"
        )
    foreign = [d.id for d in detections if d.lifespan_id != lifespan_id]
    if foreign:
        raise ValidationError(
            f"Detections {foreign} do not belong to lifespan {lifespan_id}"
        )

    ordered = sort_detections(runner, detections)
    LOG.debug("Sequenced %d detections of lifespan %s", len(ordered), lifespan_id)
    return CodeSmellLifespan(id=lifespan_id, kind=ordered[0].kind, detections=ordered)


def sequence_lifespans(
    runner: GitRunner, detections: Sequence[CodeSmellDetection]
) -> List[CodeSmellLifespan]:
    """Group detections by lifespan (first seen first) and sequence each group."""

    groups: Dict[str, List[CodeSmellDetection]] = {}
    for detection in detections:
        groups.setdefault(detection.lifespan_id, []).append(detection)
    return [
        sequence_lifespan(runner, lifespan_id, group)
        for lifespan_id, group in groups.items()
    ]
