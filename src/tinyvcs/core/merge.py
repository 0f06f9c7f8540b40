"""Three-way merge classification.

Everything here is pure: it takes immutable snapshots of the split point,
head and given blob maps and decides per filename what the merge does. The
repository applies the decisions afterwards.
"""

from enum import Enum
from typing import Dict, List, Mapping, Optional

from tinyvcs.constants import (
    CONFLICT_END_MARKER,
    CONFLICT_HEAD_MARKER,
    CONFLICT_SEPARATOR,
    MERGE_MESSAGE_TEMPLATE,
)


class FileAction(Enum):
    """What the merge does with one filename."""

    UNCHANGED = "unchanged"  # both sides agree
    TAKE_HEAD = "take_head"  # only head changed it, keep head's version
    TAKE_GIVEN = "take_given"  # only given changed or added it
    DELETE = "delete"  # given deleted it, head left it alone
    CONFLICT = "conflict"  # both sides changed it differently


class MergeOutcome(Enum):
    ANCESTOR = "ancestor"
    FAST_FORWARD = "fast_forward"
    MERGED = "merged"


def classify_file(
    split: Optional[str],
    head: Optional[str],
    given: Optional[str],
) -> FileAction:
    """Classify one filename from its blob id on each side.

    Args:
        split: Blob id at the split point, None if absent
        head: Blob id in the head commit, None if absent
        given: Blob id in the given commit, None if absent
    """
    if head == given:
        return FileAction.UNCHANGED
    if head == split:
        if given is None:
            return FileAction.DELETE
        return FileAction.TAKE_GIVEN
    if given == split:
        return FileAction.TAKE_HEAD
    return FileAction.CONFLICT


def classify(
    split: Mapping[str, str],
    head: Mapping[str, str],
    given: Mapping[str, str],
) -> Dict[str, FileAction]:
    """Classify every filename present in any of the three blob maps.

    Returns:
        Filename -> FileAction, in filename order
    """
    names = sorted(set(split) | set(head) | set(given))
    return {
        name: classify_file(split.get(name), head.get(name), given.get(name))
        for name in names
    }


def conflict_content(head: Optional[bytes], given: Optional[bytes]) -> bytes:
    """Build the conflict-marked file content.

    A side that lacks the file contributes empty content.
    """
    return (
        CONFLICT_HEAD_MARKER
        + (head or b"")
        + CONFLICT_SEPARATOR
        + (given or b"")
        + CONFLICT_END_MARKER
    )


def merge_message(given_branch: str, current_branch: str) -> str:
    return MERGE_MESSAGE_TEMPLATE.format(given=given_branch, current=current_branch)


class MergeResult:
    """Outcome of a merge.

    Attributes:
        outcome: Which of the three merge paths was taken
        commit_id: New head commit id (None for ANCESTOR)
        actions: Per-file classification (empty unless MERGED)
    """

    def __init__(
        self,
        outcome: MergeOutcome,
        commit_id: Optional[str] = None,
        actions: Optional[Mapping[str, FileAction]] = None,
    ):
        self.outcome = outcome
        self.commit_id = commit_id
        self.actions = dict(actions or {})

    @property
    def conflicts(self) -> List[str]:
        return [name for name, action in self.actions.items() if action is FileAction.CONFLICT]

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def __repr__(self) -> str:
        return (
            f"MergeResult({self.outcome.value}, commit={self.commit_id}, "
            f"conflicts={self.conflicts})"
        )
