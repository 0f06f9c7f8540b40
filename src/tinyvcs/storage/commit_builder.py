"""Commit object builder.

This module handles the creation of commit objects, which represent
snapshots of the tracked file set at a point in time. It is the single path
through which history grows: ordinary commits and merge commits both go
through ``CommitBuilder.create_commit``.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, Mapping, Optional

from tinyvcs.storage.objects import Commit, format_timestamp
from tinyvcs.storage.repository_store import RepositoryStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def overlay_blobs(
    base: Mapping[str, str],
    staged: Mapping[str, str],
    removed: Iterable[str],
) -> Dict[str, str]:
    """Apply a staging area on top of a blob map.

    Removed names are dropped first, then staged entries win.

    Args:
        base: Blob map of the parent commit
        staged: Staged filename -> blob id
        removed: Filenames whose tracking ends

    Returns:
        New filename -> blob id mapping
    """
    blobs = dict(base)
    for name in removed:
        blobs.pop(name, None)
    blobs.update(staged)
    return blobs


class CommitBuilder:
    """Builder for creating and persisting commit objects.

    Attributes:
        store: RepositoryStore the commit is written to
        clock: Source of commit timestamps
    """

    def __init__(self, store: RepositoryStore, clock: Optional[Clock] = None):
        """Initialize CommitBuilder.

        Args:
            store: Repository storage
            clock: Callable returning the current time (UTC now by default)
        """
        self.store = store
        self.clock = clock or utc_now

    def create_commit(
        self,
        message: str,
        parent: Commit,
        staged: Mapping[str, str],
        removed: Iterable[str],
        parent2: Optional[str] = None,
    ) -> Commit:
        """Create and persist a commit on top of ``parent``.

        Args:
            message: Commit message
            parent: Commit the new one descends from (its blob map is the base)
            staged: Staged filename -> blob id
            removed: Filenames marked for removal
            parent2: Second parent id for merge commits

        Returns:
            The persisted commit

        Raises:
            EmptyMessage: If message is empty
        """
        blobs = overlay_blobs(parent.blobs, staged, removed)
        commit = Commit(
            message=message,
            timestamp=format_timestamp(self.clock()),
            parent=parent.id,
            parent2=parent2,
            blobs=blobs,
        )
        self.store.put_commit(commit)
        logger.debug(
            "Created commit %s (parent %s%s, %d file(s))",
            commit.id,
            parent.id,
            f", merge parent {parent2}" if parent2 else "",
            len(blobs),
        )
        return commit
