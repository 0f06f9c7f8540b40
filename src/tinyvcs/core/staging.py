"""Staging area management for tinyvcs.

The staging area tracks what the next commit changes relative to the head
commit: blobs proposed for addition or modification, and filenames whose
tracking ends. A filename is never in both partitions at once.
"""

import logging
from typing import Dict, Optional, Set

from tinyvcs.core.history import CommitGraph
from tinyvcs.core.refs import ReferenceTracker
from tinyvcs.core.workdir import BaseWorkingDirectory, normalize_path
from tinyvcs.errors import FileNotFound, NothingToRemove
from tinyvcs.storage import Blob, RepositoryStore

logger = logging.getLogger(__name__)


class StagingManager:
    """Manager for the staging area.

    Attributes:
        store: RepositoryStore persisting the staging partitions
        workdir: Working directory files are read from
        refs: Reference tracker used to find the head commit
        graph: Commit graph used to load the head commit
    """

    def __init__(
        self,
        store: RepositoryStore,
        workdir: BaseWorkingDirectory,
        refs: ReferenceTracker,
        graph: CommitGraph,
    ):
        self.store = store
        self.workdir = workdir
        self.refs = refs
        self.graph = graph

    def add(self, path: str) -> Optional[Blob]:
        """Stage the current content of a file.

        If the content matches the head commit's version, any earlier staged
        version is dropped instead and nothing new is staged. Either way a
        pending removal of the file is cancelled.

        Args:
            path: File path relative to the working tree root

        Returns:
            The staged blob, or None if the file matches the head commit

        Raises:
            FileNotFound: If the file does not exist
            PathOutsideWorkspace: If the path escapes the working tree
        """
        name = normalize_path(path)
        if not self.workdir.exists(name):
            raise FileNotFound()

        blob = Blob(name, self.workdir.read(name))
        head = self.graph.get(self.refs.head_id())

        with self.store.transaction():
            self.store.unmark_removed(name)
            if head.blobs.get(name) == blob.id:
                self.store.unstage(name)
                logger.debug("%s matches head, nothing staged", name)
                return None

            self.store.put_blob(blob)
            self.store.stage(name, blob.id)

        logger.info("Staged %s as %s", name, blob.id)
        return blob

    def remove(self, path: str) -> None:
        """Unstage a file and, if the head commit tracks it, mark it removed.

        A tracked file is also deleted from the working directory.

        Raises:
            NothingToRemove: If the file is neither tracked nor staged
        """
        name = normalize_path(path)
        head = self.graph.get(self.refs.head_id())
        tracked = name in head.blobs
        staged = name in self.store.get_staged()

        if not tracked and not staged:
            raise NothingToRemove()

        with self.store.transaction():
            if staged:
                self.store.unstage(name)
            if tracked:
                self.store.mark_removed(name)

        if tracked:
            self.workdir.delete(name)
        logger.info("Removed %s (tracked=%s, staged=%s)", name, tracked, staged)

    def get_staged(self) -> Dict[str, str]:
        """Staged filename -> blob id."""
        return self.store.get_staged()

    def get_removed(self) -> Set[str]:
        return self.store.get_removed()

    def is_empty(self) -> bool:
        return not self.get_staged() and not self.get_removed()

    def clear(self) -> None:
        self.store.clear_staging()
