"""Materializing commits into the working directory.

Checkout of a branch, reset and fast-forward merges all end in the same
place: make the working directory match a target commit without silently
overwriting files the repository does not track.
"""

import logging

from tinyvcs.core.workdir import BaseWorkingDirectory
from tinyvcs.errors import FileNotInCommit, RepositoryCorruptedError, UntrackedFileConflict
from tinyvcs.storage import Commit, ObjectNotFoundError, RepositoryStore

logger = logging.getLogger(__name__)


class CheckoutEngine:
    """Writes commit contents to a working directory.

    Attributes:
        store: RepositoryStore the blobs are read from
        workdir: Working directory files are written to
    """

    def __init__(self, store: RepositoryStore, workdir: BaseWorkingDirectory) -> None:
        self.store = store
        self.workdir = workdir

    def read_blob_content(self, blob_id: str) -> bytes:
        try:
            return self.store.get_blob(blob_id).content
        except ObjectNotFoundError as e:
            raise RepositoryCorruptedError(f"Missing blob object {blob_id}") from e

    def check_untracked(self, current: Commit, target: Commit) -> None:
        """Refuse to clobber untracked files.

        Every file tracked by ``target`` but not by ``current`` must be
        absent from the working directory.

        Raises:
            UntrackedFileConflict: If such a file exists on disk
        """
        for name in sorted(set(target.blobs) - set(current.blobs)):
            if self.workdir.exists(name):
                logger.debug("Untracked file %s would be overwritten", name)
                raise UntrackedFileConflict()

    def restore_file(self, commit: Commit, name: str) -> None:
        """Write one file from ``commit`` into the working directory.

        Raises:
            FileNotInCommit: If ``commit`` does not track ``name``
        """
        blob_id = commit.blobs.get(name)
        if blob_id is None:
            raise FileNotInCommit()
        self.workdir.write(name, self.read_blob_content(blob_id))
        logger.debug("Restored %s from %s", name, commit.id)

    def materialize(self, current: Commit, target: Commit) -> None:
        """Make the tracked files of the working directory match ``target``.

        Writes every file of ``target`` and deletes files tracked by
        ``current`` that ``target`` does not track. Callers run
        ``check_untracked`` first.
        """
        # Load everything before the first write so a missing blob aborts cleanly
        contents = {
            name: self.read_blob_content(blob_id) for name, blob_id in target.blobs.items()
        }
        for name, content in sorted(contents.items()):
            self.workdir.write(name, content)

        stale = sorted(set(current.blobs) - set(target.blobs))
        self.workdir.delete_all(stale)
        logger.info(
            "Checked out %s: %d file(s) written, %d removed",
            target.id,
            len(contents),
            len(stale),
        )
