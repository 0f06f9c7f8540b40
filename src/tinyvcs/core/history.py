"""Commit graph traversal.

Lookup and id-prefix resolution, first-parent walks, ancestor sets, split
point discovery and log formatting. Ancestor sets deliberately follow only
first parents: the second parent of a merge commit is never traversed.
"""

import logging
from typing import Iterator, List, Set

from tinyvcs.constants import LOG_DATE_SUFFIX, LOG_SEPARATOR, SHORT_HASH_LENGTH
from tinyvcs.errors import NoSuchCommit, NoSuchCommitMessage, RepositoryCorruptedError
from tinyvcs.storage import Commit, ObjectNotFoundError, RepositoryStore

logger = logging.getLogger(__name__)


def format_date(commit: Commit) -> str:
    """Format a commit date like ``Thu Jan 1 00:00:00 1970 -0800``."""
    moment = commit.committed_at
    return f"{moment:%a %b} {moment.day} {moment:%H:%M:%S %Y} {LOG_DATE_SUFFIX}"


def format_log_entry(commit: Commit) -> str:
    """Render one log entry, including its trailing blank line."""
    lines = [LOG_SEPARATOR, f"commit {commit.id}"]
    if commit.is_merge:
        lines.append(
            f"Merge: {commit.parent[:SHORT_HASH_LENGTH]} "
            f"{commit.parent2[:SHORT_HASH_LENGTH]}"
        )
    lines.append(f"Date: {format_date(commit)}")
    lines.append(commit.message)
    lines.append("")
    return "\n".join(lines) + "\n"


class CommitGraph:
    """Read-only view of the commit DAG stored in a RepositoryStore."""

    def __init__(self, store: RepositoryStore) -> None:
        self.store = store

    def get(self, commit_id: str) -> Commit:
        """Load a commit that the repository state says must exist.

        Raises:
            RepositoryCorruptedError: If the commit is missing from the store
        """
        try:
            return self.store.get_commit(commit_id)
        except ObjectNotFoundError as e:
            raise RepositoryCorruptedError(f"Missing commit object {commit_id}") from e

    def resolve(self, prefix: str) -> Commit:
        """Resolve a full id or id prefix to a commit.

        Raises:
            NoSuchCommit: If no stored commit id starts with ``prefix``
        """
        commit_id = self.store.lookup_commit_id(prefix)
        if commit_id is None:
            raise NoSuchCommit()
        return self.get(commit_id)

    def first_parent_chain(self, start: Commit) -> Iterator[Commit]:
        """Yield ``start`` and then each first parent up to the root."""
        current = start
        while True:
            yield current
            if current.parent is None:
                return
            current = self.get(current.parent)

    def ancestors(self, commit: Commit) -> Set[str]:
        """Ids reachable from ``commit`` by first parents, itself included."""
        return {ancestor.id for ancestor in self.first_parent_chain(commit)}

    def split_point(self, head: Commit, given: Commit) -> Commit:
        """Nearest common first-parent ancestor of two commits.

        Common ancestors all lie on one first-parent chain, so the first of
        them met walking back from ``head`` is the latest, whatever the
        timestamps say.
        """
        given_ancestors = self.ancestors(given)
        for candidate in self.first_parent_chain(head):
            if candidate.id in given_ancestors:
                logger.debug(
                    "Split point of %s and %s is %s", head.id, given.id, candidate.id
                )
                return candidate
        raise RepositoryCorruptedError(
            f"Commits {head.id} and {given.id} share no ancestor"
        )

    def all_commits(self) -> List[Commit]:
        """Every stored commit in the order it was recorded."""
        return [self.get(commit_id) for commit_id in self.store.commit_ids()]

    def find(self, message: str) -> List[str]:
        """Ids of all commits whose message is exactly ``message``.

        Raises:
            NoSuchCommitMessage: If nothing matches
        """
        matches = self.store.commit_ids_with_message(message)
        if not matches:
            raise NoSuchCommitMessage()
        return matches
