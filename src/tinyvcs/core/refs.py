"""Reference tracking: branch pointers and the head.

The head is the active branch name; the head commit is whatever that branch
points to. Moving a branch never touches the object store.
"""

import logging
from typing import Dict

from tinyvcs.constants import DEFAULT_BRANCH
from tinyvcs.errors import (
    BranchExists,
    CannotRemoveCurrentBranch,
    NoSuchBranch,
    RepositoryCorruptedError,
)
from tinyvcs.storage import RepositoryStore

logger = logging.getLogger(__name__)


class ReferenceTracker:
    """Branch name -> commit id mapping plus the active branch.

    Attributes:
        store: RepositoryStore holding the refs
    """

    def __init__(self, store: RepositoryStore) -> None:
        self.store = store

    def initialize(self, root_commit_id: str, branch: str = DEFAULT_BRANCH) -> None:
        """Point the default branch at the root commit and make it active."""
        with self.store.transaction():
            self.store.set_branch(branch, root_commit_id)
            self.store.set_head_branch(branch)

    def current_branch(self) -> str:
        name = self.store.get_head_branch()
        if name is None:
            raise RepositoryCorruptedError("Head branch is not set")
        return name

    def head_id(self) -> str:
        """Commit id of the active branch."""
        name = self.current_branch()
        commit_id = self.store.get_branch(name)
        if commit_id is None:
            raise RepositoryCorruptedError(f"Active branch {name!r} has no commit")
        return commit_id

    def branches(self) -> Dict[str, str]:
        return self.store.get_branches()

    def has_branch(self, name: str) -> bool:
        return self.store.get_branch(name) is not None

    def branch_target(self, name: str) -> str:
        """Commit id a branch points to.

        Raises:
            NoSuchBranch: If the branch is unknown
        """
        commit_id = self.store.get_branch(name)
        if commit_id is None:
            raise NoSuchBranch()
        return commit_id

    def create_branch(self, name: str, commit_id: str) -> None:
        """Record a new branch.

        Raises:
            BranchExists: If the name is already tracked
        """
        if self.has_branch(name):
            raise BranchExists()
        self.store.set_branch(name, commit_id)
        logger.info("Created branch %s at %s", name, commit_id)

    def delete_branch(self, name: str) -> None:
        """Forget a branch pointer (its commits stay in the store).

        Raises:
            NoSuchBranch: If the branch is unknown
            CannotRemoveCurrentBranch: If it is the active branch
        """
        if not self.has_branch(name):
            raise NoSuchBranch()
        if name == self.current_branch():
            raise CannotRemoveCurrentBranch()
        self.store.delete_branch(name)
        logger.info("Removed branch %s", name)

    def advance(self, commit_id: str) -> None:
        """Move the active branch to ``commit_id``."""
        name = self.current_branch()
        self.store.set_branch(name, commit_id)
        logger.debug("Branch %s -> %s", name, commit_id)

    def switch(self, name: str) -> None:
        """Make ``name`` the active branch."""
        self.store.set_head_branch(name)
        logger.debug("Head -> %s", name)
