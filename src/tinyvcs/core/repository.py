"""The repository engine.

``Repository`` is the single entry point for every user-visible operation.
Each operation validates all of its preconditions before the first write to
the working directory, and groups its ref, index and staging updates in one
metadata transaction.
"""

import logging
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from tinyvcs.constants import TINYVCS_DIR
from tinyvcs.core.checkout import CheckoutEngine
from tinyvcs.core.history import CommitGraph
from tinyvcs.core.merge import (
    FileAction,
    MergeOutcome,
    MergeResult,
    classify,
    conflict_content,
    merge_message,
)
from tinyvcs.core.refs import ReferenceTracker
from tinyvcs.core.staging import StagingManager
from tinyvcs.core.workdir import (
    BaseWorkingDirectory,
    MemoryWorkingDirectory,
    WorkingDirectory,
    normalize_path,
)
from tinyvcs.errors import (
    AlreadyInitialized,
    AlreadyOnBranch,
    EmptyMessage,
    NoSuchBranchToCheckout,
    NotInitialized,
    NothingToCommit,
    SelfMerge,
    UncommittedChanges,
)
from tinyvcs.storage import Blob, Commit, CommitBuilder, RepositoryStore
from tinyvcs.storage.commit_builder import Clock

logger = logging.getLogger(__name__)


class RepositoryStatus:
    """Snapshot of branches and the staging area.

    The modification and untracked sections are always empty.
    """

    def __init__(
        self,
        current_branch: str,
        branches: List[str],
        staged: List[str],
        removed: List[str],
    ):
        self.current_branch = current_branch
        self.branches = branches
        self.staged = staged
        self.removed = removed
        self.modified: List[str] = []
        self.untracked: List[str] = []

    def render(self) -> str:
        sections = [
            ("Branches", [f"*{self.current_branch}"] + [
                name for name in self.branches if name != self.current_branch
            ]),
            ("Staged Files", self.staged),
            ("Removed Files", self.removed),
            ("Modifications Not Staged For Commit", self.modified),
            ("Untracked Files", self.untracked),
        ]
        lines = []
        for title, entries in sections:
            lines.append(f"=== {title} ===")
            lines.extend(entries)
            lines.append("")
        return "\n".join(lines) + "\n"


class Repository:
    """A working tree plus its object graph, refs and staging area.

    Attributes:
        store: Persistence for objects, refs and staging
        workdir: Working directory the repository tracks
        refs: Branch pointers and head
        graph: Commit lookup and traversal
        staging: Staging area operations
        checkout_engine: Working directory materialization
        builder: Commit construction

    Example:
        >>> repo = Repository.init(Path("."))
        >>> repo.add("hello.txt")
        >>> repo.commit("first")
    """

    def __init__(
        self,
        store: RepositoryStore,
        workdir: BaseWorkingDirectory,
        clock: Optional[Clock] = None,
    ) -> None:
        self.store = store
        self.workdir = workdir
        self.refs = ReferenceTracker(store)
        self.graph = CommitGraph(store)
        self.staging = StagingManager(store, workdir, self.refs, self.graph)
        self.checkout_engine = CheckoutEngine(store, workdir)
        self.builder = CommitBuilder(store, clock)

    @classmethod
    def init(cls, root: Path, clock: Optional[Clock] = None) -> "Repository":
        """Create a new repository in ``root``.

        Raises:
            AlreadyInitialized: If ``root`` already holds a repository
        """
        root = Path(root)
        tinyvcs_dir = root / TINYVCS_DIR
        if tinyvcs_dir.exists():
            raise AlreadyInitialized()

        store = RepositoryStore.create(tinyvcs_dir)
        try:
            repo = cls(store, WorkingDirectory(root), clock)
            repo._initialize()
        except Exception:
            store.close()
            shutil.rmtree(tinyvcs_dir, ignore_errors=True)
            raise
        logger.info("Initialized repository in %s", root)
        return repo

    @classmethod
    def open(cls, root: Path, clock: Optional[Clock] = None) -> "Repository":
        """Open the repository rooted at ``root``.

        Raises:
            NotInitialized: If ``root`` holds no repository
        """
        root = Path(root)
        tinyvcs_dir = root / TINYVCS_DIR
        if not tinyvcs_dir.is_dir():
            raise NotInitialized()
        return cls(RepositoryStore.open(tinyvcs_dir), WorkingDirectory(root), clock)

    @classmethod
    def in_memory(
        cls,
        workdir: Optional[BaseWorkingDirectory] = None,
        clock: Optional[Clock] = None,
    ) -> "Repository":
        """A fully initialized repository that never touches the disk."""
        repo = cls(RepositoryStore.in_memory(), workdir or MemoryWorkingDirectory(), clock)
        repo._initialize()
        return repo

    def _initialize(self) -> None:
        root = Commit.root()
        with self.store.transaction():
            self.store.put_commit(root)
            self.refs.initialize(root.id)

    def close(self) -> None:
        self.store.close()

    def __enter__(self) -> "Repository":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # Queries

    def current_branch(self) -> str:
        return self.refs.current_branch()

    def head_commit(self) -> Commit:
        return self.graph.get(self.refs.head_id())

    def log(self) -> List[Commit]:
        """Head and its first-parent ancestors, newest first."""
        return list(self.graph.first_parent_chain(self.head_commit()))

    def global_log(self) -> List[Commit]:
        """Every commit ever made, in the order it was recorded."""
        return self.graph.all_commits()

    def find(self, message: str) -> List[str]:
        """Ids of all commits with exactly ``message``.

        Raises:
            NoSuchCommitMessage: If none match
        """
        return self.graph.find(message)

    def status(self) -> RepositoryStatus:
        return RepositoryStatus(
            current_branch=self.current_branch(),
            branches=sorted(self.refs.branches()),
            staged=sorted(self.staging.get_staged()),
            removed=sorted(self.staging.get_removed()),
        )

    # Staging

    def add(self, path: str) -> Optional[Blob]:
        return self.staging.add(path)

    def rm(self, path: str) -> None:
        self.staging.remove(path)

    # History growth

    def commit(self, message: str) -> Commit:
        """Record the staging area as a new commit on the current branch.

        Raises:
            EmptyMessage: If message is empty
            NothingToCommit: If nothing is staged or marked for removal
        """
        if not message:
            raise EmptyMessage()
        if self.staging.is_empty():
            raise NothingToCommit()

        head = self.head_commit()
        with self.store.transaction():
            commit = self.builder.create_commit(
                message=message,
                parent=head,
                staged=self.staging.get_staged(),
                removed=self.staging.get_removed(),
            )
            self.refs.advance(commit.id)
            self.staging.clear()

        logger.info("Committed %s on %s", commit.id, self.current_branch())
        return commit

    # Branches

    def branch(self, name: str) -> None:
        """Create a branch at the head commit.

        Raises:
            BranchExists: If the name is taken
        """
        self.refs.create_branch(name, self.refs.head_id())

    def rm_branch(self, name: str) -> None:
        self.refs.delete_branch(name)

    # Checkout and reset

    def checkout_file(self, name: str, commit_id: Optional[str] = None) -> None:
        """Restore one file from the head commit or from ``commit_id``.

        Raises:
            NoSuchCommit: If commit_id resolves to nothing
            FileNotInCommit: If the commit does not track the file
        """
        if commit_id is None:
            commit = self.head_commit()
        else:
            commit = self.graph.resolve(commit_id)
        self.checkout_engine.restore_file(commit, normalize_path(name))

    def checkout_branch(self, name: str) -> Commit:
        """Switch to another branch, replacing the tracked files.

        Raises:
            NoSuchBranchToCheckout: If the branch is unknown
            AlreadyOnBranch: If it is the current branch
            UntrackedFileConflict: If an untracked file would be overwritten
        """
        if not self.refs.has_branch(name):
            raise NoSuchBranchToCheckout()
        if name == self.current_branch():
            raise AlreadyOnBranch()

        head = self.head_commit()
        target = self.graph.get(self.refs.branch_target(name))
        self.checkout_engine.check_untracked(head, target)

        self.checkout_engine.materialize(head, target)
        with self.store.transaction():
            self.staging.clear()
            self.refs.switch(name)

        logger.info("Switched to branch %s at %s", name, target.id)
        return target

    def reset(self, commit_id: str) -> Commit:
        """Move the current branch to a commit and check it out.

        Raises:
            NoSuchCommit: If commit_id resolves to nothing
            UntrackedFileConflict: If an untracked file would be overwritten
        """
        target = self.graph.resolve(commit_id)
        head = self.head_commit()
        self.checkout_engine.check_untracked(head, target)

        self._move_head_to(head, target)
        logger.info("Reset %s to %s", self.current_branch(), target.id)
        return target

    def _move_head_to(self, head: Commit, target: Commit) -> None:
        self.checkout_engine.materialize(head, target)
        with self.store.transaction():
            self.refs.advance(target.id)
            self.staging.clear()

    # Merge

    def merge(self, branch: str) -> MergeResult:
        """Merge ``branch`` into the current branch.

        Conflicts do not abort the merge: conflicted files are committed
        with conflict markers and listed in ``MergeResult.conflicts``.

        Raises:
            UncommittedChanges: If the staging area is not empty
            NoSuchBranch: If the branch is unknown
            SelfMerge: If it is the current branch
            UntrackedFileConflict: If an untracked file would be overwritten
            NothingToCommit: If the merge changes nothing
        """
        if not self.staging.is_empty():
            raise UncommittedChanges()
        given_id = self.refs.branch_target(branch)
        current = self.current_branch()
        if branch == current:
            raise SelfMerge()

        head = self.head_commit()
        given = self.graph.get(given_id)
        self.checkout_engine.check_untracked(head, given)

        split = self.graph.split_point(head, given)
        if split.id == given.id:
            logger.info("%s is an ancestor of %s, nothing to merge", branch, current)
            return MergeResult(MergeOutcome.ANCESTOR, head.id)

        if split.id == head.id:
            self._move_head_to(head, given)
            logger.info("Fast-forwarded %s to %s", current, given.id)
            return MergeResult(MergeOutcome.FAST_FORWARD, given.id)

        actions = classify(split.blobs, head.blobs, given.blobs)
        staged, removed, writes = self._plan_merge(head, given, actions)
        if not staged and not removed:
            raise NothingToCommit()

        for name, content in sorted(writes.items()):
            self.workdir.write(name, content)
        self.workdir.delete_all(sorted(removed))

        with self.store.transaction():
            for name, blob_id in staged.items():
                self.store.stage(name, blob_id)
            for name in removed:
                self.store.mark_removed(name)
            commit = self.builder.create_commit(
                message=merge_message(branch, current),
                parent=head,
                staged=self.staging.get_staged(),
                removed=self.staging.get_removed(),
                parent2=given.id,
            )
            self.refs.advance(commit.id)
            self.staging.clear()

        result = MergeResult(MergeOutcome.MERGED, commit.id, actions)
        if result.has_conflicts:
            logger.info("Merge of %s left conflicts in %s", branch, ", ".join(result.conflicts))
        logger.info("Merged %s into %s as %s", branch, current, commit.id)
        return result

    def _plan_merge(
        self,
        head: Commit,
        given: Commit,
        actions: Dict[str, FileAction],
    ) -> Tuple[Dict[str, str], Set[str], Dict[str, bytes]]:
        """Turn per-file actions into staged blobs, removals and file writes.

        New conflict blobs are written to the object store here; nothing in
        the working directory changes yet.
        """
        staged: Dict[str, str] = {}
        removed: Set[str] = set()
        writes: Dict[str, bytes] = {}

        for name, action in actions.items():
            if action is FileAction.TAKE_GIVEN:
                blob_id = given.blobs[name]
                writes[name] = self.checkout_engine.read_blob_content(blob_id)
                staged[name] = blob_id
            elif action is FileAction.DELETE:
                removed.add(name)
            elif action is FileAction.CONFLICT:
                head_id = head.blobs.get(name)
                given_id = given.blobs.get(name)
                content = conflict_content(
                    self.checkout_engine.read_blob_content(head_id) if head_id else None,
                    self.checkout_engine.read_blob_content(given_id) if given_id else None,
                )
                blob = Blob(name, content)
                self.store.put_blob(blob)
                writes[name] = content
                staged[name] = blob.id

        return staged, removed, writes
