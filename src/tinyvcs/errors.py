"""User-facing error kinds for tinyvcs.

Every precondition violation raises one of these with a fixed message. The
command layer prints the message and terminates the invocation; nothing in
the engine catches them for control flow.
"""

from typing import Optional


class VcsError(Exception):
    """Base class for user-facing repository errors."""

    message = "Unknown error."

    def __init__(self, message: Optional[str] = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class NotInitialized(VcsError):
    message = "Not in an initialized tinyvcs directory."


class AlreadyInitialized(VcsError):
    message = "A tinyvcs version-control system already exists in the current directory."


class IncorrectOperands(VcsError):
    message = "Incorrect operands."


class FileNotFound(VcsError):
    message = "File does not exist."


class PathOutsideWorkspace(VcsError):
    message = "Path is outside the working directory."


class NothingToRemove(VcsError):
    message = "No reason to remove the file."


class EmptyMessage(VcsError):
    message = "Please enter a commit message."


class NothingToCommit(VcsError):
    message = "No changes added to the commit."


class NoSuchCommit(VcsError):
    message = "No commit with that id exists."


class NoSuchBranch(VcsError):
    message = "A branch with that name does not exist."


class NoSuchBranchToCheckout(NoSuchBranch):
    message = "No such branch exists."


class BranchExists(VcsError):
    message = "A branch with that name already exists."


class CannotRemoveCurrentBranch(VcsError):
    message = "Cannot remove the current branch."


class AlreadyOnBranch(VcsError):
    message = "No need to checkout the current branch."


class UntrackedFileConflict(VcsError):
    message = "There is an untracked file in the way; delete it or add it first."


class UncommittedChanges(VcsError):
    message = "You have uncommitted changes."


class SelfMerge(VcsError):
    message = "Cannot merge a branch with itself."


class FileNotInCommit(VcsError):
    message = "File does not exist in that commit."


class NoSuchCommitMessage(VcsError):
    message = "Found no commit with that message."


class RepositoryCorruptedError(Exception):
    """Raised when stored state violates an internal invariant.

    For example a branch pointing at a commit missing from the object store.
    This is not a user error and is reported separately by the CLI.
    """
