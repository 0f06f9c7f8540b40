"""Core engine layer for tinyvcs.

This module provides the repository operations: staging, branches and head,
history traversal, checkout and three-way merge.
"""

from tinyvcs.core.checkout import CheckoutEngine
from tinyvcs.core.history import CommitGraph, format_log_entry
from tinyvcs.core.merge import FileAction, MergeOutcome, MergeResult, classify
from tinyvcs.core.refs import ReferenceTracker
from tinyvcs.core.repository import Repository, RepositoryStatus
from tinyvcs.core.staging import StagingManager
from tinyvcs.core.workdir import MemoryWorkingDirectory, WorkingDirectory

__all__ = [
    "Repository",
    "RepositoryStatus",
    "StagingManager",
    "ReferenceTracker",
    "CommitGraph",
    "CheckoutEngine",
    "FileAction",
    "MergeOutcome",
    "MergeResult",
    "classify",
    "format_log_entry",
    "WorkingDirectory",
    "MemoryWorkingDirectory",
]
