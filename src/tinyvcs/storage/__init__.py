"""Storage layer for tinyvcs.

This module provides the content-addressable object store, the blob and
commit object model, the metadata database and commit construction.
"""

from tinyvcs.storage.commit_builder import CommitBuilder, overlay_blobs
from tinyvcs.storage.metadata_db import DatabaseError, MetadataDB
from tinyvcs.storage.object_store import (
    MemoryObjectStore,
    ObjectCorruptedError,
    ObjectNotFoundError,
    ObjectStore,
)
from tinyvcs.storage.objects import Blob, Commit
from tinyvcs.storage.repository_store import RepositoryStore

__all__ = [
    "Blob",
    "Commit",
    "ObjectStore",
    "MemoryObjectStore",
    "ObjectNotFoundError",
    "ObjectCorruptedError",
    "MetadataDB",
    "DatabaseError",
    "RepositoryStore",
    "CommitBuilder",
    "overlay_blobs",
]
