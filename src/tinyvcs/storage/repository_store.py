"""Single storage abstraction the engine depends on.

``RepositoryStore`` bundles the object store and the metadata database so
that no engine component touches raw paths. ``RepositoryStore.in_memory()``
provides the same contract without a filesystem.
"""

import logging
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Set

from tinyvcs.constants import DB_SCHEMA_VERSION, METADATA_DB, OBJECTS_DIR
from tinyvcs.storage.metadata_db import MEMORY_DB, DatabaseError, MetadataDB
from tinyvcs.storage.object_store import (
    BaseObjectStore,
    MemoryObjectStore,
    ObjectStore,
)
from tinyvcs.storage.objects import Blob, Commit

logger = logging.getLogger(__name__)


class RepositoryStore:
    """Object Store and Reference Tracker persistence behind one interface.

    Attributes:
        objects: Content-addressed object store
        db: Metadata database (commit index, refs, staging)
        tinyvcs_dir: Repository metadata directory, None when in memory
    """

    def __init__(
        self,
        objects: BaseObjectStore,
        db: MetadataDB,
        tinyvcs_dir: Optional[Path] = None,
    ) -> None:
        self.objects = objects
        self.db = db
        self.tinyvcs_dir = tinyvcs_dir

    @classmethod
    def create(cls, tinyvcs_dir: Path) -> "RepositoryStore":
        """Create the on-disk layout and return an open store.

        Raises:
            FileExistsError: If tinyvcs_dir already exists
        """
        tinyvcs_dir = Path(tinyvcs_dir)
        tinyvcs_dir.mkdir()
        try:
            (tinyvcs_dir / OBJECTS_DIR).mkdir()
            db = MetadataDB(tinyvcs_dir / METADATA_DB)
            db.open()
            db.init_schema()
        except Exception:
            # Clean up partial initialization
            shutil.rmtree(tinyvcs_dir, ignore_errors=True)
            raise
        logger.debug("Created repository storage at %s", tinyvcs_dir)
        return cls(ObjectStore(tinyvcs_dir), db, tinyvcs_dir)

    @classmethod
    def open(cls, tinyvcs_dir: Path) -> "RepositoryStore":
        """Open an existing on-disk repository store.

        Raises:
            DatabaseError: If the metadata schema version is not the one
                this version of tinyvcs writes
        """
        tinyvcs_dir = Path(tinyvcs_dir)
        db = MetadataDB(tinyvcs_dir / METADATA_DB)
        db.open()
        try:
            version = db.get_schema_version()
            if version != DB_SCHEMA_VERSION:
                raise DatabaseError(
                    f"Unsupported metadata schema version {version} "
                    f"(expected {DB_SCHEMA_VERSION})"
                )
        except DatabaseError:
            db.close()
            raise
        return cls(ObjectStore(tinyvcs_dir), db, tinyvcs_dir)

    @classmethod
    def in_memory(cls) -> "RepositoryStore":
        """A fresh store that lives only as long as this object."""
        db = MetadataDB(MEMORY_DB)
        db.open()
        db.init_schema()
        return cls(MemoryObjectStore(), db)

    def close(self) -> None:
        self.db.close()

    def __enter__(self) -> "RepositoryStore":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Make a group of ref, index and staging updates atomic."""
        with self.db.transaction():
            yield

    # Objects

    def put_blob(self, blob: Blob) -> str:
        """Persist a blob (idempotent) and return its id."""
        return self.objects.write(blob.serialize())

    def get_blob(self, blob_id: str) -> Blob:
        """Load a blob by id.

        Raises:
            ObjectNotFoundError: If no such object is stored
            ObjectCorruptedError: If the object fails verification
        """
        return Blob.deserialize(self.objects.read(blob_id))

    def put_commit(self, commit: Commit) -> str:
        """Persist a commit object and index it (both idempotent)."""
        commit_id = self.objects.write(commit.serialize())
        self.db.insert_commit(
            commit_hash=commit_id,
            parent_hash=commit.parent,
            parent2_hash=commit.parent2,
            timestamp=commit.timestamp,
            message=commit.message,
        )
        return commit_id

    def get_commit(self, commit_id: str) -> Commit:
        """Load a commit by full id.

        Raises:
            ObjectNotFoundError: If no such object is stored
            ObjectCorruptedError: If the object fails verification
        """
        return Commit.deserialize(self.objects.read(commit_id))

    # Commit index

    def lookup_commit_id(self, prefix: str) -> Optional[str]:
        """Resolve a commit id prefix against the index (first match wins)."""
        row = self.db.get_commit_by_hash(prefix)
        if row is None:
            return None
        return row["commit_hash"]

    def commit_ids(self) -> List[str]:
        """Every indexed commit id in insertion order."""
        return [row["commit_hash"] for row in self.db.get_all_commits()]

    def commit_ids_with_message(self, message: str) -> List[str]:
        return [row["commit_hash"] for row in self.db.find_commits_by_message(message)]

    # References

    def get_branches(self) -> Dict[str, str]:
        return self.db.get_branches()

    def get_branch(self, name: str) -> Optional[str]:
        return self.db.get_branch(name)

    def set_branch(self, name: str, commit_id: str) -> None:
        self.db.set_branch(name, commit_id)

    def delete_branch(self, name: str) -> None:
        self.db.delete_branch(name)

    def get_head_branch(self) -> Optional[str]:
        return self.db.get_head_branch()

    def set_head_branch(self, name: str) -> None:
        self.db.set_head_branch(name)

    # Staging

    def get_staged(self) -> Dict[str, str]:
        return self.db.get_staged()

    def stage(self, path: str, blob_id: str) -> None:
        self.db.stage(path, blob_id)

    def unstage(self, path: str) -> None:
        self.db.unstage(path)

    def get_removed(self) -> Set[str]:
        return self.db.get_removed()

    def mark_removed(self, path: str) -> None:
        self.db.mark_removed(path)

    def unmark_removed(self, path: str) -> None:
        self.db.unmark_removed(path)

    def clear_staging(self) -> None:
        self.db.clear_staging()
