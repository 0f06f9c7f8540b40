"""Content-addressable object storage for tinyvcs.

This module implements a Git-like object store using SHA-1 hashing for
content addressing. Objects are stored in .tinyvcs/objects/ with automatic
deduplication. The store is append-only: objects are never updated or
deleted once written.
"""

import hashlib
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict

from tinyvcs.constants import HASH_ALGORITHM, HASH_LENGTH, OBJECTS_DIR


class ObjectNotFoundError(Exception):
    """Raised when an object cannot be found in the object store."""

    pass


class ObjectCorruptedError(Exception):
    """Raised when an object's hash doesn't match its content."""

    pass


def compute_hash(content: bytes) -> str:
    """Compute the object id of serialized content.

    Args:
        content: Binary data to hash

    Returns:
        Hex string of hash (40 characters for SHA-1)
    """
    hasher = hashlib.new(HASH_ALGORITHM)
    hasher.update(content)
    return hasher.hexdigest()


def validate_hash(object_id: str) -> None:
    """Validate that an object id is properly formatted.

    Args:
        object_id: Hash string to validate

    Raises:
        ValueError: If hash is invalid format
    """
    if not isinstance(object_id, str):
        raise ValueError(f"Hash must be string, got {type(object_id)}")

    if len(object_id) != HASH_LENGTH:
        raise ValueError(
            f"Hash must be {HASH_LENGTH} characters, got {len(object_id)}"
        )

    try:
        int(object_id, 16)
    except ValueError as e:
        raise ValueError(f"Hash must be hexadecimal: {e}") from e


class BaseObjectStore(ABC):
    """Append-only store of serialized objects keyed by their own hash.

    Subclasses only provide raw byte access; hashing, deduplication and
    verification live here.
    """

    def write(self, content: bytes) -> str:
        """Write serialized object bytes to the store.

        If an object with the same hash already exists, returns the hash
        without writing (deduplication).

        Args:
            content: Serialized object

        Returns:
            Object id (SHA-1 hex digest of content)
        """
        object_id = compute_hash(content)
        if self._has_raw(object_id):
            return object_id
        self._write_raw(object_id, content)
        return object_id

    def read(self, object_id: str, verify_hash: bool = True) -> bytes:
        """Read serialized object bytes.

        Args:
            object_id: Full object id
            verify_hash: Whether to recompute and verify hash (default: True)

        Returns:
            Stored bytes

        Raises:
            ObjectNotFoundError: If the object doesn't exist
            ObjectCorruptedError: If hash verification fails
            ValueError: If object_id is invalid format
        """
        validate_hash(object_id)

        content = self._read_raw(object_id)

        if verify_hash:
            actual_hash = compute_hash(content)
            if actual_hash != object_id:
                raise ObjectCorruptedError(
                    f"Object corrupted: expected {object_id}, got {actual_hash}"
                )

        return content

    @abstractmethod
    def _read_raw(self, object_id: str) -> bytes:
        pass

    @abstractmethod
    def _write_raw(self, object_id: str, content: bytes) -> None:
        pass

    @abstractmethod
    def _has_raw(self, object_id: str) -> bool:
        pass


class ObjectStore(BaseObjectStore):
    """On-disk content-addressable storage.

    Storage layout:
        .tinyvcs/objects/<hash[:2]>/<hash[2:]>

    Attributes:
        objects_dir: Path to the objects directory

    Example:
        >>> store = ObjectStore(Path(".tinyvcs"))
        >>> object_id = store.write(b'{"type":"blob"}')
        >>> assert store.read(object_id) == b'{"type":"blob"}'
    """

    def __init__(self, tinyvcs_dir: Path) -> None:
        """Initialize the object store.

        Args:
            tinyvcs_dir: Path to .tinyvcs directory

        Raises:
            ValueError: If tinyvcs_dir doesn't exist
        """
        self.tinyvcs_dir = Path(tinyvcs_dir)
        self.objects_dir = self.tinyvcs_dir / OBJECTS_DIR

        if not self.tinyvcs_dir.exists():
            raise ValueError(f"tinyvcs directory not found: {tinyvcs_dir}")

    def _read_raw(self, object_id: str) -> bytes:
        object_path = self._get_object_path(object_id)
        if not object_path.exists():
            raise ObjectNotFoundError(f"Object not found: {object_id} (tried {object_path})")
        with open(object_path, "rb") as f:
            return f.read()

    def _has_raw(self, object_id: str) -> bool:
        return self._get_object_path(object_id).exists()

    def _write_raw(self, object_id: str, content: bytes) -> None:
        object_path = self._get_object_path(object_id)
        object_path.parent.mkdir(parents=True, exist_ok=True)

        # Atomic write: tmp file -> rename
        tmp_fd, tmp_path = tempfile.mkstemp(
            dir=object_path.parent,
            prefix=".tmp_",
            suffix=".obj",
        )
        try:
            with os.fdopen(tmp_fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())

            try:
                os.replace(tmp_path, object_path)
            except OSError:
                # Another writer produced the same object first
                if object_path.exists():
                    os.unlink(tmp_path)
                    return
                raise

        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def _get_object_path(self, object_id: str) -> Path:
        """Get the filesystem path for an object.

        Uses Git-like sharding: objects/<hash[:2]>/<hash[2:]>
        """
        return self.objects_dir / object_id[:2] / object_id[2:]


class MemoryObjectStore(BaseObjectStore):
    """Dictionary-backed object store for tests and scratch repositories."""

    def __init__(self) -> None:
        self._objects: Dict[str, bytes] = {}

    def _read_raw(self, object_id: str) -> bytes:
        try:
            return self._objects[object_id]
        except KeyError:
            raise ObjectNotFoundError(f"Object not found: {object_id}") from None

    def _write_raw(self, object_id: str, content: bytes) -> None:
        self._objects[object_id] = bytes(content)

    def _has_raw(self, object_id: str) -> bool:
        return object_id in self._objects
