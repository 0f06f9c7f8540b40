"""Unit tests for ObjectStore."""

import hashlib
import os
from pathlib import Path

import pytest

from tinyvcs.storage.object_store import (
    MemoryObjectStore,
    ObjectCorruptedError,
    ObjectNotFoundError,
    ObjectStore,
    compute_hash,
    validate_hash,
)


@pytest.fixture
def tinyvcs_dir(tmp_path: Path) -> Path:
    """Create a temporary .tinyvcs directory structure."""
    tinyvcs = tmp_path / ".tinyvcs"
    tinyvcs.mkdir()
    (tinyvcs / "objects").mkdir()
    return tinyvcs


@pytest.fixture
def store(tinyvcs_dir: Path) -> ObjectStore:
    """Create an ObjectStore instance."""
    return ObjectStore(tinyvcs_dir)


class TestObjectStoreInit:
    """Test ObjectStore initialization."""

    def test_init_with_valid_dir(self, tinyvcs_dir: Path) -> None:
        store = ObjectStore(tinyvcs_dir)
        assert store.tinyvcs_dir == tinyvcs_dir
        assert store.objects_dir == tinyvcs_dir / "objects"

    def test_init_with_nonexistent_dir(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="not found"):
            ObjectStore(tmp_path / "nonexistent")


class TestHashing:
    """Test hash helpers."""

    def test_compute_hash_is_sha1(self) -> None:
        content = b"hello"
        assert compute_hash(content) == hashlib.sha1(content).hexdigest()

    def test_validate_hash_accepts_sha1(self) -> None:
        validate_hash("a" * 40)

    @pytest.mark.parametrize("bad", ["abc", "z" * 40, "a" * 64])
    def test_validate_hash_rejects_malformed(self, bad: str) -> None:
        with pytest.raises(ValueError):
            validate_hash(bad)


class TestWrite:
    """Test object writing."""

    def test_write_returns_sha1(self, store: ObjectStore) -> None:
        object_id = store.write(b"some object")

        assert len(object_id) == 40
        assert all(c in "0123456789abcdef" for c in object_id)
        assert store.read(object_id) == b"some object"

    def test_write_is_idempotent(self, store: ObjectStore) -> None:
        """Identical content produces the same id and a single file."""
        id1 = store.write(b"same")
        id2 = store.write(b"same")

        assert id1 == id2
        shard = store.objects_dir / id1[:2]
        assert [p.name for p in shard.iterdir()] == [id1[2:]]

    def test_write_creates_sharded_directory(self, store: ObjectStore) -> None:
        object_id = store.write(b"sharding")

        object_path = store.objects_dir / object_id[:2] / object_id[2:]
        assert object_path.exists()
        assert object_path.read_bytes() == b"sharding"

    def test_write_leaves_no_temp_files(self, store: ObjectStore) -> None:
        object_id = store.write(b"atomic")

        shard = store.objects_dir / object_id[:2]
        assert [p.name for p in shard.iterdir()] == [object_id[2:]]


class TestRead:
    """Test object reading and verification."""

    def test_read_roundtrip(self, store: ObjectStore) -> None:
        object_id = store.write(b"payload")
        assert store.read(object_id) == b"payload"

    def test_read_missing_object(self, store: ObjectStore) -> None:
        with pytest.raises(ObjectNotFoundError):
            store.read("0" * 40)

    def test_read_invalid_id(self, store: ObjectStore) -> None:
        with pytest.raises(ValueError):
            store.read("not-a-hash")

    def test_read_detects_corruption(self, store: ObjectStore) -> None:
        object_id = store.write(b"original")
        object_path = store.objects_dir / object_id[:2] / object_id[2:]
        os.chmod(object_path, 0o644)
        object_path.write_bytes(b"tampered")

        with pytest.raises(ObjectCorruptedError):
            store.read(object_id)

        assert store.read(object_id, verify_hash=False) == b"tampered"


class TestMemoryObjectStore:
    """The in-memory store honours the same contract."""

    def test_roundtrip_and_dedup(self) -> None:
        store = MemoryObjectStore()
        object_id = store.write(b"data")

        assert store.write(b"data") == object_id
        assert store.read(object_id) == b"data"

    def test_missing_object(self) -> None:
        with pytest.raises(ObjectNotFoundError):
            MemoryObjectStore().read("1" * 40)
