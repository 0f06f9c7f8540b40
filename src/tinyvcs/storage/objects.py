"""Blob and commit objects.

Both object kinds are immutable and content-addressed: their id is the hash
of their canonical serialized form, so two objects share an id exactly when
every serialized field is equal.
"""

import base64
import binascii
import json
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from tinyvcs.constants import ROOT_COMMIT_MESSAGE, ROOT_COMMIT_TIMESTAMP, SHORT_HASH_LENGTH
from tinyvcs.errors import EmptyMessage
from tinyvcs.storage.object_store import ObjectCorruptedError, compute_hash


def _canonical_json(obj: Dict[str, Any]) -> bytes:
    """Canonical JSON: sorted keys, no whitespace."""
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def _load_payload(data: bytes, expected_type: str) -> Dict[str, Any]:
    try:
        payload = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ObjectCorruptedError(f"Unreadable {expected_type} object: {e}") from e

    if not isinstance(payload, dict) or payload.get("type") != expected_type:
        raise ObjectCorruptedError(f"Object is not a {expected_type}")
    return payload


def format_timestamp(moment: datetime) -> str:
    """Render a datetime as the stored UTC ISO-8601 string (second precision)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).replace(microsecond=0).isoformat()


class Blob:
    """A tracked file's content under a specific filename.

    Attributes:
        name: Filename relative to the working tree root (POSIX separators)
        content: Raw file bytes
        id: SHA-1 of the serialized (name, content) pair
    """

    __slots__ = ("_name", "_content", "_id")

    def __init__(self, name: str, content: bytes) -> None:
        self._name = name
        self._content = bytes(content)
        self._id = compute_hash(self.serialize())

    @property
    def name(self) -> str:
        return self._name

    @property
    def content(self) -> bytes:
        return self._content

    @property
    def id(self) -> str:
        return self._id

    def serialize(self) -> bytes:
        return _canonical_json({
            "type": "blob",
            "name": self._name,
            "content": base64.b64encode(self._content).decode("ascii"),
        })

    @classmethod
    def deserialize(cls, data: bytes) -> "Blob":
        payload = _load_payload(data, "blob")
        try:
            content = base64.b64decode(payload["content"], validate=True)
            return cls(payload["name"], content)
        except (KeyError, TypeError, binascii.Error) as e:
            raise ObjectCorruptedError(f"Malformed blob object: {e}") from e

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Blob) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return f"Blob({self._name!r}, {self._id[:SHORT_HASH_LENGTH]})"


class Commit:
    """An immutable snapshot of the tracked file set.

    Attributes:
        message: Commit message (non-empty)
        timestamp: UTC ISO-8601 timestamp string
        parent: First parent id, or None for the root commit
        parent2: Second parent id, only set on merge commits
        blobs: Read-only mapping of filename -> blob id
        id: SHA-1 of the serialized commit
    """

    __slots__ = ("_message", "_timestamp", "_parent", "_parent2", "_blobs", "_id")

    def __init__(
        self,
        message: str,
        timestamp: str,
        parent: Optional[str] = None,
        parent2: Optional[str] = None,
        blobs: Optional[Mapping[str, str]] = None,
    ) -> None:
        if not message:
            raise EmptyMessage()

        self._message = message
        self._timestamp = timestamp
        self._parent = parent
        self._parent2 = parent2
        self._blobs = MappingProxyType(dict(blobs or {}))
        self._id = compute_hash(self.serialize())

    @classmethod
    def root(cls) -> "Commit":
        """The initial commit every repository starts from."""
        return cls(ROOT_COMMIT_MESSAGE, ROOT_COMMIT_TIMESTAMP)

    @property
    def message(self) -> str:
        return self._message

    @property
    def timestamp(self) -> str:
        return self._timestamp

    @property
    def parent(self) -> Optional[str]:
        return self._parent

    @property
    def parent2(self) -> Optional[str]:
        return self._parent2

    @property
    def blobs(self) -> Mapping[str, str]:
        return self._blobs

    @property
    def id(self) -> str:
        return self._id

    @property
    def is_merge(self) -> bool:
        return self._parent2 is not None

    @property
    def committed_at(self) -> datetime:
        moment = datetime.fromisoformat(self._timestamp)
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (without the id)."""
        return {
            "type": "commit",
            "message": self._message,
            "timestamp": self._timestamp,
            "parent": self._parent,
            "parent2": self._parent2,
            "blobs": dict(self._blobs),
        }

    def serialize(self) -> bytes:
        return _canonical_json(self.to_dict())

    @classmethod
    def deserialize(cls, data: bytes) -> "Commit":
        payload = _load_payload(data, "commit")
        try:
            return cls(
                message=payload["message"],
                timestamp=payload["timestamp"],
                parent=payload.get("parent"),
                parent2=payload.get("parent2"),
                blobs=payload.get("blobs") or {},
            )
        except (KeyError, TypeError) as e:
            raise ObjectCorruptedError(f"Malformed commit object: {e}") from e
        except EmptyMessage as e:
            raise ObjectCorruptedError("Stored commit has an empty message") from e

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Commit) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return f"Commit({self._id[:SHORT_HASH_LENGTH]}, {self._message!r})"
