"""Working directory access for tinyvcs.

The engine reads and writes user files only through this interface, so the
same operations run against a real directory or an in-memory tree.
"""

from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, Optional, Set

from tinyvcs.constants import TINYVCS_DIR
from tinyvcs.errors import PathOutsideWorkspace


def normalize_path(path: str) -> str:
    """Normalize a user-supplied path to a relative POSIX filename.

    Raises:
        PathOutsideWorkspace: If the path is absolute or escapes the root
    """
    pure = PurePosixPath(str(path).replace("\\", "/"))
    if pure.is_absolute() or ".." in pure.parts:
        raise PathOutsideWorkspace()

    parts = [part for part in pure.parts if part != "."]
    if not parts:
        raise PathOutsideWorkspace()
    return PurePosixPath(*parts).as_posix()


class BaseWorkingDirectory(ABC):
    """Abstract file tree keyed by relative POSIX paths."""

    @abstractmethod
    def read(self, path: str) -> bytes:
        """Return the bytes of ``path``.

        Raises:
            FileNotFoundError: If the file does not exist
        """

    @abstractmethod
    def write(self, path: str, content: bytes) -> None:
        """Create or overwrite ``path``."""

    @abstractmethod
    def delete(self, path: str) -> None:
        """Delete ``path`` if it exists."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def list(self) -> Set[str]:
        """All files in the tree, excluding repository metadata."""

    def delete_all(self, paths: Iterable[str]) -> None:
        for path in paths:
            self.delete(path)


class WorkingDirectory(BaseWorkingDirectory):
    """Working tree rooted at a real directory.

    Attributes:
        root: Root directory of the working tree
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def read(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()

    def write(self, path: str, content: bytes) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

    def delete(self, path: str) -> None:
        target = self._resolve(path)
        if target.is_file():
            target.unlink()

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def list(self) -> Set[str]:
        files = set()
        for item in self.root.rglob("*"):
            rel_path = item.relative_to(self.root)
            if rel_path.parts[0] == TINYVCS_DIR:
                continue
            if item.is_file():
                files.add(rel_path.as_posix())
        return files

    def _resolve(self, path: str) -> Path:
        """Resolve a relative path within the working tree."""
        rel_path = normalize_path(path)
        if rel_path.split("/")[0] == TINYVCS_DIR:
            raise PathOutsideWorkspace()
        return self.root / rel_path


class MemoryWorkingDirectory(BaseWorkingDirectory):
    """Dictionary-backed working tree for tests."""

    def __init__(self, files: Optional[Dict[str, bytes]] = None) -> None:
        self.files: Dict[str, bytes] = {}
        for path, content in (files or {}).items():
            self.write(path, content)

    def read(self, path: str) -> bytes:
        try:
            return self.files[normalize_path(path)]
        except KeyError:
            raise FileNotFoundError(path) from None

    def write(self, path: str, content: bytes) -> None:
        self.files[normalize_path(path)] = bytes(content)

    def delete(self, path: str) -> None:
        self.files.pop(normalize_path(path), None)

    def exists(self, path: str) -> bool:
        return normalize_path(path) in self.files

    def list(self) -> Set[str]:
        return set(self.files)
