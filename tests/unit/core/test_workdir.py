"""Unit tests for working directory access."""

from pathlib import Path

import pytest

from tinyvcs.core.workdir import MemoryWorkingDirectory, WorkingDirectory, normalize_path
from tinyvcs.errors import PathOutsideWorkspace


class TestNormalizePath:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("a.txt", "a.txt"),
            ("./a.txt", "a.txt"),
            ("dir/./b.txt", "dir/b.txt"),
            ("dir\\c.txt", "dir/c.txt"),
        ],
    )
    def test_normalizes(self, raw: str, expected: str) -> None:
        assert normalize_path(raw) == expected

    @pytest.mark.parametrize("raw", ["/etc/passwd", "../outside.txt", "dir/../../x", ".", ""])
    def test_rejects_escaping_paths(self, raw: str) -> None:
        with pytest.raises(PathOutsideWorkspace):
            normalize_path(raw)


class TestWorkingDirectory:
    def test_write_read_delete(self, tmp_path: Path) -> None:
        workdir = WorkingDirectory(tmp_path)
        workdir.write("sub/dir/file.txt", b"data")

        assert (tmp_path / "sub" / "dir" / "file.txt").read_bytes() == b"data"
        assert workdir.exists("sub/dir/file.txt")
        assert workdir.read("sub/dir/file.txt") == b"data"

        workdir.delete("sub/dir/file.txt")
        assert not workdir.exists("sub/dir/file.txt")

    def test_delete_missing_is_noop(self, tmp_path: Path) -> None:
        WorkingDirectory(tmp_path).delete("never.txt")

    def test_list_skips_metadata_dir(self, tmp_path: Path) -> None:
        (tmp_path / ".tinyvcs").mkdir()
        (tmp_path / ".tinyvcs" / "metadata.db").write_bytes(b"")
        (tmp_path / "a.txt").write_bytes(b"a")
        (tmp_path / "d").mkdir()
        (tmp_path / "d" / "b.txt").write_bytes(b"b")

        assert WorkingDirectory(tmp_path).list() == {"a.txt", "d/b.txt"}

    def test_metadata_dir_not_addressable(self, tmp_path: Path) -> None:
        with pytest.raises(PathOutsideWorkspace):
            WorkingDirectory(tmp_path).write(".tinyvcs/metadata.db", b"oops")

    def test_directory_is_not_a_file(self, tmp_path: Path) -> None:
        (tmp_path / "d").mkdir()
        assert not WorkingDirectory(tmp_path).exists("d")


class TestMemoryWorkingDirectory:
    def test_initial_files_normalized(self) -> None:
        workdir = MemoryWorkingDirectory({"./a.txt": b"a"})
        assert workdir.list() == {"a.txt"}
        assert workdir.read("a.txt") == b"a"

    def test_read_missing(self) -> None:
        with pytest.raises(FileNotFoundError):
            MemoryWorkingDirectory().read("a.txt")

    def test_delete_all(self) -> None:
        workdir = MemoryWorkingDirectory({"a": b"1", "b": b"2", "c": b"3"})
        workdir.delete_all(["a", "c", "missing"])
        assert workdir.list() == {"b"}
