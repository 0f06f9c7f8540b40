"""Integration tests for tinyvcs checkout, branch, rm-branch and reset."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from tinyvcs.cli.main import app

runner = CliRunner()


@pytest.fixture
def initialized(workspace: Path) -> Path:
    runner.invoke(app, ["init"])
    return workspace


def commit(workspace: Path, name: str, content: str, message: str) -> None:
    (workspace / name).write_text(content)
    runner.invoke(app, ["add", name])
    runner.invoke(app, ["commit", message])


def head_id() -> str:
    log = runner.invoke(app, ["log"]).stdout
    return log.split("\n")[1].split()[1]


class TestCheckoutFile:
    def test_restore_from_head(self, initialized: Path) -> None:
        commit(initialized, "wug.txt", "this is a wug", "add wug")
        (initialized / "wug.txt").write_text("changed")

        result = runner.invoke(app, ["checkout", "--", "wug.txt"])

        assert result.exit_code == 0
        assert result.stdout == ""
        assert (initialized / "wug.txt").read_text() == "this is a wug"

    def test_restore_from_commit_prefix(self, initialized: Path) -> None:
        commit(initialized, "wug.txt", "version 1", "v1")
        first = head_id()
        commit(initialized, "wug.txt", "version 2", "v2")

        result = runner.invoke(app, ["checkout", first[:6], "--", "wug.txt"])

        assert result.exit_code == 0
        assert (initialized / "wug.txt").read_text() == "version 1"

    def test_file_not_in_commit(self, initialized: Path) -> None:
        result = runner.invoke(app, ["checkout", "--", "nothing.txt"])
        assert result.stdout == "File does not exist in that commit.\n"

    def test_unknown_commit(self, initialized: Path) -> None:
        commit(initialized, "wug.txt", "w", "add wug")
        result = runner.invoke(app, ["checkout", "0000000", "--", "wug.txt"])
        assert result.stdout == "No commit with that id exists.\n"

    @pytest.mark.parametrize(
        "args",
        [
            ["checkout"],
            ["checkout", "--"],
            ["checkout", "abc", "++", "wug.txt"],
            ["checkout", "abc", "wug.txt"],
            ["checkout", "a", "b", "c", "d"],
        ],
    )
    def test_malformed_operands(self, initialized: Path, args) -> None:
        result = runner.invoke(app, args)
        assert result.stdout == "Incorrect operands.\n"


class TestCheckoutBranch:
    def test_switch_branch(self, initialized: Path) -> None:
        commit(initialized, "shared.txt", "s", "shared")
        runner.invoke(app, ["branch", "dev"])
        commit(initialized, "master.txt", "m", "master only")

        result = runner.invoke(app, ["checkout", "dev"])

        assert result.exit_code == 0
        assert not (initialized / "master.txt").exists()
        assert (initialized / "shared.txt").exists()
        assert "*dev\n" in runner.invoke(app, ["status"]).stdout

    def test_unknown_branch(self, initialized: Path) -> None:
        result = runner.invoke(app, ["checkout", "nope"])
        assert result.stdout == "No such branch exists.\n"

    def test_current_branch(self, initialized: Path) -> None:
        result = runner.invoke(app, ["checkout", "master"])
        assert result.stdout == "No need to checkout the current branch.\n"

    def test_untracked_file_in_the_way(self, initialized: Path) -> None:
        runner.invoke(app, ["branch", "dev"])
        runner.invoke(app, ["checkout", "dev"])
        commit(initialized, "f.txt", "dev", "dev file")
        runner.invoke(app, ["checkout", "master"])
        (initialized / "f.txt").write_text("mine")

        result = runner.invoke(app, ["checkout", "dev"])

        assert result.stdout == (
            "There is an untracked file in the way; delete it or add it first.\n"
        )
        assert (initialized / "f.txt").read_text() == "mine"


class TestBranchCommands:
    def test_branch_exists(self, initialized: Path) -> None:
        runner.invoke(app, ["branch", "dev"])
        result = runner.invoke(app, ["branch", "dev"])
        assert result.stdout == "A branch with that name already exists.\n"

    def test_rm_branch(self, initialized: Path) -> None:
        runner.invoke(app, ["branch", "dev"])
        result = runner.invoke(app, ["rm-branch", "dev"])

        assert result.stdout == ""
        assert runner.invoke(app, ["status"]).stdout.startswith("=== Branches ===\n*master\n\n")

    def test_rm_branch_errors(self, initialized: Path) -> None:
        assert runner.invoke(app, ["rm-branch", "dev"]).stdout == (
            "A branch with that name does not exist.\n"
        )
        assert runner.invoke(app, ["rm-branch", "master"]).stdout == (
            "Cannot remove the current branch.\n"
        )


class TestResetCommand:
    def test_reset(self, initialized: Path) -> None:
        commit(initialized, "a.txt", "1", "one")
        first = head_id()
        commit(initialized, "b.txt", "2", "two")

        result = runner.invoke(app, ["reset", first])

        assert result.exit_code == 0
        assert head_id() == first
        assert not (initialized / "b.txt").exists()

    def test_reset_unknown(self, initialized: Path) -> None:
        result = runner.invoke(app, ["reset", "0000000"])
        assert result.stdout == "No commit with that id exists.\n"
