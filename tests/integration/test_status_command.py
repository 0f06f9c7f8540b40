"""Integration tests for tinyvcs status command."""

from pathlib import Path

from typer.testing import CliRunner

from tinyvcs.cli.main import app

runner = CliRunner()


class TestStatusCommand:
    """Test tinyvcs status command."""

    def test_status_fresh_repo(self, workspace: Path) -> None:
        runner.invoke(app, ["init"])

        result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert result.stdout == (
            "=== Branches ===\n"
            "*master\n"
            "\n"
            "=== Staged Files ===\n"
            "\n"
            "=== Removed Files ===\n"
            "\n"
            "=== Modifications Not Staged For Commit ===\n"
            "\n"
            "=== Untracked Files ===\n"
            "\n"
        )

    def test_status_after_changes(self, workspace: Path) -> None:
        runner.invoke(app, ["init"])
        (workspace / "tracked.txt").write_text("t")
        runner.invoke(app, ["add", "tracked.txt"])
        runner.invoke(app, ["commit", "track"])
        runner.invoke(app, ["branch", "other-branch"])
        (workspace / "wug.txt").write_text("wug")
        runner.invoke(app, ["add", "wug.txt"])
        runner.invoke(app, ["rm", "tracked.txt"])
        runner.invoke(app, ["checkout", "other-branch"])

        result = runner.invoke(app, ["status"])

        assert result.stdout.startswith(
            "=== Branches ===\n"
            "*other-branch\n"
            "master\n"
            "\n"
            "=== Staged Files ===\n"
            "\n"
            "=== Removed Files ===\n"
            "\n"
        )

    def test_status_lists_staged_and_removed(self, workspace: Path) -> None:
        runner.invoke(app, ["init"])
        (workspace / "tracked.txt").write_text("t")
        runner.invoke(app, ["add", "tracked.txt"])
        runner.invoke(app, ["commit", "track"])
        (workspace / "b.txt").write_text("b")
        (workspace / "a.txt").write_text("a")
        runner.invoke(app, ["add", "b.txt"])
        runner.invoke(app, ["add", "a.txt"])
        runner.invoke(app, ["rm", "tracked.txt"])

        result = runner.invoke(app, ["status"])

        assert "=== Staged Files ===\na.txt\nb.txt\n\n" in result.stdout
        assert "=== Removed Files ===\ntracked.txt\n\n" in result.stdout

    def test_status_with_operands(self, workspace: Path) -> None:
        runner.invoke(app, ["init"])

        result = runner.invoke(app, ["status", "now"])

        assert result.stdout == "Incorrect operands.\n"
