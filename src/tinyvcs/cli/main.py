"""Main CLI entry point for tinyvcs."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Optional

import click
import typer
from rich.console import Console
from rich.logging import RichHandler
from typer.core import TyperCommand, TyperGroup

from tinyvcs.constants import (
    EXIT_DATA_ERROR,
    EXIT_INTERRUPTED,
    EXIT_SUCCESS,
    EXIT_USER_ERROR,
    MSG_ANCESTOR,
    MSG_FAST_FORWARD,
    MSG_MERGE_CONFLICT,
    MSG_NO_COMMAND,
    MSG_UNKNOWN_COMMAND,
)
from tinyvcs.core import MergeOutcome, Repository, format_log_entry
from tinyvcs.errors import IncorrectOperands, RepositoryCorruptedError, VcsError
from tinyvcs.storage import DatabaseError, ObjectCorruptedError, ObjectNotFoundError

FILE_SEPARATOR = "--"
RAW_OPERANDS = "raw_operands"

console = Console(stderr=True)


class VcsGroup(TyperGroup):
    """Command group that reports unknown commands as a plain message."""

    def resolve_command(self, ctx: click.Context, args: List[str]) -> Any:
        if args and self.get_command(ctx, args[0]) is None:
            typer.echo(MSG_UNKNOWN_COMMAND)
            ctx.exit(EXIT_USER_ERROR)
        return super().resolve_command(ctx, args)


class RawOperandsCommand(TyperCommand):
    """Command that also records its operands before click parses them.

    click drops a literal ``--`` while parsing, but ``checkout`` needs it to
    tell a file from a branch name.
    """

    def parse_args(self, ctx: click.Context, args: List[str]) -> List[str]:
        ctx.meta[RAW_OPERANDS] = list(args)
        return super().parse_args(ctx, args)


app = typer.Typer(
    name="tinyvcs",
    help="A small local version control system",
    add_completion=False,
    cls=VcsGroup,
)

OPERANDS = {"ignore_unknown_options": True}


def setup_logging(verbose: bool) -> None:
    """Route engine logs to stderr, everything at DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@contextmanager
def handle_errors() -> Iterator[None]:
    """Translate engine errors into messages and exit codes."""
    try:
        yield
    except VcsError as e:
        typer.echo(e.message)
        raise typer.Exit(EXIT_USER_ERROR)
    except (
        RepositoryCorruptedError,
        ObjectCorruptedError,
        ObjectNotFoundError,
        DatabaseError,
        ValueError,
    ) as e:
        console.print(
            f"Internal error: {e}",
            style="bold red",
            markup=False,
            highlight=False,
            soft_wrap=True,
        )
        raise typer.Exit(EXIT_DATA_ERROR)
    except KeyboardInterrupt:
        console.print("Interrupted", style="yellow")
        raise typer.Exit(EXIT_INTERRUPTED)


@contextmanager
def open_repository() -> Iterator[Repository]:
    """Open the repository in the current directory for one command."""
    with handle_errors():
        with Repository.open(Path.cwd()) as repo:
            yield repo


def expect_operands(operands: Optional[List[str]], count: int) -> List[str]:
    operands = list(operands or [])
    if len(operands) != count:
        raise IncorrectOperands()
    return operands


@app.callback(invoke_without_command=True)
def cli(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging on stderr",
    ),
) -> None:
    """A small local version control system."""
    setup_logging(verbose)
    if ctx.invoked_subcommand is None:
        typer.echo(MSG_NO_COMMAND)
        raise typer.Exit(EXIT_SUCCESS)


@app.command()
def version() -> None:
    """Show tinyvcs version."""
    from tinyvcs import __version__
    typer.echo(f"tinyvcs version {__version__}")


@app.command(context_settings=OPERANDS)
def init(
    operands: Optional[List[str]] = typer.Argument(None, hidden=True),
) -> None:
    """Initialize a repository in the current directory."""
    with handle_errors():
        expect_operands(operands, 0)
        Repository.init(Path.cwd()).close()


@app.command(context_settings=OPERANDS)
def add(
    operands: Optional[List[str]] = typer.Argument(None, metavar="FILE"),
) -> None:
    """Stage a file for the next commit."""
    with open_repository() as repo:
        (path,) = expect_operands(operands, 1)
        repo.add(path)


@app.command(context_settings=OPERANDS)
def commit(
    operands: Optional[List[str]] = typer.Argument(None, metavar="MESSAGE"),
) -> None:
    """Record the staged changes as a new commit."""
    with open_repository() as repo:
        (message,) = expect_operands(operands, 1)
        repo.commit(message)


@app.command(context_settings=OPERANDS)
def rm(
    operands: Optional[List[str]] = typer.Argument(None, metavar="FILE"),
) -> None:
    """Unstage a file and stop tracking it."""
    with open_repository() as repo:
        (path,) = expect_operands(operands, 1)
        repo.rm(path)


@app.command(context_settings=OPERANDS)
def log(
    operands: Optional[List[str]] = typer.Argument(None, hidden=True),
) -> None:
    """Show the history of the current branch."""
    with open_repository() as repo:
        expect_operands(operands, 0)
        for entry in repo.log():
            typer.echo(format_log_entry(entry), nl=False)


@app.command(name="global-log", context_settings=OPERANDS)
def global_log(
    operands: Optional[List[str]] = typer.Argument(None, hidden=True),
) -> None:
    """Show every commit ever made."""
    with open_repository() as repo:
        expect_operands(operands, 0)
        for entry in repo.global_log():
            typer.echo(format_log_entry(entry), nl=False)


@app.command(context_settings=OPERANDS)
def find(
    operands: Optional[List[str]] = typer.Argument(None, metavar="MESSAGE"),
) -> None:
    """Print the ids of all commits with the given message."""
    with open_repository() as repo:
        (message,) = expect_operands(operands, 1)
        for commit_id in repo.find(message):
            typer.echo(commit_id)


@app.command(context_settings=OPERANDS)
def status(
    operands: Optional[List[str]] = typer.Argument(None, hidden=True),
) -> None:
    """Show branches and the staging area."""
    with open_repository() as repo:
        expect_operands(operands, 0)
        typer.echo(repo.status().render(), nl=False)


@app.command(cls=RawOperandsCommand, context_settings=OPERANDS)
def checkout(
    ctx: typer.Context,
    operands: Optional[List[str]] = typer.Argument(None, metavar="[COMMIT] -- FILE | BRANCH"),
) -> None:
    """Restore a file or switch branches.

    \b
    checkout -- FILE            restore FILE from the head commit
    checkout COMMIT -- FILE     restore FILE from COMMIT
    checkout BRANCH             switch to BRANCH
    """
    with open_repository() as repo:
        raw = ctx.meta.get(RAW_OPERANDS, list(operands or []))
        if len(raw) == 2 and raw[0] == FILE_SEPARATOR:
            repo.checkout_file(raw[1])
        elif len(raw) == 3 and raw[1] == FILE_SEPARATOR:
            repo.checkout_file(raw[2], commit_id=raw[0])
        elif len(raw) == 1 and raw[0] != FILE_SEPARATOR:
            repo.checkout_branch(raw[0])
        else:
            raise IncorrectOperands()


@app.command(context_settings=OPERANDS)
def branch(
    operands: Optional[List[str]] = typer.Argument(None, metavar="NAME"),
) -> None:
    """Create a branch at the head commit."""
    with open_repository() as repo:
        (name,) = expect_operands(operands, 1)
        repo.branch(name)


@app.command(name="rm-branch", context_settings=OPERANDS)
def rm_branch(
    operands: Optional[List[str]] = typer.Argument(None, metavar="NAME"),
) -> None:
    """Delete a branch pointer."""
    with open_repository() as repo:
        (name,) = expect_operands(operands, 1)
        repo.rm_branch(name)


@app.command(context_settings=OPERANDS)
def reset(
    operands: Optional[List[str]] = typer.Argument(None, metavar="COMMIT"),
) -> None:
    """Check out a commit and move the current branch to it."""
    with open_repository() as repo:
        (commit_id,) = expect_operands(operands, 1)
        repo.reset(commit_id)


@app.command(context_settings=OPERANDS)
def merge(
    operands: Optional[List[str]] = typer.Argument(None, metavar="BRANCH"),
) -> None:
    """Merge a branch into the current branch."""
    with open_repository() as repo:
        (name,) = expect_operands(operands, 1)
        result = repo.merge(name)

    if result.outcome is MergeOutcome.ANCESTOR:
        typer.echo(MSG_ANCESTOR)
    elif result.outcome is MergeOutcome.FAST_FORWARD:
        typer.echo(MSG_FAST_FORWARD)
    elif result.has_conflicts:
        typer.echo(MSG_MERGE_CONFLICT)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
