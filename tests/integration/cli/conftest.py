"""Fixtures for integration tests."""

import subprocess
import sys
from pathlib import Path
from typing import Callable

import pytest

Runner = Callable[..., "subprocess.CompletedProcess[str]"]


@pytest.fixture
def tinyvcs() -> Runner:
    """Run the tinyvcs CLI in a separate process.

    Returns:
        Callable taking the command arguments and a ``cwd`` keyword
    """

    def run(*args: str, cwd: Path) -> "subprocess.CompletedProcess[str]":
        return subprocess.run(
            [sys.executable, "-m", "tinyvcs", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
        )

    return run


@pytest.fixture
def initialized_repo(tmp_path: Path, tinyvcs: Runner) -> Path:
    """Create a temporary directory with an initialized repository.

    Returns:
        Path: Path to the workspace root
    """
    workspace = tmp_path / "test_workspace"
    workspace.mkdir()

    result = tinyvcs("init", cwd=workspace)
    if result.returncode != 0:
        raise RuntimeError(f"Failed to initialize repo: {result.stdout}\n{result.stderr}")

    return workspace
