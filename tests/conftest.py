"""Pytest configuration and shared fixtures."""

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator

import pytest

from tinyvcs.core import MemoryWorkingDirectory, Repository


class FakeClock:
    """Deterministic clock that moves one minute forward per call."""

    def __init__(self, start: datetime = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(minutes=1)
        return current


class FrozenClock:
    """Clock that never moves, so every commit shares one timestamp."""

    def __init__(self, moment: datetime = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)):
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def workdir() -> MemoryWorkingDirectory:
    return MemoryWorkingDirectory()


@pytest.fixture
def repo(workdir: MemoryWorkingDirectory, clock: FakeClock) -> Iterator[Repository]:
    """An initialized repository with in-memory storage and working tree."""
    repository = Repository.in_memory(workdir=workdir, clock=clock)
    yield repository
    repository.close()


@pytest.fixture
def frozen_repo() -> Iterator[Repository]:
    """An in-memory repository whose commits all share one timestamp."""
    repository = Repository.in_memory(clock=FrozenClock())
    yield repository
    repository.close()


@pytest.fixture
def disk_repo(tmp_path: Path, clock: FakeClock) -> Iterator[Repository]:
    """An initialized repository in a temporary directory."""
    repository = Repository.init(tmp_path, clock=clock)
    yield repository
    repository.close()


@pytest.fixture
def workspace(tmp_path: Path) -> Iterator[Path]:
    """Run the test with a fresh temporary directory as the cwd."""
    original_cwd = Path.cwd()
    os.chdir(tmp_path)
    try:
        yield tmp_path
    finally:
        os.chdir(original_cwd)
