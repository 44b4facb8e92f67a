"""Shared fixtures for GitClient unit tests."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from stackgit.git.client import GitClient
from stackgit.runners.command import CommandRunner
from stackgit.runners.models import CommandResult


def make_result(
    *,
    command: tuple[str, ...] = ("git",),
    returncode: int = 0,
    stdout: str = "",
    stderr: str = "",
    duration_ms: int = 5,
    stdout_bytes: bytes | None = None,
) -> CommandResult:
    """Create a CommandResult with convenient defaults.

    ``stdout_bytes`` defaults to the UTF-8 encoding of ``stdout``.
    """
    return CommandResult(
        command=command,
        returncode=returncode,
        stdout=stdout,
        stderr=stderr,
        duration_ms=duration_ms,
        stdout_bytes=stdout.encode() if stdout_bytes is None else stdout_bytes,
    )


@pytest.fixture
def mock_runner() -> MagicMock:
    """Mock CommandRunner that succeeds with empty output by default."""
    runner = MagicMock(spec=CommandRunner)
    runner.run.return_value = make_result()
    runner.run_interactive.return_value = make_result()
    return runner


@pytest.fixture
def git_client(mock_runner: MagicMock, temp_dir: Path) -> GitClient:
    """GitClient bound to a temp dir with a mocked runner."""
    return GitClient(cwd=temp_dir, runner=mock_runner)
