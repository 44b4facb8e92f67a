from __future__ import annotations

from pathlib import Path

from stackgit.exceptions.base import StackGitError


class RunnerError(StackGitError):
    """Base exception for subprocess runner failures."""


class WorkingDirectoryError(RunnerError):
    """Working directory does not exist or is not a directory.

    Attributes:
        message: Human-readable error message.
        path: The path that was rejected.
    """

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        self.path = path
        super().__init__(message)
