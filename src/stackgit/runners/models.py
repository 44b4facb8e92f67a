"""Data models for subprocess execution.

Results are frozen dataclasses with slots: a result describes one finished
process and never changes afterwards.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass

__all__ = ["CommandResult"]


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of executing a single command.

    Attributes:
        command: The invocation as executed, executable first.
        returncode: Exit code from the command (0 = success).
        stdout: Captured standard output. When stderr was merged into stdout
            this holds the combined stream in the order it was written.
        stderr: Captured standard error; empty when merged.
        duration_ms: Execution time in milliseconds.
        stdout_bytes: The undecoded stdout, for callers that must pass git's
            output on byte for byte (patches with non-UTF-8 content).
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str = ""
    duration_ms: int = 0
    stdout_bytes: bytes = b""

    @property
    def success(self) -> bool:
        """True if the command exited with status 0."""
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        if self.stderr:
            return f"{self.stdout}\n{self.stderr}" if self.stdout else self.stderr
        return self.stdout

    @property
    def as_executed(self) -> str:
        """Shell-quoted reconstruction of the command line."""
        return shlex.join(self.command)
