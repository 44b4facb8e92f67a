"""Git invocation exceptions.

A single failure channel covers both genuine errors and "semantic absence"
(``rev-parse`` of a missing ref, ``merge-base --fork-point`` with no common
ancestor). Callers tell them apart by context, using :attr:`returncode` and
:attr:`output` when they need more.
"""

from __future__ import annotations

import shlex
from collections.abc import Sequence

from stackgit.exceptions.base import StackGitError


class GitError(StackGitError):
    """Base exception for git operations.

    Attributes:
        message: Human-readable error message.
        command: The git invocation that failed, if any.
        output: Output captured from git before it failed.
    """

    def __init__(
        self,
        message: str,
        *,
        command: tuple[str, ...] | None = None,
        output: str | None = None,
    ) -> None:
        self.command = command
        self.output = output
        super().__init__(message)


class GitCommandError(GitError):
    """A git process exited with an unexpected status.

    The message embeds, in order, the exit status, the command line as
    executed and the raw captured output, so a failure can be diagnosed from
    its text alone::

        exit status 128: git rev-parse --verify nope
        fatal: Needed a single revision

    Attributes:
        command: The invocation, executable first.
        returncode: Exit status of the process.
        output: Captured output (stdout and stderr combined).
    """

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        output: str = "",
    ) -> None:
        self.returncode = returncode
        invocation = tuple(command)
        message = f"exit status {returncode}: {shlex.join(invocation)}\n{output}"
        super().__init__(message, command=invocation, output=output)

    @property
    def as_executed(self) -> str:
        """Shell-quoted command line of the failed invocation."""
        return shlex.join(self.command or ())


__all__ = [
    "GitCommandError",
    "GitError",
]
