"""CLI context, exit codes and error reporting."""

from __future__ import annotations

import functools
import sys
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any, TypeVar

import click
from rich.markup import escape

from stackgit.cli.console import err_console
from stackgit.config import StackGitConfig
from stackgit.exceptions import GitCommandError, StackGitError
from stackgit.git import GitClient

__all__ = [
    "CLIContext",
    "ExitCode",
    "get_cli_context",
    "handle_errors",
]


class ExitCode(IntEnum):
    """Exit codes for the stackgit CLI.

    Predicates (``has-changes``, ``is-ancestor``) exit ``FAILURE`` for a false
    answer, like ``git merge-base --is-ancestor`` itself.
    """

    SUCCESS = 0
    FAILURE = 1
    INTERRUPTED = 130


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global options and configuration shared by all commands.

    Attributes:
        config: Loaded configuration.
        repo_path: Repository directory from ``-C`` (overrides config).
        verbosity: Verbosity level (0=default, 1=INFO, 2+=DEBUG).
        quiet: Suppress non-essential output.
    """

    config: StackGitConfig
    repo_path: Path | None = None
    verbosity: int = 0
    quiet: bool = False

    def client(self) -> GitClient:
        """Git client bound to the selected repository."""
        return GitClient.from_config(self.config, cwd=self.repo_path)


F = TypeVar("F", bound=Callable[..., Any])


def handle_errors(f: F) -> F:
    """Turn stackgit exceptions into an error message and a failure exit."""

    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return f(*args, **kwargs)
        except GitCommandError as e:
            err_console.print(
                f"[red]Error:[/red] {escape(e.as_executed)} "
                f"exited with status {e.returncode}"
            )
            if e.output:
                err_console.print(escape(e.output.rstrip()), highlight=False)
            sys.exit(ExitCode.FAILURE)
        except StackGitError as e:
            err_console.print(f"[red]Error:[/red] {escape(e.message)}")
            sys.exit(ExitCode.FAILURE)
        except KeyboardInterrupt:
            sys.exit(ExitCode.INTERRUPTED)

    return wrapper  # type: ignore[return-value]


def get_cli_context(ctx: click.Context) -> CLIContext:
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]
    return cli_ctx
