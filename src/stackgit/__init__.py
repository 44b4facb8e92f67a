"""stackgit: typed helpers over the git CLI for stacked-branch tooling."""

from __future__ import annotations

from stackgit.exceptions import GitCommandError, StackGitError
from stackgit.git import GitClient, default_client
from stackgit.runners import CommandResult, CommandRunner

__version__ = "0.1.0"

__all__ = [
    "CommandResult",
    "CommandRunner",
    "GitClient",
    "GitCommandError",
    "StackGitError",
    "__version__",
    "default_client",
]
