"""stackgit exception hierarchy.

All exceptions can be imported from this package:
    from stackgit.exceptions import GitCommandError, StackGitError
"""

from __future__ import annotations

from stackgit.exceptions.base import StackGitError
from stackgit.exceptions.config import ConfigError
from stackgit.exceptions.git import GitCommandError, GitError
from stackgit.exceptions.runner import RunnerError, WorkingDirectoryError

__all__ = [
    "ConfigError",
    "GitCommandError",
    "GitError",
    "RunnerError",
    "StackGitError",
    "WorkingDirectoryError",
]
