"""Blocking subprocess execution.

For git operations, use :class:`stackgit.git.GitClient`, which is built on
:class:`CommandRunner`.
"""

from __future__ import annotations

from stackgit.runners.command import CommandRunner
from stackgit.runners.models import CommandResult

__all__ = [
    "CommandResult",
    "CommandRunner",
]
