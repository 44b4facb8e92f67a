"""Typed wrapper over the ``git`` command line tool.

Usage:
    ```python
    from stackgit.git import GitClient

    client = GitClient(cwd=Path("/path/to/repo"))
    base = client.fork_point("main")
    if client.is_ancestor(base, "HEAD"):
        client.rebase("main", client.current_branch())
    ```
"""

from __future__ import annotations

from stackgit.exceptions import GitCommandError, GitError
from stackgit.git.client import GitClient, default_client

__all__ = [
    "GitClient",
    "GitCommandError",
    "GitError",
    "default_client",
]
