"""Client for the ``git`` command line tool.

Every operation here is a thin adapter: it assembles an argument list and
hands it to :class:`~stackgit.runners.command.CommandRunner`. All version
control behaviour (diffing, merge bases, notes storage) stays inside git.

The repository is an explicit, bound parameter of the client rather than the
process working directory, so several clients for different repositories can
live side by side.
"""

from __future__ import annotations

from pathlib import Path
from typing import IO, TYPE_CHECKING

from stackgit.exceptions import GitCommandError
from stackgit.logging import get_logger
from stackgit.runners.command import CommandRunner

if TYPE_CHECKING:
    from collections.abc import Mapping

    from stackgit.config import StackGitConfig
    from stackgit.runners.models import CommandResult

__all__ = ["GitClient", "default_client"]

logger = get_logger(__name__)

#: ``git merge-base --is-ancestor`` exits 1 when the answer is "no".
_NOT_ANCESTOR_EXIT_CODE = 1


class GitClient:
    """Synchronous wrapper around the ``git`` CLI.

    Uses :class:`CommandRunner` for subprocess execution. Supports dependency
    injection of the runner for testing.

    Args:
        cwd: Repository working directory. None means the process cwd.
        runner: Optional pre-configured CommandRunner. Created if not provided.
        executable: Name or path of the git binary.
        env: Extra environment for every git process.

    Example:
        ```python
        client = GitClient(cwd=Path("/project"))
        if client.has_changes():
            client.add(".")
            client.commit("wip")
        client.push_branch(client.current_branch())
        ```
    """

    def __init__(
        self,
        cwd: Path | None = None,
        *,
        runner: CommandRunner | None = None,
        executable: str = "git",
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._cwd = cwd
        self._executable = executable
        self._runner = runner or CommandRunner(cwd=cwd, env=env)

    @classmethod
    def from_config(
        cls,
        config: StackGitConfig,
        cwd: Path | None = None,
    ) -> GitClient:
        """Build a client from loaded configuration.

        ``cwd`` wins over ``config.repo_path``.
        """
        return cls(
            cwd=cwd if cwd is not None else config.repo_path,
            executable=config.git.executable,
            env=config.git.env,
        )

    @property
    def cwd(self) -> Path | None:
        """Repository working directory (None = process cwd)."""
        return self._cwd

    @property
    def executable(self) -> str:
        return self._executable

    # =====================================================================
    # Invocation primitives
    # =====================================================================

    def command(self, *args: str) -> tuple[str, ...]:
        """Build the invocation for ``git <args...>``."""
        return (self._executable, *args)

    def _execute(
        self,
        args: tuple[str, ...],
        *,
        input: str | bytes | IO[bytes] | None = None,
        merge_stderr: bool = True,
    ) -> CommandResult:
        return self._runner.run(
            self.command(*args),
            cwd=self._cwd,
            input=input,
            merge_stderr=merge_stderr,
        )

    def _check(self, result: CommandResult) -> CommandResult:
        """Raise for a failed result, return it otherwise.

        Raises:
            GitCommandError: If the process exited non-zero.
        """
        if not result.success:
            logger.debug(
                "git_command_failed",
                command=result.command,
                returncode=result.returncode,
            )
            raise GitCommandError(result.command, result.returncode, result.output)
        return result

    def output(self, *args: str, input: str | bytes | IO[bytes] | None = None) -> str:
        """Run ``git <args...>`` and return its combined output, stripped.

        Raises:
            GitCommandError: If git exits non-zero.
        """
        return self._check(self._execute(args, input=input)).stdout.strip()

    def run(self, *args: str, input: str | bytes | IO[bytes] | None = None) -> None:
        """Run ``git <args...>`` for its side effect.

        Raises:
            GitCommandError: If git exits non-zero.
        """
        self.output(*args, input=input)

    def verify_available(self) -> bool:
        """Check that the configured git executable runs.

        Returns:
            True if ``git --version`` succeeds. Never raises for a missing
            binary.
        """
        result = self._execute(("--version",))
        if result.success:
            logger.debug("git_available", version=result.stdout.strip())
            return True
        logger.warning("git_not_available", output=result.output.strip())
        return False

    # =====================================================================
    # Inspection
    # =====================================================================

    def describe_ref(self, ref: str, fmt: str) -> str:
        """Describe a commit with a ``--format`` pretty string.

        Example:
            ``client.describe_ref("HEAD", "%B")`` returns the full message of
            HEAD; ``"%N"`` returns its notes.
        """
        return self.output(
            "show", ref, "--no-patch", "--no-color", f"--format={fmt}"
        )

    def diff(self, ref1: str, ref2: str) -> bytes:
        """Return the patch between two commits as raw bytes, untrimmed.

        The bytes are exactly what git wrote, so the patch can be handed back
        to :meth:`apply_patch` even when the files are not UTF-8.

        Raises:
            GitCommandError: If either ref cannot be resolved.
        """
        result = self._check(
            self._execute(("diff", ref1, ref2, "-p", "--no-color"), merge_stderr=False)
        )
        return result.stdout_bytes

    def is_different(self, ref1: str, ref2: str) -> bool:
        """True if the trees of the two commits differ."""
        return len(self.diff(ref1, ref2)) > 0

    def has_changes(self) -> bool:
        """True if the working tree has uncommitted changes.

        Untracked files (``??`` lines) are ignored; every other status line,
        including renames and conflicts, counts as a change.
        """
        result = self._check(self._execute(("status", "-s"), merge_stderr=False))
        for line in result.stdout.splitlines():
            line = line.strip()
            if not line:
                continue
            if not line.startswith("?"):
                return True
        return False

    def current_branch(self) -> str:
        """Name of the checked-out branch; empty when HEAD is detached."""
        return self.output("branch", "--show-current")

    def rev_parse(self, ref: str) -> str:
        """Resolve a ref to its full object hash.

        Raises:
            GitCommandError: If the ref does not resolve.
        """
        return self.output("rev-parse", "--verify", ref)

    def branch_exists(self, name: str) -> bool:
        """True if ``name`` resolves to an object."""
        try:
            self.rev_parse(name)
        except GitCommandError:
            return False
        return True

    def log(self, *args: str) -> str:
        """Run ``git log`` with the given arguments and return its text."""
        return self.output("log", *args)

    def fork_point(self, ref: str, *args: str) -> str:
        """Find where the current (or given) branch forked from ``ref``.

        Uses the reflog of ``ref`` so that rebased upstreams are handled.

        Raises:
            GitCommandError: Also the expected signal when there is no common
                ancestor or the branch is fully merged.
        """
        return self.output("merge-base", "--fork-point", ref, *args)

    def is_ancestor(self, ref1: str, ref2: str) -> bool:
        """True if ``ref1`` is an ancestor of ``ref2``.

        Raises:
            GitCommandError: For any exit status other than 0 or 1, e.g. an
                unknown ref.
        """
        result = self._execute(("merge-base", "--is-ancestor", ref1, ref2))
        if result.success:
            return True
        if result.returncode == _NOT_ANCESTOR_EXIT_CODE:
            return False
        raise GitCommandError(result.command, result.returncode, result.output)

    # =====================================================================
    # Working tree
    # =====================================================================

    def apply_patch(self, patch: bytes | str | IO[bytes]) -> None:
        """Apply a patch to the working tree without staging or committing.

        ``--recount`` lets git fix up hunk line counts, so hand-edited patches
        apply as long as their context matches.

        Args:
            patch: Patch bytes or text, or a binary file object that is
                streamed into git without being read into memory first.

        Raises:
            GitCommandError: If git rejects the patch.
        """
        self.run("apply", "--recount", "-", input=patch)

    def add(self, *paths: str) -> None:
        """Stage ``paths``."""
        self.run("add", "--", *paths)

    def checkout(self, ref: str) -> None:
        self.run("checkout", ref)

    # =====================================================================
    # Commits
    # =====================================================================

    def commit(self, message: str) -> None:
        """Commit the index with ``message``, read by git from stdin."""
        self.run("commit", "-F", "-", input=message)

    def amend(self) -> None:
        """Amend the last commit in the user's editor.

        The process is attached to the terminal and blocks until the editor
        exits.

        Raises:
            GitCommandError: If git exits non-zero (e.g. an empty message).
        """
        result = self._runner.run_interactive(
            self.command("commit", "--amend"), cwd=self._cwd
        )
        self._check(result)

    def amend_no_edit(self) -> None:
        """Fold the index into the last commit, keeping its message."""
        self.run("commit", "--amend", "--no-edit")

    def amend_with_message(self, message: str) -> None:
        """Fold the index into the last commit and replace its message."""
        self.run("commit", "--amend", "-m", message)

    def rebase(self, base: str, topic: str) -> None:
        """Rebase ``topic`` onto ``base``."""
        self.run("rebase", base, topic)

    # =====================================================================
    # Branches
    # =====================================================================

    def create_and_switch_to_branch(self, name: str) -> None:
        """Create a branch at HEAD and check it out (``checkout -b``)."""
        self.run("checkout", "-b", name)

    def create_branch(self, name: str) -> None:
        """Create a branch at HEAD without switching to it."""
        self.run("branch", name)

    def create_branch_forced(self, name: str, ref: str) -> None:
        """Create or reset branch ``name`` to ``ref`` without switching."""
        self.run("branch", "-f", name, ref)

    def force_delete_branch(self, name: str) -> None:
        """Delete a branch even if it is not merged."""
        self.run("branch", "-D", name)

    # =====================================================================
    # Remotes
    # =====================================================================

    def push_remote_for_branch(self, branch: str) -> str:
        """Name of the remote ``branch`` pushes to by default.

        ``branch.<name>.pushRemote`` wins over ``branch.<name>.remote``.

        Raises:
            GitCommandError: From the ``branch.<name>.remote`` lookup when
                neither key is set.
        """
        try:
            remote = self.output("config", "--get", f"branch.{branch}.pushRemote")
        except GitCommandError:
            remote = self.output("config", "--get", f"branch.{branch}.remote")
        logger.debug("git_push_remote_resolved", branch=branch, remote=remote)
        return remote

    def push(self) -> None:
        self.run("push")

    def push_branch(self, branch: str) -> None:
        """Push ``branch`` to its default remote without switching to it."""
        remote = self.push_remote_for_branch(branch)
        self.run("push", remote, branch)

    def force_push_branch(self, branch: str) -> None:
        """Force-push ``branch`` to its default remote without switching."""
        remote = self.push_remote_for_branch(branch)
        self.run("push", "-f", remote, branch)

    def push_and_set_upstream(self, remote: str, branch: str) -> None:
        """Push ``branch`` and record ``remote`` as its upstream."""
        self.run("push", "-u", remote, branch)

    # =====================================================================
    # Notes
    # =====================================================================

    def force_add_notes(self, obj: str, note: str) -> None:
        """Replace the note attached to ``obj``."""
        self.run("notes", "add", "--force", "--file", "-", obj, input=note)

    def append_notes(self, obj: str, note: str) -> None:
        """Append ``note`` to the notes of ``obj``, separated by a blank line."""
        self.run("notes", "append", "--file", "-", obj, input=note)

    def show_notes(self, obj: str) -> str:
        """Return the note attached to ``obj``.

        Raises:
            GitCommandError: If ``obj`` has no note.
        """
        return self.output("notes", "show", obj)


def default_client() -> GitClient:
    """Client bound to the process working directory."""
    return GitClient()
