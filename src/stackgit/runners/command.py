"""Command runner for blocking subprocess execution.

This module provides the CommandRunner class, the single primitive every git
operation in stackgit is built on. It runs one process per call, waits for it
to exit and hands back a :class:`~stackgit.runners.models.CommandResult`.
There is no timeout and no retry: a hung child hangs the caller.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import subprocess
import threading
import time
from pathlib import Path
from typing import IO, TYPE_CHECKING

from stackgit.exceptions import WorkingDirectoryError
from stackgit.logging import get_logger
from stackgit.runners.models import CommandResult

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

__all__ = ["CommandRunner"]

logger = get_logger(__name__)

#: Shell convention for "command not found".
EXIT_COMMAND_NOT_FOUND = 127

#: Shell convention for "found but not executable".
EXIT_PERMISSION_DENIED = 126


class CommandRunner:
    """Execute commands synchronously with working directory and env control.

    Attributes:
        cwd: Default working directory for commands (None = process cwd).
        env: Additional environment variables merged over ``os.environ``.

    Example:
        ```python
        runner = CommandRunner(cwd=Path("/project"))
        result = runner.run(["git", "status", "-s"])
        if result.success:
            print(result.stdout)
        ```
    """

    def __init__(
        self,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._cwd = cwd
        self._extra_env = dict(env or {})

    @property
    def cwd(self) -> Path | None:
        """Default working directory for command execution."""
        return self._cwd

    @property
    def env(self) -> dict[str, str]:
        """Runner-level environment overrides."""
        return dict(self._extra_env)

    def _resolve_cwd(self, cwd: Path | None) -> Path | None:
        """Pick the effective working directory and make sure it exists.

        Raises:
            WorkingDirectoryError: If the directory does not exist.
        """
        effective = cwd if cwd is not None else self._cwd
        if effective is not None and not Path(effective).is_dir():
            raise WorkingDirectoryError(
                f"Working directory does not exist: {effective}",
                path=effective,
            )
        return effective

    def _build_env(self, extra_env: Mapping[str, str] | None = None) -> dict[str, str]:
        """Merge parent env, runner overrides and per-call overrides."""
        env = os.environ.copy()
        env.update(self._extra_env)
        if extra_env:
            env.update(extra_env)
        return env

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        input: str | bytes | IO[bytes] | None = None,
        env: Mapping[str, str] | None = None,
        merge_stderr: bool = True,
    ) -> CommandResult:
        """Execute a command, wait for it and capture its output.

        A non-zero exit is not an error at this level; the caller decides what
        the exit status means.

        Args:
            command: Command and arguments (no shell expansion).
            cwd: Override working directory for this command.
            input: Data written to the child's stdin. Strings are UTF-8
                encoded. A binary file object is copied into the pipe in
                chunks while the output is drained, so it is never read into
                memory whole. When None, stdin is closed so the child cannot
                block waiting on the terminal.
            env: Additional environment variables for this command.
            merge_stderr: Capture stderr into the same stream as stdout,
                preserving interleaving. When False, stderr is captured
                separately.

        Returns:
            CommandResult with the invocation, returncode and output.

        Raises:
            WorkingDirectoryError: If the working directory does not exist.
        """
        invocation = tuple(command)
        effective_cwd = self._resolve_cwd(cwd)
        effective_env = self._build_env(env)
        stdin_data = input.encode("utf-8") if isinstance(input, str) else input
        stderr_target = subprocess.STDOUT if merge_stderr else subprocess.PIPE

        start_time = time.monotonic()
        try:
            if stdin_data is None or isinstance(stdin_data, bytes):
                completed = subprocess.run(
                    invocation,
                    input=stdin_data,
                    stdin=subprocess.DEVNULL if stdin_data is None else None,
                    stdout=subprocess.PIPE,
                    stderr=stderr_target,
                    cwd=effective_cwd,
                    env=effective_env,
                    check=False,
                )
                returncode = completed.returncode
                stdout_raw = completed.stdout or b""
                stderr_raw = completed.stderr or b""
            else:
                returncode, stdout_raw, stderr_raw = _run_streaming(
                    invocation,
                    stdin_data,
                    stderr=stderr_target,
                    cwd=effective_cwd,
                    env=effective_env,
                )
        except FileNotFoundError:
            returncode = EXIT_COMMAND_NOT_FOUND
            stdout_raw = f"Command not found: {invocation[0]}".encode()
            stderr_raw = b""
        except PermissionError:
            returncode = EXIT_PERMISSION_DENIED
            stdout_raw = f"Permission denied: {invocation[0]}".encode()
            stderr_raw = b""

        duration_ms = int((time.monotonic() - start_time) * 1000)
        logger.debug(
            "command_finished",
            command=invocation,
            returncode=returncode,
            duration_ms=duration_ms,
        )

        return CommandResult(
            command=invocation,
            returncode=returncode,
            stdout=_decode(stdout_raw),
            stderr=_decode(stderr_raw),
            duration_ms=duration_ms,
            stdout_bytes=stdout_raw,
        )

    def run_interactive(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Execute a command attached to the controlling terminal.

        stdin, stdout and stderr are inherited, so an editor launched by the
        command behaves normally. Blocks until the process exits. Nothing is
        captured, so the result's output is always empty.

        Raises:
            WorkingDirectoryError: If the working directory does not exist.
        """
        invocation = tuple(command)
        effective_cwd = self._resolve_cwd(cwd)

        start_time = time.monotonic()
        try:
            returncode = subprocess.run(
                invocation,
                cwd=effective_cwd,
                env=self._build_env(env),
                check=False,
            ).returncode
        except FileNotFoundError:
            returncode = EXIT_COMMAND_NOT_FOUND
        except PermissionError:
            returncode = EXIT_PERMISSION_DENIED

        duration_ms = int((time.monotonic() - start_time) * 1000)
        logger.debug(
            "interactive_command_finished",
            command=invocation,
            returncode=returncode,
            duration_ms=duration_ms,
        )
        return CommandResult(
            command=invocation,
            returncode=returncode,
            stdout="",
            duration_ms=duration_ms,
        )


def _run_streaming(
    invocation: tuple[str, ...],
    source: IO[bytes],
    *,
    stderr: int,
    cwd: Path | None,
    env: dict[str, str],
) -> tuple[int, bytes, bytes]:
    """Run with stdin fed from ``source`` on a thread while output drains.

    Feeding and draining happen concurrently, so neither side can fill a pipe
    buffer and deadlock the other.

    Returns:
        Tuple of (returncode, stdout, stderr).
    """
    feed_errors: list[BaseException] = []
    stderr_chunks: list[bytes] = []

    def feed(sink: IO[bytes]) -> None:
        # A child that exits without reading all input reports through its
        # exit status, so a broken pipe is not an error here.
        try:
            with contextlib.suppress(BrokenPipeError):
                shutil.copyfileobj(source, sink)
        except Exception as e:
            feed_errors.append(e)
        finally:
            with contextlib.suppress(BrokenPipeError):
                sink.close()

    with subprocess.Popen(
        invocation,
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=stderr,
        cwd=cwd,
        env=env,
    ) as proc:
        assert proc.stdin is not None
        assert proc.stdout is not None
        feeder = threading.Thread(target=feed, args=(proc.stdin,), daemon=True)
        feeder.start()

        drainer = None
        if proc.stderr is not None:
            err_stream = proc.stderr
            drainer = threading.Thread(
                target=lambda: stderr_chunks.append(err_stream.read()), daemon=True
            )
            drainer.start()

        stdout = proc.stdout.read()
        if drainer is not None:
            drainer.join()
        feeder.join()
        returncode = proc.wait()

    if feed_errors:
        raise feed_errors[0]
    return returncode, stdout, b"".join(stderr_chunks)


def _decode(data: bytes | None) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")
