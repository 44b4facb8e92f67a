"""CLI entry point for stackgit.

A thin Click front end over :class:`stackgit.git.GitClient`, mostly useful for
poking at a repository the same way stacked-branch tools see it.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from stackgit import __version__
from stackgit.cli.console import console
from stackgit.cli.context import CLIContext, ExitCode, get_cli_context, handle_errors
from stackgit.config import load_config
from stackgit.exceptions import ConfigError
from stackgit.logging import configure_logging

_VERBOSITY_LEVELS = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="stackgit")
@click.option(
    "-C",
    "repo_path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Run as if started in this repository directory.",
)
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to config file (default: ./stackgit.yaml).",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (-v for INFO, -vv for DEBUG).",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    default=False,
    help="Only log errors.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    repo_path: Path | None,
    config_file: Path | None,
    verbose: int,
    quiet: bool,
) -> None:
    """stackgit - git helpers for stacked-branch workflows."""
    ctx.ensure_object(dict)

    try:
        config = load_config(config_file)
    except ConfigError as e:
        error_parts = [f"Error: {e.message}"]
        if e.field:
            error_parts.append(f"  Field: {e.field}")
        if e.value is not None:
            error_parts.append(f"  Value: {e.value}")
        click.echo("\n".join(error_parts), err=True)
        ctx.exit(ExitCode.FAILURE)

    ctx.obj["cli_ctx"] = CLIContext(
        config=config,
        repo_path=repo_path,
        verbosity=verbose,
        quiet=quiet,
    )

    # Priority: quiet > verbose > config
    if quiet:
        level = logging.ERROR
    elif verbose > 0:
        level = logging.INFO if verbose == 1 else logging.DEBUG
    else:
        level = _VERBOSITY_LEVELS.get(config.verbosity, logging.WARNING)
    configure_logging(level=level)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument("ref")
@click.option(
    "-f",
    "--format",
    "fmt",
    default="%B",
    show_default=True,
    help="git pretty-format string.",
)
@click.pass_context
@handle_errors
def describe(ctx: click.Context, ref: str, fmt: str) -> None:
    """Print a formatted description of REF.

    Examples:
        stackgit describe HEAD
        stackgit describe HEAD~2 --format "%s"
    """
    click.echo(get_cli_context(ctx).client().describe_ref(ref, fmt))


@cli.command()
@click.argument("ref1")
@click.argument("ref2")
@click.pass_context
@handle_errors
def diff(ctx: click.Context, ref1: str, ref2: str) -> None:
    """Print the patch between REF1 and REF2 exactly as git wrote it."""
    click.echo(get_cli_context(ctx).client().diff(ref1, ref2), nl=False)


@cli.command("has-changes")
@click.pass_context
@handle_errors
def has_changes(ctx: click.Context) -> None:
    """Exit 0 if the working tree has uncommitted changes, 1 otherwise.

    Untracked files are ignored.
    """
    changed = get_cli_context(ctx).client().has_changes()
    click.echo("true" if changed else "false")
    if not changed:
        sys.exit(ExitCode.FAILURE)


@cli.command("current-branch")
@click.pass_context
@handle_errors
def current_branch(ctx: click.Context) -> None:
    """Print the checked-out branch name."""
    click.echo(get_cli_context(ctx).client().current_branch())


@cli.command("rev-parse")
@click.argument("ref")
@click.pass_context
@handle_errors
def rev_parse(ctx: click.Context, ref: str) -> None:
    """Print the object hash REF resolves to."""
    click.echo(get_cli_context(ctx).client().rev_parse(ref))


@cli.command("fork-point")
@click.argument("ref")
@click.argument("branch", required=False)
@click.pass_context
@handle_errors
def fork_point(ctx: click.Context, ref: str, branch: str | None) -> None:
    """Print where BRANCH (default: HEAD) forked from REF.

    Fails when there is no common ancestor or BRANCH is fully merged.
    """
    args = (branch,) if branch else ()
    click.echo(get_cli_context(ctx).client().fork_point(ref, *args))


@cli.command("is-ancestor")
@click.argument("ref1")
@click.argument("ref2")
@click.pass_context
@handle_errors
def is_ancestor(ctx: click.Context, ref1: str, ref2: str) -> None:
    """Exit 0 if REF1 is an ancestor of REF2, 1 if it is not."""
    answer = get_cli_context(ctx).client().is_ancestor(ref1, ref2)
    click.echo("true" if answer else "false")
    if not answer:
        sys.exit(ExitCode.FAILURE)


@cli.command("push-remote")
@click.argument("branch")
@click.pass_context
@handle_errors
def push_remote(ctx: click.Context, branch: str) -> None:
    """Print the remote BRANCH pushes to (pushRemote, then remote)."""
    click.echo(get_cli_context(ctx).client().push_remote_for_branch(branch))


@cli.group()
def notes() -> None:
    """Read and write commit notes."""


@notes.command("show")
@click.argument("obj")
@click.pass_context
@handle_errors
def notes_show(ctx: click.Context, obj: str) -> None:
    """Print the note attached to OBJ."""
    click.echo(get_cli_context(ctx).client().show_notes(obj))


@notes.command("add")
@click.argument("obj")
@click.option("-m", "--message", required=True, help="Note text.")
@click.pass_context
@handle_errors
def notes_add(ctx: click.Context, obj: str, message: str) -> None:
    """Replace the note attached to OBJ."""
    cli_ctx = get_cli_context(ctx)
    cli_ctx.client().force_add_notes(obj, message)
    if not cli_ctx.quiet:
        console.print(f"[green]Note set on[/green] {obj}")


@notes.command("append")
@click.argument("obj")
@click.option("-m", "--message", required=True, help="Note text.")
@click.pass_context
@handle_errors
def notes_append(ctx: click.Context, obj: str, message: str) -> None:
    """Append to the note attached to OBJ."""
    cli_ctx = get_cli_context(ctx)
    cli_ctx.client().append_notes(obj, message)
    if not cli_ctx.quiet:
        console.print(f"[green]Note appended to[/green] {obj}")


if __name__ == "__main__":
    cli()
