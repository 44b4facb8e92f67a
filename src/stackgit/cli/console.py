"""Shared Rich consoles for CLI output.

Rich drops styling automatically when output is piped.
"""

from __future__ import annotations

from rich.console import Console

__all__ = ["console", "err_console"]

console = Console()
err_console = Console(stderr=True)
