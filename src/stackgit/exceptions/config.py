from __future__ import annotations

from typing import Any

from stackgit.exceptions.base import StackGitError


class ConfigError(StackGitError):
    """Configuration could not be loaded, parsed or validated.

    Raised for YAML syntax errors in ``stackgit.yaml`` and for values that
    fail pydantic validation, whether they came from a file or from a
    ``STACKGIT_*`` environment variable.

    Attributes:
        message: Human-readable error message.
        field: Dotted path of the offending field, if known (``git.executable``).
        value: The rejected value, if known.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ) -> None:
        self.field = field
        self.value = value
        super().__init__(message)
