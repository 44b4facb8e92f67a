from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from stackgit.exceptions import ConfigError
from stackgit.logging import get_logger

__all__ = [
    "GitConfig",
    "StackGitConfig",
    "get_user_config_path",
    "load_config",
]

logger = get_logger(__name__)

#: File name looked up in the working directory when no path is given.
PROJECT_CONFIG_FILENAME = "stackgit.yaml"


class GitConfig(BaseModel):
    """Settings for the git executable.

    Attributes:
        executable: Name or path of the git binary (default: ``git``).
        env: Extra environment variables for every git process, e.g.
            ``GIT_EDITOR`` for interactive amends.
    """

    executable: str = "git"
    env: dict[str, str] = Field(default_factory=dict)

    @field_validator("executable")
    @classmethod
    def check_executable_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("git executable cannot be empty")
        return v


class StackGitConfig(BaseSettings):
    """Root configuration object.

    Priority (highest to lowest): ``STACKGIT_*`` environment variables, the
    project file, the user file, built-in defaults. The YAML layers are merged
    by :func:`load_config` and handed in as init values, which rank below the
    environment here.
    """

    model_config = SettingsConfigDict(
        env_prefix="STACKGIT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    git: GitConfig = Field(default_factory=GitConfig)
    repo_path: Path | None = None
    verbosity: Literal["error", "warning", "info", "debug"] = "warning"

    @field_validator("repo_path")
    @classmethod
    def check_repo_path_exists(cls, v: Path | None) -> Path | None:
        """Warn if repo_path doesn't exist; the runner rejects it later."""
        if v is not None and not v.exists():
            logger.warning("repo_path_missing", repo_path=str(v))
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (env_settings, init_settings)


def get_user_config_path() -> Path:
    """Return ``~/.config/stackgit/config.yaml``."""
    return Path.home() / ".config" / "stackgit" / "config.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    """Read one YAML layer; a missing or empty file is an empty layer.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            loaded = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if loaded is None:
        logger.warning("config_file_empty", path=str(path))
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(
            f"Config file {path} must contain a mapping",
            value=loaded,
        )
    return loaded


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Path | None = None) -> StackGitConfig:
    """Load configuration: defaults -> user file -> project file -> env.

    Args:
        config_path: Project config file. Defaults to ``./stackgit.yaml``.

    Returns:
        The merged StackGitConfig.

    Raises:
        ConfigError: If a file is malformed or a value is invalid.
    """
    if config_path is None:
        config_path = Path.cwd() / PROJECT_CONFIG_FILENAME

    if not config_path.exists():
        logger.debug("project_config_not_found", path=str(config_path))

    data = _deep_merge(_load_yaml(get_user_config_path()), _load_yaml(config_path))

    try:
        return StackGitConfig(**data)
    except ValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(loc) for loc in first_error["loc"])
        raise ConfigError(
            f"Invalid configuration: {first_error['msg']}",
            field=field,
            value=first_error.get("input"),
        ) from e
