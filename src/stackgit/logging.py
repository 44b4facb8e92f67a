"""Structured logging configuration for stackgit.

stackgit is a library, so it never configures logging on import. Applications
(and the ``stackgit`` CLI) call :func:`configure_logging` once; every module
obtains its logger through :func:`get_logger`.

Output format and level are read from the environment:

- ``STACKGIT_LOG_FORMAT=json`` switches to JSON lines (default: console)
- ``STACKGIT_LOG_LEVEL`` sets the level (default: ``WARNING``)

Usage:
    from stackgit.logging import configure_logging, get_logger

    configure_logging()
    log = get_logger(__name__)
    log.debug("git_command_finished", returncode=0)
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog
from structlog.types import Processor

__all__ = [
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
]

LOG_FORMAT_ENV_VAR = "STACKGIT_LOG_FORMAT"
LOG_LEVEL_ENV_VAR = "STACKGIT_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"


def _get_log_level() -> int:
    level_name = os.environ.get(LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.WARNING)


def _is_json_output() -> bool:
    return os.environ.get(LOG_FORMAT_ENV_VAR, "").lower() == "json"


def _shared_processors() -> list[Processor]:
    """Processors applied to both structlog and foreign stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(
    *,
    force_json: bool = False,
    level: int | None = None,
) -> None:
    """Configure structlog on top of the standard library root logger.

    Calling it again replaces the previous configuration, which makes it safe
    to use from test fixtures.

    Args:
        force_json: Emit JSON regardless of ``STACKGIT_LOG_FORMAT``.
        level: Log level. Read from ``STACKGIT_LOG_LEVEL`` when None.
    """
    use_json = force_json or _is_json_output()
    log_level = level if level is not None else _get_log_level()

    renderer: Processor
    if use_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info
                if not use_json
                else structlog.processors.dict_tracebacks,
                renderer,
            ],
            foreign_pre_chain=_shared_processors(),
        )
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name``.

    Example:
        log = get_logger(__name__)
        log.info("git_push_remote_resolved", branch="topic", remote="origin")
    """
    log: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return log


def bind_context(**context: Any) -> None:
    """Attach key/value pairs to every subsequent log event in this context."""
    structlog.contextvars.bind_contextvars(**context)


def clear_context() -> None:
    """Drop everything bound with :func:`bind_context`."""
    structlog.contextvars.clear_contextvars()
