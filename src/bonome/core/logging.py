"""Structured logging for the Bonome character builder.

Every module logs through a structlog logger named after it. Events are
snake_case verbs (``feature_not_found``, ``preview_built``) with their
context passed as keyword arguments, never formatted into the message.

Example:
    >>> from bonome.core.logging import get_logger, log_context
    >>> logger = get_logger(__name__)
    >>> with log_context(character_class="magicien"):
    ...     logger.info("feature_graph_resolved", resolved=4, missing=0)
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger

    from bonome.core.config import Settings


NOISY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "uvicorn.access")
"""Standard library loggers kept at WARNING whatever the app level."""


def app_context_processor(app_name: str, version: str) -> Processor:
    """Build a processor stamping the application name and version on events.

    Args:
        app_name: Value of the ``app`` key.
        version: Value of the ``version`` key.

    Returns:
        A structlog processor.
    """

    def add_app_context(
        logger: WrappedLogger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict.setdefault("app", app_name)
        event_dict.setdefault("version", version)
        return event_dict

    return add_app_context


def configure_logging(
    settings: Settings | None = None,
    *,
    level: str | None = None,
    json_format: bool | None = None,
) -> None:
    """Configure structlog and the standard library root logger.

    Explicit arguments win over the settings; settings default to
    ``get_settings()``.

    Args:
        settings: Application settings (``log_level``, ``json_logs``).
        level: Logging level override.
        json_format: Render JSON lines instead of console output.

    Example:
        >>> configure_logging(level="DEBUG", json_format=False)
    """
    if settings is None:
        from bonome.core.config import get_settings

        settings = get_settings()

    level = (level or settings.log_level).upper()
    json_format = settings.json_logs if json_format is None else json_format
    numeric_level = getattr(logging, level, logging.INFO)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        app_context_processor(settings.app_name, settings.app_version),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_format:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        level=numeric_level,
        stream=sys.stderr,
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a logger, typically ``get_logger(__name__)``."""
    return structlog.get_logger(name)


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Bind context variables for the duration of a block.

    Variables bound before the block are restored on exit, so nested
    previews do not wipe each other's context.

    Args:
        **kwargs: Key-value pairs added to every event logged in the block.
    """
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield


__all__ = [
    "NOISY_LOGGERS",
    "app_context_processor",
    "configure_logging",
    "get_logger",
    "log_context",
]
