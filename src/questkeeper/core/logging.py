"""Structured logging for QuestKeeper.

Every module logs through structlog with keyword events, e.g.
``logger.info("Record added", collection="notes", record_id=...)``.
``configure_logging`` picks the output from settings unless told otherwise:
a colored console renderer while debugging, one JSON object per line in
production.

Store operations can scope extra keys to a block of work:

    >>> with log_context(campaign_id=campaign.id):
    ...     store.add_note(title="Gundren")
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING, Any

import structlog


if TYPE_CHECKING:
    from structlog.types import EventDict, FilteringBoundLogger, Processor, WrappedLogger

    from questkeeper.core.config import Settings


APP_NAME = "questkeeper"

STDLIB_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Third-party loggers that are chatty at INFO.
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "asyncio")


# =============================================================================
# Processors
# =============================================================================


def add_app_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Tag every entry with the application name."""
    event_dict.setdefault("app", APP_NAME)
    return event_dict


def plain_enum_values(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Log enum members (collection kinds, tags, races) by their value."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def _level_number(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)


# =============================================================================
# Configuration
# =============================================================================


def configure_logging(
    *,
    level: str | None = None,
    json_format: bool | None = None,
    log_file: str | None = None,
    settings: Settings | None = None,
) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        level: Minimum level name. Defaults to ``settings.log_level``.
        json_format: Emit JSON lines. Defaults to ``settings.is_production``.
        log_file: Also append standard library records to this file.
        settings: Settings to read defaults from. Loaded if omitted and needed.
    """
    if level is None or json_format is None:
        if settings is None:
            from questkeeper.core.config import get_settings

            settings = get_settings()
        level = level or settings.log_level
        json_format = settings.is_production if json_format is None else json_format

    threshold = _level_number(level)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_app_context,
        plain_enum_values,
        structlog.processors.StackInfoRenderer(),
    ]
    if json_format:
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(format=STDLIB_FORMAT, level=threshold, stream=sys.stdout, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(threshold, logging.WARNING))

    if log_file:
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(threshold)
        handler.setFormatter(logging.Formatter(STDLIB_FORMAT))
        logging.getLogger().addHandler(handler)


# =============================================================================
# Access
# =============================================================================


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Get a logger, usually with ``__name__``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach keys to every later log entry in the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop all keys attached with :func:`bind_context`."""
    structlog.contextvars.clear_contextvars()


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Attach keys to log entries for the duration of a block."""
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield


__all__ = [
    "add_app_context",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "log_context",
    "plain_enum_values",
]
