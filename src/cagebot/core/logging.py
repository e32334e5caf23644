"""Structured logging configuration for Cagebot.

Bot code logs through structlog; third-party libraries (httpx, asyncio) log
through the standard library. Both are routed into the same stdlib handlers
via ``structlog.stdlib.ProcessorFormatter``, so a log file receives the bot's
own lines as well as library warnings.

The console gets the colourful renderer, or JSON lines with ``json_format``.
Log files are always JSON, one event per line.

Example:
    >>> from cagebot.core.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Opened grate", grates=3)
"""

from __future__ import annotations

import logging
import re
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger


REDACTED = "***"
SECRET_KEYS = frozenset({"password", "pwd", "pwdhash"})
QUIET_LIBRARIES = ("httpx", "httpcore", "asyncio")

# Every game request carries the session hash in its query string, and
# httpx errors quote the URL.
_PWD_PARAM = re.compile(r"(\bpwd=)[^&\s'\"]+")


def add_app_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add application context to log entries."""
    event_dict["app"] = "cagebot"
    return event_dict


def redact_secrets(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Mask the account password and session hash.

    Values logged under a secret key are replaced outright; ``pwd=`` query
    parameters are scrubbed from any string value.

    Args:
        logger: The wrapped logger instance.
        method_name: Name of the logging method called.
        event_dict: The event dictionary to modify.

    Returns:
        The event dictionary with secrets masked.
    """
    for key, value in event_dict.items():
        if key in SECRET_KEYS:
            event_dict[key] = REDACTED
        elif isinstance(value, str) and "pwd=" in value:
            event_dict[key] = _PWD_PARAM.sub(rf"\g<1>{REDACTED}", value)
    return event_dict


def _shared_processors() -> list[Processor]:
    """Processors applied to structlog events and foreign stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
    ]


def _formatter(renderer: Processor, *, json_lines: bool) -> structlog.stdlib.ProcessorFormatter:
    processors: list[Processor] = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if json_lines:
        processors.append(structlog.processors.format_exc_info)
    processors.append(renderer)
    return structlog.stdlib.ProcessorFormatter(
        processors=processors,
        foreign_pre_chain=_shared_processors(),
    )


def configure_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | None = None,
) -> None:
    """Configure application-wide logging.

    Replaces any handlers already on the root logger, so calling this again
    reconfigures cleanly.

    Args:
        level: The logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Render console output as JSON lines.
        log_file: Optional path of a file that also receives every event as JSON.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    console_renderer: Processor
    if json_format:
        console_renderer = structlog.processors.JSONRenderer()
    else:
        console_renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(_formatter(console_renderer, json_lines=json_format))
    handlers: list[logging.Handler] = [console]

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            _formatter(structlog.processors.JSONRenderer(), json_lines=True)
        )
        handlers.append(file_handler)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger, usually with ``__name__``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables included in all subsequent logs.

    The dispatcher binds the requester and command around each mutating
    command, so every line of an adventure run can be traced back to its
    request.

    Args:
        **kwargs: Key-value pairs to bind to the logging context.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


__all__ = [
    "REDACTED",
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "redact_secrets",
]
