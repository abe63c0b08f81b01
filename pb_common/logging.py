"""Logging setup for the harness.

Log records go to stderr (and optionally a file) so that stdout stays
reserved for per-case progress lines and the summary table. Both stdlib
loggers and structlog loggers render through one structlog formatter.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import structlog

from pb_common.config.env import env_flag, env_path

_HANDLER_MARK = "_pb_handler"


def _level(value: str | int | None, debug: bool) -> int:
    if debug:
        return logging.DEBUG
    if isinstance(value, int):
        return value
    if not value:
        return logging.INFO
    if value.isdigit():
        return int(value)
    resolved = logging.getLevelName(value.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _handler(handler: logging.Handler, formatter: logging.Formatter) -> logging.Handler:
    handler.setFormatter(formatter)
    setattr(handler, _HANDLER_MARK, True)
    return handler


def harness_handlers(logger: logging.Logger | None = None) -> list[logging.Handler]:
    """Handlers installed by ``configure_logging`` on ``logger`` (root by default)."""
    logger = logger or logging.getLogger()
    return [h for h in logger.handlers if getattr(h, _HANDLER_MARK, False)]


def configure_logging(
    *,
    level: str | int | None = None,
    debug: bool = False,
    log_file: str | Path | None = None,
    json: bool | None = None,
    force: bool = False,
) -> None:
    """Route logging to stderr through structlog.

    Unset arguments fall back to PB_LOG_LEVEL, PB_LOG_JSON and PB_LOG_FILE.
    Without ``force`` an already configured root logger is left alone; with
    it, handlers from an earlier call are replaced while foreign handlers
    (pytest capture, for one) stay attached.
    """
    if json is None:
        json = bool(env_flag("PB_LOG_JSON"))
    if log_file is None:
        log_file = env_path("PB_LOG_FILE")

    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer, foreign_pre_chain=_pre_chain()
    )
    structlog.configure(
        processors=[*_pre_chain(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    if not force and root.handlers:
        return
    for old in harness_handlers(root):
        root.removeHandler(old)
        old.close()

    root.setLevel(_level(level or os.environ.get("PB_LOG_LEVEL"), debug))
    root.addHandler(_handler(logging.StreamHandler(sys.stderr), formatter))
    if log_file:
        root.addHandler(_handler(logging.FileHandler(log_file, encoding="utf-8"), formatter))
