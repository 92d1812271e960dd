"""structlog setup for zoho_mailer: console output plus an optional JSONL file."""

from __future__ import annotations

import logging
import os
from typing import Any

import structlog

BoundLogger = structlog.stdlib.BoundLogger

# HTTP client loggers echo request headers (bearer tokens) at DEBUG
QUIET_LOGGERS = ("httpx", "httpcore")

_configured = False


def _level_from_env() -> int:
    if os.getenv("VERBOSE_LOGGING", "false").lower() == "true":
        return logging.DEBUG
    name = os.getenv("LOG_LEVEL", "INFO")
    if name.isdigit():
        return int(name)
    return getattr(logging, name.upper(), logging.INFO)


def _handler(handler: logging.Handler, renderer: Any, level: int, pre_chain: list) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain))
    return handler


def _configure_logging() -> None:
    """Route structlog through stdlib logging once per process."""
    global _configured
    if _configured:
        return

    level = _level_from_env()
    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        timestamper,
    ]

    handlers = [_handler(logging.StreamHandler(), structlog.dev.ConsoleRenderer(colors=False), level, pre_chain)]
    log_file = os.getenv("ZOHO_LOG_FILE")
    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        handlers.append(
            _handler(
                logging.FileHandler(log_file, encoding="utf-8"),
                structlog.processors.JSONRenderer(),
                level,
                pre_chain,
            )
        )

    package_logger = logging.getLogger("zoho_mailer")
    package_logger.setLevel(level)
    for handler in handlers:
        package_logger.addHandler(handler)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[*pre_chain, structlog.processors.format_exc_info, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str = "zoho_mailer", **bindings: Any) -> BoundLogger:
    """Return the structured logger, optionally bound with context."""
    if not _configured:
        _configure_logging()
    logger = structlog.get_logger(name)
    return logger.bind(**bindings) if bindings else logger
