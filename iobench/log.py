"""
Структурированное логирование на structlog.

Использование:
    from iobench.log import get_logger

    logger = get_logger(__name__, component="worker")
    logger.info("Write phase finished", points=4, errors=0)

configure_logging() вызывается один раз при старте CLI. Логи пишутся в
stderr, чтобы stdout оставался под отчёт.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor


def configure_logging(json_output: bool = False, log_level: str = "INFO") -> None:
    """Настройка structlog для приложения"""
    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        processors = shared_processors + [structlog.processors.JSONRenderer()]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str, **initial_context: Any):
    """Логгер модуля с привязанным контекстом (component и т.п.)"""
    return structlog.get_logger(name, logger_name=name, **initial_context)
