"""structlog configuration for the engine process.

Engine code logs through structlog; library code that uses stdlib
``logging`` (uvicorn, httpx, websockets, alembic) is routed through the
same renderer so every line on stderr has one shape.
"""

from __future__ import annotations

import logging
import sys

import structlog

# One line per request / frame at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore", "websockets", "uvicorn.access")

_RENDERERS = {
    "json": structlog.processors.JSONRenderer,
    "console": structlog.dev.ConsoleRenderer,
}


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _stderr_handler(log_format: str) -> logging.Handler:
    renderer = _RENDERERS.get(log_format, structlog.processors.JSONRenderer)()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_pre_chain(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    ))
    return handler


def setup_logging(level: str = "INFO", log_format: str = "json") -> None:
    """Route structlog and stdlib logging to stderr.

    *log_format* is ``json`` (default, one object per line) or ``console``.
    Unknown formats fall back to JSON.
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_pre_chain(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_stderr_handler(log_format))
    root_level = logging.getLevelName(level.upper())
    if not isinstance(root_level, int):
        root_level = logging.INFO
    root.setLevel(root_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(root_level, logging.WARNING))


def bind_engine_context(**context) -> None:
    """Attach process-wide fields (execution mode, run id) to every log line."""
    structlog.contextvars.bind_contextvars(**context)


def get_logger(name: str | None = None, **initial_context) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger(name)
    return logger.bind(**initial_context) if initial_context else logger
