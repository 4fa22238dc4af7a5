"""Structured logging."""

from updown_core.logging.setup import bind_engine_context, get_logger, setup_logging

__all__ = ["bind_engine_context", "get_logger", "setup_logging"]
