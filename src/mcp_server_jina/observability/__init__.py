"""Observability module for structured, per-call logging."""

from .logging import bind_call_context, clear_call_context, get_current_call_id, get_logger, setup_logging

__all__ = [
    "bind_call_context",
    "clear_call_context",
    "get_current_call_id",
    "get_logger",
    "setup_logging",
]
