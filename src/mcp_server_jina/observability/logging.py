"""Structured logging with per-call context using structlog and contextvars."""

import logging
import sys
from contextvars import ContextVar

import structlog

# Context variables for the tool call being served
current_call_id: ContextVar[str | None] = ContextVar("current_call_id", default=None)
current_tool_name: ContextVar[str | None] = ContextVar("current_tool_name", default=None)

# Dependency loggers that are too chatty below WARNING
NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "asyncio",
    "mcp",
    "sse_starlette",
    "uvicorn.access",
)

_configured = False


def setup_logging(level: int = logging.INFO) -> None:
    """Configure structlog with JSON output on stderr and per-call context.

    In stdio mode stdout is reserved exclusively for JSON-RPC messages, so every
    handler writes to stderr regardless of transport.

    Args:
        level: stdlib logging level (logging.DEBUG, logging.INFO, ...)
    """
    global _configured

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger()
    root.handlers = [stderr_handler]
    root.setLevel(level)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(max(level, logging.WARNING))

    if _configured:
        return

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,  # Inject call context
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configured = True


def bind_call_context(call_id: str, tool_name: str) -> None:
    """Bind call context for all subsequent logs in this async context.

    Args:
        call_id: Unique identifier of the tool call
        tool_name: Name of the tool being executed
    """
    current_call_id.set(call_id)
    current_tool_name.set(tool_name)
    structlog.contextvars.bind_contextvars(call_id=call_id, tool_name=tool_name)


def clear_call_context() -> None:
    """Clear call context after the call completes."""
    current_call_id.set(None)
    current_tool_name.set(None)
    structlog.contextvars.clear_contextvars()


def get_logger(name: str = "mcp_server_jina") -> structlog.stdlib.BoundLogger:
    """Get a structlog logger carrying the current call context."""
    return structlog.get_logger(name)


def get_current_call_id() -> str | None:
    """Get the current call ID from context."""
    return current_call_id.get()
