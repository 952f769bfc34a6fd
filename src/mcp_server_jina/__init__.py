"""MCP server for Jina AI search, reader and deep search."""

from .client import JinaClient
from .config import ServerConfig, load_config
from .exceptions import ConfigError, EmptyResponseError, JinaMCPError, ToolValidationError, TransportError, UpstreamError
from .server import run_server, serve

__all__ = [
    "JinaClient",
    "ServerConfig",
    "load_config",
    "serve",
    "run_server",
    "JinaMCPError",
    "ConfigError",
    "ToolValidationError",
    "UpstreamError",
    "EmptyResponseError",
    "TransportError",
]
