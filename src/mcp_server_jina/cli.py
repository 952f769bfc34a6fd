"""CLI interface for the Jina MCP server."""

import asyncio
import logging
from pathlib import Path

import typer

from .config import ServerConfig, load_config
from .exceptions import ConfigError, TransportError
from .observability import setup_logging

app = typer.Typer(help="MCP server for Jina AI search, reader and deep search")

logger = logging.getLogger("mcp_server_jina")


def _load(config_path: Path) -> ServerConfig:
    try:
        return load_config(config_path)
    except ConfigError as e:
        setup_logging()
        logger.error(str(e))
        raise typer.Exit(code=1) from e


@app.command()
def serve(
    config_path: Path = typer.Argument(..., help="Path to the JSON config file"),
) -> None:
    """Start the MCP server with the transport named in the config."""
    from .server import run_server

    config = _load(config_path)
    setup_logging(config.logging_level)
    logger.info(f"Attempting to start MCP server with transport: {config.transport}")

    try:
        asyncio.run(run_server(config))
    except TransportError as e:
        logger.error(f"Fatal error during server startup: {e}")
        raise typer.Exit(code=1) from e
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


@app.command("check-config")
def check_config(
    config_path: Path = typer.Argument(..., help="Path to the JSON config file"),
) -> None:
    """Validate a config file and show the effective settings."""
    config = _load(config_path)
    for key, value in config.summary().items():
        print(f"{key}: {value}")


if __name__ == "__main__":
    app()
