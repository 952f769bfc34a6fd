"""MCP server exposing Jina AI search, reader and deep search as tools."""

import asyncio
import contextlib
import logging
import os
import signal
import time
import uuid
from collections.abc import Callable, Iterator
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError, ValidationError
from fastmcp.server.middleware import CallNext, Middleware, MiddlewareContext

from .client import JinaClient
from .config import ServerConfig
from .endpoint import endpoint_middleware
from .exceptions import JinaMCPError, ToolValidationError, TransportError
from .models import (
    DeepSearchResult,
    PageContent,
    PageUrl,
    ReasoningEffort,
    ResearchQuery,
    SearchQuery,
    SearchResponse,
    SiteFilter,
)
from .observability import bind_call_context, clear_call_context, get_logger

logger = logging.getLogger("mcp_server_jina")

TOOL_NAMES = ("search", "scrape", "deepSearch")


class ToolCallMiddleware(Middleware):
    """Per-call logging context and validation error reporting."""

    async def on_call_tool(self, context: MiddlewareContext, call_next: CallNext) -> Any:
        tool_name = context.message.name
        bind_call_context(str(uuid.uuid4()), tool_name)
        call_logger = get_logger()
        started = time.monotonic()
        call_logger.info("tool_call_started", arguments=sorted((context.message.arguments or {}).keys()))

        try:
            result = await call_next(context)
        except ValidationError as e:
            call_logger.warning("tool_call_invalid", error=str(e))
            raise ToolError(str(ToolValidationError(tool_name, str(e)))) from e
        except Exception as e:
            call_logger.warning("tool_call_failed", error=str(e), duration=round(time.monotonic() - started, 3))
            raise
        else:
            call_logger.info("tool_call_completed", duration=round(time.monotonic() - started, 3))
            return result
        finally:
            clear_call_context()


def serve(config: ServerConfig, client: JinaClient) -> FastMCP:
    """Create the MCP server with the Jina tools bound to client."""
    server = FastMCP(config.name, version=config.version, middleware=[ToolCallMiddleware()])

    @server.tool(name="search")
    async def search(query: SearchQuery, site: SiteFilter = None) -> SearchResponse:
        """
        Search the web with Jina Search.

        Returns titles, URLs, descriptions and dates of matching pages without
        their full content.

        Args:
            query: The search query
            site: Optional domain to restrict results to (e.g. "docs.python.org")
        """
        try:
            results = await client.search(query, site=site)
        except JinaMCPError as e:
            raise ToolError(str(e)) from e
        return SearchResponse(results=results)

    @server.tool(name="scrape")
    async def scrape(url: PageUrl) -> PageContent:
        """
        Fetch a web page with Jina Reader and return it as markdown.

        Args:
            url: Absolute URL of the page to scrape
        """
        try:
            return await client.scrape(url)
        except JinaMCPError as e:
            raise ToolError(str(e)) from e

    @server.tool(name="deepSearch")
    async def deep_search(
        query: ResearchQuery,
        reasoning_effort: ReasoningEffort | None = None,
        no_direct_answer: bool | None = None,
    ) -> DeepSearchResult:
        """
        Research a question with Jina DeepSearch.

        Runs an iterative search, read and reason loop and returns the final
        answer with citations and the URLs visited along the way. Can take
        several minutes.

        Args:
            query: The question to research
            reasoning_effort: Optional research intensity (low, medium, high)
            no_direct_answer: Optional flag forcing further research even for trivial questions
        """
        try:
            return await client.deep_search(
                query,
                reasoning_effort=reasoning_effort,
                no_direct_answer=no_direct_answer,
            )
        except JinaMCPError as e:
            raise ToolError(str(e)) from e

    return server


# Grace period for the stdio transport to wind down after a termination signal
STDIO_SHUTDOWN_GRACE = 2.0


@contextlib.contextmanager
def _termination_handler(callback: Callable[[], None]) -> Iterator[None]:
    loop = asyncio.get_running_loop()
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Not available on Windows event loops
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, callback)
            installed.append(sig)
    try:
        yield
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


async def _run_stdio(server: FastMCP) -> bool:
    """Serve stdio until stdin closes or a termination signal arrives.

    Returns True when the transport had to be abandoned: stdin is read in a
    worker thread that stays blocked until input arrives, so cancellation
    cannot reach it.
    """
    stopping = asyncio.Event()
    with _termination_handler(stopping.set):
        serving = asyncio.create_task(server.run_stdio_async(show_banner=False))
        stop_requested = asyncio.create_task(stopping.wait())
        try:
            await asyncio.wait({serving, stop_requested}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            serving.cancel()
            raise
        finally:
            stop_requested.cancel()

        if serving.done():
            await serving
            return False

        logger.info("Termination signal received, closing stdio transport")
        serving.cancel()
        _, pending = await asyncio.wait({serving}, timeout=STDIO_SHUTDOWN_GRACE)
        if pending:
            logger.info("stdin reader still blocked, exiting without waiting for it")
            return True
        if not serving.cancelled() and serving.exception() is not None:
            logger.warning(f"stdio transport failed while stopping: {serving.exception()}")
        return False


async def _run_http(server: FastMCP, config: ServerConfig) -> None:
    # uvicorn handles SIGINT/SIGTERM with its own graceful shutdown
    logger.info(f"HTTP server at http://{config.host}:{config.port}{config.path}")
    await server.run_http_async(
        show_banner=False,
        transport="http",
        host=config.host,
        port=config.port,
        path=config.path,
        log_level=logging.getLevelName(config.logging_level).lower(),
        middleware=endpoint_middleware(config.path),
        json_response=True,
        stateless_http=True,
    )


def _exit_process() -> None:
    # A parked stdin reader thread would keep interpreter shutdown waiting forever
    logging.shutdown()
    os._exit(0)


async def run_server(config: ServerConfig, client: JinaClient | None = None) -> None:
    """Serve the Jina tools over the configured transport until shutdown.

    The tool set and transport are built once and reused for every request.
    The client is closed when serving stops.

    Raises:
        TransportError: If the transport cannot be started.
    """
    client = client or JinaClient.from_config(config)
    server = serve(config, client)
    logger.info(f"Starting MCP server ({config.name} v{config.version}) with transport: {config.transport}")

    abandoned = False
    try:
        if config.transport == "stdio":
            abandoned = await _run_stdio(server)
        elif config.transport == "http":
            await _run_http(server, config)
        else:
            raise TransportError(f"Unknown transport: {config.transport}")
    except OSError as e:
        raise TransportError(f"Failed to serve {config.transport} transport: {e}") from e
    finally:
        await client.aclose()
        logger.info("MCP server stopped")

    if abandoned:
        _exit_process()
