"""ASGI middleware guarding the single MCP HTTP endpoint."""

import json
import logging
from typing import Any

from starlette.middleware import Middleware
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

METHOD_NOT_FOUND = -32601
INTERNAL_ERROR = -32603


def jsonrpc_error(code: int, message: str, request_id: Any = None) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "error": {"code": code, "message": message}, "id": request_id}


def _request_id(body: bytes) -> Any:
    """Best-effort extraction of the JSON-RPC id from a request body."""
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return None
    return data.get("id") if isinstance(data, dict) else None


class SingleEndpointMiddleware:
    """Only POST is served on the MCP endpoint.

    Any other method gets a 405 with a JSON-RPC "Method not found" body and a
    null id. A POST that fails before a response starts gets a 500 with a
    JSON-RPC internal error carrying the request's id.
    """

    def __init__(self, app: ASGIApp, path: str = "/mcp") -> None:
        self.app = app
        self.path = path.rstrip("/") or "/"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or (scope["path"].rstrip("/") or "/") != self.path:
            await self.app(scope, receive, send)
            return

        if scope["method"] != "POST":
            logger.info(f"Received {scope['method']} {scope['path']} (Method Not Allowed)")
            response = JSONResponse(jsonrpc_error(METHOD_NOT_FOUND, "Method not found"), status_code=405)
            await response(scope, receive, send)
            return

        body = b""
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] != "http.request":
                break
            body += message.get("body", b"")
            more_body = message.get("more_body", False)

        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, replay, send_wrapper)
        except Exception:
            logger.exception("Error handling MCP request")
            if response_started:
                raise
            response = JSONResponse(
                jsonrpc_error(INTERNAL_ERROR, "Internal server error", _request_id(body)),
                status_code=500,
            )
            await response(scope, receive, send)


def endpoint_middleware(path: str) -> list[Middleware]:
    """Middleware stack for the MCP Starlette app."""
    return [Middleware(SingleEndpointMiddleware, path=path)]
