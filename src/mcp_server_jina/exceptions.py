"""Custom exceptions for the Jina MCP server."""


class JinaMCPError(Exception):
    """Base exception for Jina MCP server errors."""

    pass


class ConfigError(JinaMCPError):
    """Raised when the configuration file is missing, unreadable or invalid."""

    pass


class ToolValidationError(JinaMCPError):
    """Raised when tool arguments do not match the tool's input schema."""

    def __init__(self, tool_name: str, detail: str):
        self.tool_name = tool_name
        self.detail = detail
        super().__init__(f"Invalid arguments for tool '{tool_name}': {detail}")


class UpstreamError(JinaMCPError):
    """Raised when the Jina API answers with a non-success status."""

    def __init__(self, operation: str, status_code: int, reason: str = ""):
        self.operation = operation
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"{operation} failed: {status_code} {reason}".rstrip())


class EmptyResponseError(JinaMCPError):
    """Raised when a deep search stream ends without a parseable result."""

    pass


class TransportError(JinaMCPError):
    """Raised when the selected transport cannot be started or served."""

    pass
