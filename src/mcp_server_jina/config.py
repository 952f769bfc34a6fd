"""Configuration management using Pydantic settings loaded from a JSON file."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError

APP_NAME = "mcp-server-jina"

# Standard environment variable for the Jina API key (used when the file has none)
STANDARD_API_KEY_ENV_VAR = "JINA_API_KEY"

DEFAULT_PORT = 3123
DEFAULT_PATH = "/mcp"
# Deep search streams can run for minutes
DEFAULT_TIMEOUT = 300.0

LogLevel = Literal["debug", "info", "warn", "error"]
TransportType = Literal["http", "stdio"]

LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class ApiKeys(BaseModel):
    """Provider API keys."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    jina: Optional[SecretStr] = Field(default=None, description="Jina AI API key")


class ServerConfig(BaseSettings):
    """Root server configuration.

    Priority: Config File > Environment Variables > Defaults
    """

    model_config = SettingsConfigDict(
        env_prefix="JINA_MCP_",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    name: str
    version: str
    api_keys: ApiKeys = Field(alias="apiKeys")
    log_level: LogLevel = Field(default="info", alias="logLevel")
    transport: TransportType = Field(default="http", description="MCP transport: http or stdio")
    host: str = Field(default="127.0.0.1", description="Host for the HTTP transport")
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535, description="Port for the HTTP transport")
    path: str = Field(default=DEFAULT_PATH, description="Endpoint path for the HTTP transport")
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Timeout for outbound Jina API calls in seconds")

    def get_api_key(self) -> Optional[str]:
        """Resolve the Jina API key.

        Priority order:
        1. apiKeys.jina from the config file
        2. JINA_API_KEY environment variable

        Returns:
            The resolved API key or None if not found.
        """
        if self.api_keys.jina:
            return self.api_keys.jina.get_secret_value()
        return os.environ.get(STANDARD_API_KEY_ENV_VAR) or None

    @property
    def logging_level(self) -> int:
        """Stdlib logging level for the configured logLevel."""
        return LOG_LEVELS[self.log_level]

    def summary(self) -> dict[str, Any]:
        """Effective settings with the API key masked."""
        key = self.get_api_key()
        return {
            "name": self.name,
            "version": self.version,
            "transport": self.transport,
            "host": self.host,
            "port": self.port,
            "path": self.path,
            "log_level": self.log_level,
            "timeout": self.timeout,
            "api_key": f"{key[:4]}…" if key else "(none)",
        }


def read_config_file(config_path: Path) -> dict[str, Any]:
    """Read the raw JSON object from a config file."""
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to load config {config_path}: {e}") from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Failed to load config {config_path}: invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Failed to load config {config_path}: expected a JSON object")
    return data


def load_config(config_path: str | Path) -> ServerConfig:
    """Load and validate server configuration from a JSON file.

    Raises:
        ConfigError: If the file is unreadable, not valid JSON, or violates the schema.
    """
    path = Path(config_path).expanduser()
    data = read_config_file(path)
    try:
        # File values are init kwargs, so they win over environment variables
        return ServerConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Failed to load config {path}: {e}") from e
