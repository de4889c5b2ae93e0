"""Environment-driven server configuration.

The configuration is read once at startup and passed explicitly to the server
factory, the handlers and the remote client adapter.
"""

import os
from pathlib import Path
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigurationError

DEFAULT_LOCATION = "us-central1"
DEFAULT_OUTPUT_DIR = "./output"
DEFAULT_TRANSPORT = "stdio"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080

Transport = Literal["stdio", "sse", "streamable-http"]
TRANSPORTS = ("stdio", "sse", "streamable-http")
# accepted for compatibility with older deployments
TRANSPORT_ALIASES = {"http": "streamable-http"}

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_TRUTHY = ("1", "true", "yes", "on")


class ServerConfig(BaseModel):
    """Immutable server settings."""
    model_config = ConfigDict(frozen=True, extra='forbid')

    api_key: str = Field(..., min_length=1, repr=False)
    project_id: Optional[str] = None
    location: str = DEFAULT_LOCATION
    use_vertexai: bool = False
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    transport: Transport = DEFAULT_TRANSPORT
    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    log_level: LogLevel = "INFO"

    def with_transport(self, transport: Optional[str]) -> "ServerConfig":
        """Return a copy with the transport overridden, if one is given."""
        if not transport:
            return self
        return self.model_copy(update={"transport": normalize_transport(transport, "transport")})


def normalize_transport(value: str, source: str = "TRANSPORT") -> str:
    """Resolve aliases and reject transports FastMCP cannot run."""
    transport = TRANSPORT_ALIASES.get(value.lower(), value.lower())
    if transport not in TRANSPORTS:
        choices = ", ".join(TRANSPORTS + tuple(TRANSPORT_ALIASES))
        raise ConfigurationError(f"Unsupported {source} '{value}'. Choose one of: {choices}")
    return transport


def _getenv_or_default(env: Mapping[str, str], key: str, default: str) -> str:
    value = env.get(key)
    return value if value else default


def load_config(env: Optional[Mapping[str, str]] = None) -> ServerConfig:
    """Build the configuration from environment variables.

    Raises:
        ConfigurationError: GOOGLE_API_KEY is missing, a value is malformed,
            or the output directory cannot be created.
    """
    if env is None:
        env = os.environ

    api_key = env.get("GOOGLE_API_KEY")
    if not api_key:
        raise ConfigurationError("GOOGLE_API_KEY environment variable is required")

    transport = normalize_transport(_getenv_or_default(env, "TRANSPORT", DEFAULT_TRANSPORT))

    port_value = _getenv_or_default(env, "PORT", str(DEFAULT_PORT))
    try:
        port = int(port_value)
    except ValueError:
        raise ConfigurationError(f"PORT must be an integer, got '{port_value}'")

    output_dir = Path(_getenv_or_default(env, "OUTPUT_DIR", DEFAULT_OUTPUT_DIR)).expanduser()
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(f"Failed to create output directory {output_dir}: {e}")

    try:
        return ServerConfig(
            api_key=api_key,
            project_id=env.get("GOOGLE_PROJECT_ID") or None,
            location=_getenv_or_default(env, "GOOGLE_LOCATION", DEFAULT_LOCATION),
            use_vertexai=env.get("GOOGLE_GENAI_USE_VERTEXAI", "").lower() in _TRUTHY,
            output_dir=output_dir,
            transport=transport,
            host=_getenv_or_default(env, "HOST", DEFAULT_HOST),
            port=port,
            log_level=_getenv_or_default(env, "LOG_LEVEL", "INFO").upper(),
        )
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")
