"""Pydantic models for rtcsignal configuration validation."""

from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rtcsignal.core.constants import DEFAULT_PREFIX


class CorsConfig(BaseModel):
    """Cross-origin policy applied to every signaling response.

    Example in config.json:
        "cors": {
            "origin": ["https://game.example.com", "http://localhost:8080"],
            "allow_authorization": true
        }
    """

    model_config = ConfigDict(extra="forbid")

    origin: str | list[str] | Callable[[Any], str | None] = "*"
    """Allowed origin: "*", a single origin, or a list of allowed origins.
    With a list, the request's Origin header is echoed back when listed.
    In code a callable may be given instead; it receives the HttpRequest and
    returns the origin to send, or None to send none."""

    allow_authorization: bool = True
    """Include Authorization in Access-Control-Allow-Headers."""

    max_age: int | None = Field(default=None, ge=0)
    """Pre-flight cache lifetime in seconds (Access-Control-Max-Age)."""


class ServerConfig(BaseModel):
    """Configuration for the standalone signaling HTTP server.

    Example in config.json:
        "server": {
            "host": "0.0.0.0",
            "port": 9208,
            "log_level": "INFO"
        }
    """

    model_config = ConfigDict(extra="forbid")

    host: str = "127.0.0.1"
    """Host address to bind to (use 0.0.0.0 for all interfaces)."""

    port: int = Field(default=9208, ge=0, le=65535)
    """Port number for the HTTP server (0 picks a free port)."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    """Logging level for server operations."""

    max_body_size: int = Field(default=1_048_576, gt=0)
    """Largest accepted request body in bytes."""

    max_concurrent: int = Field(default=64, gt=0)
    """Maximum signaling requests handled at once."""


class IceServerConfig(BaseModel):
    """A STUN/TURN server handed to the peer engine."""

    model_config = ConfigDict(extra="forbid")

    urls: str | list[str]
    username: str | None = None
    credential: str | None = None


class Config(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")

    prefix: str = DEFAULT_PREFIX
    """Route prefix owned by the signaling layer (e.g. "/.wrtc/v2")."""

    cors: CorsConfig = CorsConfig()
    """Cross-origin policy."""

    server: ServerConfig = ServerConfig()
    """Standalone server settings."""

    ice_servers: list[IceServerConfig] = []
    """ICE servers for the bundled aiortc peer adapter."""

    @field_validator("prefix")
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        """Prefix must be an absolute path without a trailing slash."""
        if not v.startswith("/"):
            raise ValueError(f"prefix must start with '/': {v!r}")
        if len(v) > 1 and v.endswith("/"):
            raise ValueError(f"prefix must not end with '/': {v!r}")
        if "?" in v or "#" in v:
            raise ValueError(f"prefix must be a plain path: {v!r}")
        return v
