"""Configuration loading and validation."""

from rtcsignal.config.loader import DEFAULT_CONFIG, DEFAULTS_DIR, load_config
from rtcsignal.config.schema import Config, CorsConfig, IceServerConfig, ServerConfig

__all__ = [
    "Config",
    "CorsConfig",
    "DEFAULT_CONFIG",
    "DEFAULTS_DIR",
    "IceServerConfig",
    "ServerConfig",
    "load_config",
]
