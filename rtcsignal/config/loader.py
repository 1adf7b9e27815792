"""Layered configuration loading.

Layers (later wins, deep merge, lists replaced):
1. Global user (~/.rtcsignal/config.json), or the shipped defaults when absent
2. Project local (cwd/.rtcsignal/config.json)

An explicit path replaces the layers entirely.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from rtcsignal.config.schema import Config
from rtcsignal.core.constants import RTCSIGNAL_DIR_NAME, get_defaults_dir, get_rtcsignal_dir
from rtcsignal.core.errors import ConfigError, LoadError
from rtcsignal.core.utils import deep_merge

logger = logging.getLogger(__name__)

DEFAULTS_DIR = get_defaults_dir()
DEFAULT_CONFIG = DEFAULTS_DIR / "config.json"


def read_json_object(path: Path) -> dict[str, Any]:
    """Read one config layer. An empty file is an empty layer.

    Raises:
        LoadError: If the file is missing, unreadable, not JSON, or not an object.
    """
    try:
        text = path.read_text(encoding="utf-8-sig").strip()
    except FileNotFoundError:
        raise LoadError(f"Config file not found: {path}") from None
    except OSError as e:
        raise LoadError(f"Cannot read config file {path}: {e}") from e

    if not text:
        return {}

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise LoadError(f"Invalid JSON in {path} (line {e.lineno}, column {e.colno}): {e.msg}") from e

    if not isinstance(data, dict):
        raise LoadError(f"Expected a JSON object in {path}, got {type(data).__name__}")
    return data


def config_layers(cwd: Path) -> list[Path]:
    """Files that make up the effective config for cwd, lowest priority first."""
    global_config = get_rtcsignal_dir() / "config.json"
    layers = [global_config if global_config.is_file() else DEFAULT_CONFIG]

    local_config = cwd / RTCSIGNAL_DIR_NAME / "config.json"
    if local_config.is_file() and local_config.resolve() != global_config.resolve():
        layers.append(local_config)
    return layers


def load_config(path: Path | None = None, cwd: Path | None = None) -> Config:
    """Load and validate configuration.

    Args:
        path: Explicit config file. Skips layered loading.
        cwd: Working directory for the local layer. Defaults to Path.cwd().

    Raises:
        ConfigError: If a layer cannot be read or the merged result is invalid.
    """
    layers = [path] if path is not None else config_layers(cwd or Path.cwd())

    merged: dict[str, Any] = {}
    for layer in layers:
        try:
            merged = deep_merge(merged, read_json_object(layer))
        except LoadError as e:
            raise ConfigError(e.message) from e
        logger.debug("Loaded config layer: %s", layer)

    try:
        return Config.model_validate(merged)
    except ValidationError as e:
        sources = ", ".join(str(p) for p in layers)
        raise ConfigError(f"Config validation failed ({sources}): {e}") from e
