"""Typed exception hierarchy for rtcsignal."""

from __future__ import annotations


class SignalError(Exception):
    """Base class for all rtcsignal errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigError(SignalError):
    """Raised for configuration issues (missing file, invalid JSON, validation failure)."""


class LoadError(SignalError):
    """Base class for loading errors (config files)."""

    pass
