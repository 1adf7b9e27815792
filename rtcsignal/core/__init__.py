"""Core types, errors and identifier validation."""

from rtcsignal.core.errors import ConfigError, LoadError, SignalError
from rtcsignal.core.identifiers import CONNECTION_ID_LENGTH, generate_connection_id
from rtcsignal.core.validation import (
    InvalidConnectionIdError,
    ValidationError,
    extract_connection_id,
    find_connection_ids,
    is_valid_connection_id,
)

__all__ = [
    "SignalError",
    "ConfigError",
    "LoadError",
    "ValidationError",
    "InvalidConnectionIdError",
    "CONNECTION_ID_LENGTH",
    "generate_connection_id",
    "extract_connection_id",
    "find_connection_ids",
    "is_valid_connection_id",
]
