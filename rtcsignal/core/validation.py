"""Input validation utilities for rtcsignal.

Connection IDs are the only client-supplied identifiers the signaling
protocol accepts. They appear as a single path segment and must be exactly
24 ASCII alphanumeric characters. Anything else (wrong length, other
characters, several candidate tokens in one segment) is rejected rather
than matched best-effort.
"""

from __future__ import annotations

import re

from rtcsignal.core.errors import SignalError
from rtcsignal.core.identifiers import CONNECTION_ID_LENGTH

# Full-string match for a single connection ID
CONNECTION_ID_PATTERN = re.compile(rf"^[0-9a-zA-Z]{{{CONNECTION_ID_LENGTH}}}$")

# Alphanumeric runs, used to count ID-shaped tokens in a path fragment
_ALNUM_RUN_PATTERN = re.compile(r"[0-9a-zA-Z]+")


class ValidationError(SignalError):
    """Raised when validation fails."""

    pass


class InvalidConnectionIdError(ValidationError):
    """Raised when a path does not carry exactly one well-formed connection ID."""

    def __init__(self, token: str, reason: str) -> None:
        self.token = token
        self.reason = reason
        super().__init__(f"Invalid connection ID {token!r}: {reason}")


def is_valid_connection_id(value: str) -> bool:
    """Check if value is a well-formed connection ID.

    Args:
        value: The candidate ID.

    Returns:
        True if value is exactly 24 characters from [0-9a-zA-Z].
    """
    return bool(value) and CONNECTION_ID_PATTERN.match(value) is not None


def find_connection_ids(text: str) -> list[str]:
    """Return every ID-shaped token in text.

    A token counts only if it is a whole alphanumeric run of exactly the ID
    length. A 25-character run is not an ID and does not contain one.

    Args:
        text: A path or path fragment.

    Returns:
        List of tokens in order of appearance (possibly empty).
    """
    return [
        run for run in _ALNUM_RUN_PATTERN.findall(text)
        if len(run) == CONNECTION_ID_LENGTH
    ]


def extract_connection_id(token: str) -> str:
    """Validate the ID portion captured from a route and return the ID.

    Args:
        token: Text captured where a route expects ``{id}``. May contain
            slashes when the client sent extra segments.

    Returns:
        The connection ID.

    Raises:
        InvalidConnectionIdError: If token holds zero or several ID-shaped
            tokens, or is not itself a single well-formed ID.
    """
    ids = find_connection_ids(token)
    if not ids:
        raise InvalidConnectionIdError(token, "no connection ID in path")
    if len(ids) > 1:
        raise InvalidConnectionIdError(token, f"{len(ids)} connection IDs in path")
    if not is_valid_connection_id(token):
        raise InvalidConnectionIdError(
            token,
            f"must be exactly {CONNECTION_ID_LENGTH} characters of [0-9a-zA-Z]",
        )
    return token
