"""Route table for the signaling protocol.

The four operations are declared once in ``ROUTE_SHAPES`` and compiled per
prefix when a RouteTable is built:

    POST P/connections                            -> CREATE
    POST P/connections/{id}/remote-description    -> REMOTE_DESCRIPTION
    GET  P/connections/{id}/additional-candidates -> ADDITIONAL_CANDIDATES
    POST P/connections/{id}/close                 -> CLOSE

``{id}`` captures any non-empty text, slashes included. Validating the
captured token is left to ``extract_connection_id`` so that a malformed ID
yields 400 instead of falling through to 404.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from rtcsignal.core.validation import extract_connection_id


class Operation(str, Enum):
    """Signaling operations."""

    CREATE = "create"
    REMOTE_DESCRIPTION = "remote-description"
    ADDITIONAL_CANDIDATES = "additional-candidates"
    CLOSE = "close"


# (method, path shape relative to prefix, operation)
ROUTE_SHAPES: tuple[tuple[str, str, Operation], ...] = (
    ("POST", "/connections", Operation.CREATE),
    ("POST", "/connections/{id}/remote-description", Operation.REMOTE_DESCRIPTION),
    ("GET", "/connections/{id}/additional-candidates", Operation.ADDITIONAL_CANDIDATES),
    ("POST", "/connections/{id}/close", Operation.CLOSE),
)


@dataclass(frozen=True)
class Route:
    method: str
    operation: Operation
    pattern: re.Pattern[str]


@dataclass(frozen=True)
class RouteMatch:
    """A matched route.

    Attributes:
        operation: Which signaling operation the request denotes.
        id_token: Raw text captured for ``{id}``, or None for CREATE.
    """

    operation: Operation
    id_token: str | None = None

    def connection_id(self) -> str:
        """Validate and return the connection ID.

        Raises:
            InvalidConnectionIdError: If the token is not exactly one valid ID.
        """
        return extract_connection_id(self.id_token or "")


def is_under_prefix(path: str, prefix: str) -> bool:
    """Return True if path equals prefix or lies below it (segment-aware)."""
    if prefix == "/":
        return path.startswith("/")
    return path == prefix or path.startswith(prefix + "/")


def _compile_shape(prefix: str, shape: str) -> re.Pattern[str]:
    base = "" if prefix == "/" else prefix
    escaped = re.escape(base + shape).replace(re.escape("{id}"), "(?P<id>.+)")
    return re.compile(f"^{escaped}$")


class RouteTable:
    """Precompiled decision table keyed by (method, path shape).

    Example:
        table = RouteTable("/.wrtc/v2")
        match = table.match("GET", "/.wrtc/v2/connections/<id>/additional-candidates")
    """

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix
        self.routes: tuple[Route, ...] = tuple(
            Route(method=method, operation=operation, pattern=_compile_shape(prefix, shape))
            for method, shape, operation in ROUTE_SHAPES
        )

    def owns(self, path: str) -> bool:
        """Whether the signaling layer claims this path."""
        return is_under_prefix(path, self.prefix)

    def match(self, method: str, path: str) -> RouteMatch | None:
        """Find the operation for method + path.

        Returns:
            RouteMatch, or None when nothing matches (including a known shape
            requested with the wrong method).
        """
        for route in self.routes:
            if route.method != method:
                continue
            m = route.pattern.match(path)
            if m is None:
                continue
            return RouteMatch(operation=route.operation, id_token=m.groupdict().get("id"))
        return None
