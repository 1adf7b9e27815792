"""CORS headers for signaling responses.

The policy comes from ``CorsConfig``: a fixed origin, an allow-list, or a
callable deciding per request. Headers are set on every response the
signaling layer produces, including pre-flight, error and 404 responses.
"""

from __future__ import annotations

import logging

from rtcsignal.config.schema import CorsConfig
from rtcsignal.server.http import HttpRequest, HttpResponse

ALLOW_METHODS = "OPTIONS, GET, POST"
BASE_ALLOW_HEADERS = "Origin, X-Requested-With, Content-Type, Accept"

logger = logging.getLogger(__name__)


def resolve_origin(request: HttpRequest, cors: CorsConfig) -> str | None:
    """Pick the Access-Control-Allow-Origin value for a request.

    Returns:
        The configured origin, the echoed request Origin when it is in the
        allow-list, the callable policy's answer, or None when the request
        origin is not allowed.
    """
    if isinstance(cors.origin, str):
        return cors.origin
    if callable(cors.origin):
        try:
            return cors.origin(request)
        except Exception as e:
            logger.warning("CORS origin policy raised, sending no origin: %s", e)
            return None
    request_origin = request.headers.get("origin")
    if request_origin and request_origin in cors.origin:
        return request_origin
    return None


def apply_cors(request: HttpRequest, response: HttpResponse, cors: CorsConfig) -> None:
    """Set CORS headers on response according to the policy."""
    origin = resolve_origin(request, cors)
    if origin is not None:
        response.set_header("Access-Control-Allow-Origin", origin)
    if not isinstance(cors.origin, str) or cors.origin != "*":
        response.set_header("Vary", "Origin")

    response.set_header("Access-Control-Request-Method", "*")
    response.set_header("Access-Control-Allow-Methods", ALLOW_METHODS)

    allow_headers = BASE_ALLOW_HEADERS
    if cors.allow_authorization:
        allow_headers += ", Authorization"
    response.set_header("Access-Control-Allow-Headers", allow_headers)

    if cors.max_age is not None:
        response.set_header("Access-Control-Max-Age", str(cors.max_age))
