"""HTTP surface of the signaling layer: router, adapters and wire helpers.

Example usage:
    registry = ConnectionRegistry(peer_factory=make_peer)
    router = SignalingRouter(registry, prefix="/.wrtc/v2")

    # Own a raw listener, forwarding other paths to the host
    adapter = InterceptionAdapter(router, fallbacks=[host_handler])
    server = await asyncio.start_server(adapter, "0.0.0.0", 9208)

    # Or wrap an ASGI application
    app = SignalingMiddleware(host_app, router=router)
"""

from rtcsignal.server.body import BodyParseError, RemoteDescriptionBody, parse_remote_description
from rtcsignal.server.cors import apply_cors
from rtcsignal.server.http import (
    MAX_BODY_SIZE,
    HttpParseError,
    HttpRequest,
    HttpResponse,
    read_http_body,
    read_http_headers,
    read_request_line,
    send_http_response,
)
from rtcsignal.server.interception import (
    FallbackHandler,
    InterceptionAdapter,
    run_signaling_server,
)
from rtcsignal.server.middleware import SignalingMiddleware
from rtcsignal.server.router import SignalingRouter
from rtcsignal.server.routes import Operation, RouteMatch, RouteTable, is_under_prefix

__all__ = [
    # Types
    "HttpRequest",
    "HttpResponse",
    "Operation",
    "RouteMatch",
    "RouteTable",
    "RemoteDescriptionBody",
    # Router and adapters
    "SignalingRouter",
    "InterceptionAdapter",
    "FallbackHandler",
    "SignalingMiddleware",
    "run_signaling_server",
    # Helpers
    "apply_cors",
    "is_under_prefix",
    "parse_remote_description",
    "read_request_line",
    "read_http_headers",
    "read_http_body",
    "send_http_response",
    "MAX_BODY_SIZE",
    # Exceptions
    "HttpParseError",
    "BodyParseError",
]
