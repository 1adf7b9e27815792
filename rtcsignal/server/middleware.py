"""Middleware adapter: plug the signaling routes into an ASGI application.

Works with any ASGI framework. The wrapped application is the "next"
handler in the chain:

    app = SignalingMiddleware(host_app, router=router)

    # Starlette / FastAPI
    app.add_middleware(SignalingMiddleware, router=router)

Requests whose path is not under the signaling prefix (and every non-HTTP
scope such as websockets or lifespan) are passed to the wrapped app
untouched. Claimed requests are answered by the router and the wrapped app
is never called for them.

If an upstream layer already parsed the JSON body it can hand it over
through ``request.state.json_body``; otherwise the body is read from the
request stream.
"""

from __future__ import annotations

import logging

from starlette.requests import ClientDisconnect, Request
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send

from rtcsignal.server.cors import apply_cors
from rtcsignal.server.http import MAX_BODY_SIZE, HttpRequest, HttpResponse
from rtcsignal.server.router import PREFLIGHT_METHOD, SignalingRouter

logger = logging.getLogger(__name__)


class BodyTooLarge(Exception):
    """The request body exceeded the configured limit."""


def to_http_request(request: Request) -> HttpRequest:
    """Build an HttpRequest (without body) from a Starlette request."""
    http_request = HttpRequest(
        method=request.method.upper(),
        path=request.url.path,
        headers=dict(request.headers.items()),
        query=request.url.query,
    )
    if hasattr(request.state, "json_body"):
        http_request.json_body = request.state.json_body
    return http_request


async def read_request_body(request: Request, max_body_size: int = MAX_BODY_SIZE) -> str:
    """Read the full request body, stopping as soon as it is too large.

    Raises:
        ClientDisconnect: If the client went away before the last chunk.
        BodyTooLarge: If the body exceeds max_body_size.
        UnicodeDecodeError: If the body is not UTF-8.
    """
    chunks: list[bytes] = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > max_body_size:
            raise BodyTooLarge(f"Request body too large: > {max_body_size}")
        chunks.append(chunk)
    return b"".join(chunks).decode("utf-8")


def to_starlette_response(response: HttpResponse) -> Response:
    headers = {
        name: value
        for name, value in response.headers.items()
        if name.lower() != "content-length"
    }
    return Response(content=response.body, status_code=response.status, headers=headers)


class SignalingMiddleware:
    """ASGI middleware answering signaling requests before the host app."""

    def __init__(
        self,
        app: ASGIApp,
        router: SignalingRouter,
        max_body_size: int = MAX_BODY_SIZE,
    ) -> None:
        self.app = app
        self.router = router
        self._max_body_size = max_body_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        if not self.router.owns(request.url.path):
            await self.app(scope, receive, send)
            return

        http_request = to_http_request(request)

        if http_request.method != PREFLIGHT_METHOD and http_request.json_body is None:
            try:
                http_request.body = await read_request_body(request, self._max_body_size)
            except ClientDisconnect:
                logger.debug("Client disconnected before body completed: %s", http_request.path)
                return
            except (BodyTooLarge, UnicodeDecodeError) as e:
                logger.debug("Body read failed for %s: %s", http_request.path, e)
                response = HttpResponse()
                apply_cors(http_request, response, self.router.cors)
                await self._send(scope, receive, send, response.end(400))
                return

        response = await self.router.handle(http_request)
        await self._send(scope, receive, send, response)

    async def _send(self, scope: Scope, receive: Receive, send: Send, response: HttpResponse) -> None:
        try:
            await to_starlette_response(response)(scope, receive, send)
        except (OSError, ClientDisconnect) as e:
            logger.debug("Client gone, dropping %d response: %s", response.status, e)
