"""Interception adapter: share one raw asyncio listener with a host application.

The adapter is the ``client_connected_cb`` of ``asyncio.start_server``. It
reads the request line, decides who owns the request, then reads the
headers (with the signaling size limits only when the request is owned):

    - path under the signaling prefix -> read body, route through the
      SignalingRouter, write the response, close the connection
    - any other path -> call every fallback handler in order with the
      request head and the untouched stream (the body is still unread)

Fallback handlers are given explicitly at construction time, in the order
they should run:

    async def app_handler(request: HttpRequest, reader, writer) -> None:
        ...

    adapter = InterceptionAdapter(router, fallbacks=[app_handler])
    server = await asyncio.start_server(adapter, "0.0.0.0", 9208)

The signaling router never writes to a request it does not own. With no
fallbacks at all, unowned requests get a bare 404.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from rtcsignal.server.cors import apply_cors
from rtcsignal.server.http import (
    MAX_BODY_SIZE,
    HttpParseError,
    HttpRequest,
    HttpResponse,
    close_writer,
    read_http_body,
    read_http_headers,
    read_request_line,
    send_http_response,
)
from rtcsignal.server.router import PREFLIGHT_METHOD, SignalingRouter

logger = logging.getLogger(__name__)

FallbackHandler = Callable[
    [HttpRequest, asyncio.StreamReader, asyncio.StreamWriter], Awaitable[None]
]


class InterceptionAdapter:
    """Routes signaling paths to the router and everything else to fallbacks."""

    def __init__(
        self,
        router: SignalingRouter,
        fallbacks: Sequence[FallbackHandler] = (),
        max_body_size: int = MAX_BODY_SIZE,
        max_concurrent: int = 64,
    ) -> None:
        """Initialize the adapter.

        Args:
            router: The signaling router for claimed requests.
            fallbacks: Host handlers for all other requests, run in order.
            max_body_size: Largest accepted signaling request body in bytes.
            max_concurrent: Maximum signaling requests processed at once.
        """
        self.router = router
        self.fallbacks: tuple[FallbackHandler, ...] = tuple(fallbacks)
        self._max_body_size = max_body_size
        self._semaphore = asyncio.Semaphore(max_concurrent)

    async def __call__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        owned = False
        try:
            try:
                method, target = await read_request_line(reader)
            except HttpParseError as e:
                logger.debug("Unparseable request: %s", e.message)
                await send_http_response(writer, HttpResponse(status=400))
                return

            request = HttpRequest.from_target(method, target)
            owned = self.router.owns(request.path)

            try:
                request.headers = await read_http_headers(reader, strict=owned)
            except HttpParseError as e:
                # The stream is no longer positioned at a body, so it cannot be forwarded
                logger.debug("Unreadable request head for %s: %s", request.path, e.message)
                response = HttpResponse()
                if owned:
                    apply_cors(request, response, self.router.cors)
                await send_http_response(writer, response.end(400))
                return

            if not owned:
                await self._forward(request, reader, writer)
                return

            async with self._semaphore:
                response = await self._handle_owned(request, reader)
            await send_http_response(writer, response)

        except (ConnectionResetError, BrokenPipeError) as e:
            logger.debug("Client disconnected mid-request: %s", e)
        except Exception as e:
            logger.error("Unexpected error handling connection: %s", e, exc_info=True)
            if owned:
                await send_http_response(writer, HttpResponse(status=500))
        finally:
            await close_writer(writer)

    async def _handle_owned(
        self,
        request: HttpRequest,
        reader: asyncio.StreamReader,
    ) -> HttpResponse:
        if request.method != PREFLIGHT_METHOD:
            try:
                request.body = await read_http_body(reader, request.headers, self._max_body_size)
            except HttpParseError as e:
                logger.debug("Body read failed for %s: %s", request.path, e.message)
                response = HttpResponse()
                apply_cors(request, response, self.router.cors)
                return response.end(400)

        return await self.router.handle(request)

    async def _forward(
        self,
        request: HttpRequest,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        if not self.fallbacks:
            await send_http_response(writer, HttpResponse(status=404))
            return

        for handler in self.fallbacks:
            await handler(request, reader, writer)


async def run_signaling_server(
    router: SignalingRouter,
    host: str = "127.0.0.1",
    port: int = 9208,
    fallbacks: Sequence[FallbackHandler] = (),
    max_body_size: int = MAX_BODY_SIZE,
    max_concurrent: int = 64,
    started_event: asyncio.Event | None = None,
    stop_event: asyncio.Event | None = None,
    on_started: Callable[[str, int], None] | None = None,
) -> None:
    """Run a standalone signaling server until cancelled or stop_event is set.

    Live sessions are closed on shutdown.

    Args:
        router: The signaling router.
        host: Host to bind to.
        port: Port to listen on (0 picks a free port).
        fallbacks: Host handlers for non-signaling paths.
        max_body_size: Largest accepted request body in bytes.
        max_concurrent: Maximum signaling requests processed at once.
        started_event: Set once the listener is bound.
        stop_event: Set by the caller to request shutdown.
        on_started: Called with the bound host and port once listening.
    """
    adapter = InterceptionAdapter(
        router,
        fallbacks=fallbacks,
        max_body_size=max_body_size,
        max_concurrent=max_concurrent,
    )
    server = await asyncio.start_server(adapter, host=host, port=port)

    addr = server.sockets[0].getsockname() if server.sockets else (host, port)
    logger.info("Signaling server running at http://%s:%s%s", addr[0], addr[1], router.prefix)

    if on_started:
        on_started(addr[0], addr[1])
    if started_event:
        started_event.set()

    try:
        async with server:
            if stop_event is None:
                await server.serve_forever()
            else:
                await stop_event.wait()
    finally:
        server.close()
        await server.wait_closed()
        await router.registry.close_all()
        logger.info("Signaling server stopped")
