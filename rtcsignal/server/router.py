"""Signaling router: turns a claimed HTTP request into an HTTP response.

The router is transport-agnostic. Adapters hand it an ``HttpRequest`` whose
path is already known to lie under the prefix, and write back the
``HttpResponse`` it returns.

Pipeline per request:
    1. Apply CORS headers (always, even for 404s)
    2. OPTIONS -> 200, empty
    3. Match method + path against the route table (no match -> 404)
    4. Dispatch:
        - create                 -> 200 {userData, id, localDescription} | auth status | 500
        - remote-description     -> 200 | 400 bad id/body/sdp | 404 unknown id
        - additional-candidates  -> 200 [candidates...] | 400 bad id | 404 unknown id
        - close                  -> 200 | 400 bad id
    5. Anything unexpected -> 500
"""

from __future__ import annotations

import json
import logging
from typing import Any

from rtcsignal.config.schema import CorsConfig
from rtcsignal.connections.auth import normalize_status
from rtcsignal.connections.registry import ConnectionRegistry
from rtcsignal.connections.session import Session
from rtcsignal.core.constants import DEFAULT_PREFIX
from rtcsignal.core.validation import InvalidConnectionIdError
from rtcsignal.server.body import BodyParseError, parse_remote_description
from rtcsignal.server.cors import apply_cors
from rtcsignal.server.http import HttpRequest, HttpResponse
from rtcsignal.server.routes import Operation, RouteMatch, RouteTable

logger = logging.getLogger(__name__)

PREFLIGHT_METHOD = "OPTIONS"


def _candidate_payload(candidate: Any) -> Any:
    to_dict = getattr(candidate, "to_dict", None)
    return to_dict() if callable(to_dict) else candidate


class SignalingRouter:
    """Dispatches signaling requests to the connection registry.

    Attributes:
        registry: The shared ConnectionRegistry.
        routes: Precompiled route table for the prefix.
        cors: CORS policy applied to every response.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        prefix: str = DEFAULT_PREFIX,
        cors: CorsConfig | None = None,
    ) -> None:
        self.registry = registry
        self.routes = RouteTable(prefix)
        self.cors = cors or CorsConfig()

    @property
    def prefix(self) -> str:
        return self.routes.prefix

    def owns(self, path: str) -> bool:
        """Whether a request path belongs to the signaling layer."""
        return self.routes.owns(path)

    async def handle(self, request: HttpRequest) -> HttpResponse:
        """Handle a claimed request and return the response to send."""
        response = HttpResponse()
        apply_cors(request, response, self.cors)

        if request.method == PREFLIGHT_METHOD:
            return response.end(200)

        response.set_header("Content-Type", "application/json")

        match = self.routes.match(request.method, request.path)
        if match is None:
            logger.debug("No signaling route for %s %s", request.method, request.path)
            return response.end(404)

        try:
            return await self._dispatch(match, request, response)
        except Exception as e:
            logger.error(
                "Unexpected error handling %s %s: %s",
                request.method, request.path, e, exc_info=True,
            )
            return response.end(500)

    async def _dispatch(
        self,
        match: RouteMatch,
        request: HttpRequest,
        response: HttpResponse,
    ) -> HttpResponse:
        if match.operation is Operation.CREATE:
            return await self._create(request, response)

        try:
            connection_id = match.connection_id()
        except InvalidConnectionIdError as e:
            logger.debug("Rejected %s: %s", match.operation.value, e.message)
            return response.end(400)

        if match.operation is Operation.CLOSE:
            await self.registry.close_connection(connection_id)
            return response.end(200)

        session = self.registry.get_connection(connection_id)
        if session is None:
            return response.end(404)

        if match.operation is Operation.REMOTE_DESCRIPTION:
            return await self._remote_description(session, request, response)
        return self._additional_candidates(session, response)

    async def _create(self, request: HttpRequest, response: HttpResponse) -> HttpResponse:
        result = await self.registry.create_connection(
            request.headers.get("authorization"),
            request,
        )

        if result.status != 200:
            return response.end(normalize_status(result.status))

        session = result.session
        if session is None or not session.id or not session.local_description.sdp:
            return response.end(500)

        try:
            payload = json.dumps({
                "userData": result.user_data,
                "id": session.id,
                "localDescription": session.local_description.to_dict(),
            })
        except (TypeError, ValueError) as e:
            logger.error("User data for %s is not JSON serializable: %s", session.id, e)
            await self.registry.close_connection(session.id)
            return response.end(500)

        response.status = 200
        response.body = payload
        return response

    async def _remote_description(
        self,
        session: Session,
        request: HttpRequest,
        response: HttpResponse,
    ) -> HttpResponse:
        try:
            description = parse_remote_description(request)
        except BodyParseError as e:
            logger.debug("Bad remote description body for %s: %s", session.id, e.message)
            return response.end(400)

        try:
            await session.set_remote_description(description.sdp, description.type)
        except Exception as e:
            logger.debug("Peer rejected remote description for %s: %s", session.id, e)
            return response.end(400)

        return response.end(200)

    def _additional_candidates(self, session: Session, response: HttpResponse) -> HttpResponse:
        drained = session.drain_candidates()
        return response.json([_candidate_payload(c) for c in drained])
