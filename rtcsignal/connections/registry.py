"""Session registry for rtcsignal.

The ConnectionRegistry owns the mapping from connection ID to Session. It
is the only mutable structure shared across requests.

Concurrency:
    An asyncio.Lock guards ID allocation, insertion and removal. It is never
    held across the authorizer call, peer construction or peer close, so a
    slow authorization or a slow teardown on one ID never blocks work on
    another.

Example:
    registry = ConnectionRegistry(peer_factory=make_peer, authorizer=authorize)

    result = await registry.create_connection("Bearer rsk_...", request)
    if result.status == 200:
        session = result.session

    session = registry.get_connection(connection_id)
    await registry.close_connection(connection_id)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from rtcsignal.connections.auth import Authorizer, normalize_status, run_authorizer
from rtcsignal.connections.peer import PeerEvents, PeerFactory, PeerResource
from rtcsignal.connections.session import CandidateBuffer, Session
from rtcsignal.core.identifiers import generate_connection_id
from rtcsignal.core.utils import maybe_await

if TYPE_CHECKING:
    from rtcsignal.server.http import HttpRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreateResult:
    """Outcome of ConnectionRegistry.create_connection.

    Attributes:
        status: 200 on success, otherwise a valid HTTP error status.
        session: The new session when status is 200.
        user_data: The authorizer's user data when status is 200.
    """

    status: int
    session: Session | None = None
    user_data: Any = None


class ConnectionRegistry:
    """Creates, looks up and closes signaling sessions.

    Attributes:
        _sessions: Live sessions keyed by connection ID.
        _pending: IDs allocated to creations still in progress.
        _lock: Asyncio lock for map mutation.
    """

    def __init__(
        self,
        peer_factory: PeerFactory,
        authorizer: Authorizer | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            peer_factory: Builds the peer resource for a new connection ID.
            authorizer: Checks the Authorization header on creation.
                None allows every request.
        """
        self._peer_factory = peer_factory
        self._authorizer = authorizer
        self._sessions: dict[str, Session] = {}
        self._pending: set[str] = set()
        self._disconnected_early: set[str] = set()
        self._lock = asyncio.Lock()
        self._background: set[asyncio.Task[Any]] = set()

    async def create_connection(
        self,
        authorization: str | None,
        request: HttpRequest,
    ) -> CreateResult:
        """Authorize the caller and create a new session.

        Args:
            authorization: Raw Authorization header value (may be None).
            request: The HTTP request, passed through to the authorizer.

        Returns:
            CreateResult with status 200 and the session, the authorizer's
            status (or 500 if it is not a valid HTTP status), or 500 if
            anything failed while building the session.
        """
        try:
            auth = await run_authorizer(self._authorizer, authorization, request)
        except Exception as e:
            logger.error("Authorizer raised: %s", e, exc_info=True)
            return CreateResult(status=500)

        if not auth.ok:
            status = normalize_status(auth.status)
            logger.debug("Connection request rejected by authorizer: %s", status)
            return CreateResult(status=status)

        async with self._lock:
            connection_id = generate_connection_id(self._sessions.keys() | self._pending)
            self._pending.add(connection_id)

        loop = asyncio.get_running_loop()
        candidates = CandidateBuffer()
        events = PeerEvents(
            add_candidate=candidates.add,
            disconnected=lambda: loop.call_soon_threadsafe(self._schedule_close, connection_id),
        )

        peer: PeerResource | None = None
        try:
            peer = await maybe_await(self._peer_factory(connection_id, events))
            local_description = await maybe_await(peer.create_local_description())
            if local_description is None or not local_description.sdp:
                raise ValueError("peer produced an empty local description")
            session = Session(
                id=connection_id,
                local_description=local_description,
                peer=peer,
                user_data=auth.user_data,
                candidates=candidates,
            )
        except Exception as e:
            logger.error("Failed to create connection %s: %s", connection_id, e, exc_info=True)
            async with self._lock:
                self._pending.discard(connection_id)
                self._disconnected_early.discard(connection_id)
            if peer is not None:
                try:
                    await maybe_await(peer.close())
                except Exception as close_err:
                    logger.debug("Closing half-built peer failed: %s", close_err)
            return CreateResult(status=500)

        async with self._lock:
            self._pending.discard(connection_id)
            self._sessions[connection_id] = session
            disconnected = connection_id in self._disconnected_early
            self._disconnected_early.discard(connection_id)

        logger.info("Connection created: %s", connection_id)

        if disconnected:
            # Transport dropped before the session was registered
            await self.close_connection(connection_id)
            return CreateResult(status=500)

        return CreateResult(status=200, session=session, user_data=auth.user_data)

    def get_connection(self, connection_id: str) -> Session | None:
        """Get a live session by ID, or None. Never creates."""
        return self._sessions.get(connection_id)

    async def close_connection(self, connection_id: str) -> bool:
        """Remove a session and close its peer.

        Idempotent: closing an unknown or already-closed ID is a no-op.

        Returns:
            True if a session was found and closed, False otherwise.
        """
        async with self._lock:
            session = self._sessions.pop(connection_id, None)

        if session is None:
            return False

        await session.close()
        logger.info("Connection closed: %s", connection_id)
        return True

    async def close_all(self) -> int:
        """Close every live session (server shutdown).

        Returns:
            Number of sessions closed.
        """
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()

        await asyncio.gather(*(s.close() for s in sessions))
        if sessions:
            logger.info("Closed %d connection(s) on shutdown", len(sessions))
        return len(sessions)

    def list(self) -> list[dict[str, Any]]:
        """Summaries of live sessions."""
        return [
            {
                "id": session.id,
                "created_at": session.created_at.isoformat(),
                "pending_candidates": len(session.candidates),
            }
            for session in self._sessions.values()
        ]

    def _schedule_close(self, connection_id: str) -> None:
        """Handle a peer disconnect notification on the event loop."""
        if connection_id in self._pending:
            self._disconnected_early.add(connection_id)
            return
        if connection_id not in self._sessions:
            return
        logger.debug("Peer reported disconnect: %s", connection_id)
        task = asyncio.ensure_future(self.close_connection(connection_id))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._sessions
