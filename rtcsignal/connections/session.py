"""A single signaling session and the peer it owns."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from rtcsignal.connections.peer import IceCandidate, PeerResource, SessionDescription
from rtcsignal.core.utils import maybe_await

logger = logging.getLogger(__name__)


class CandidateBuffer:
    """Ordered, append-only candidate buffer drained by polling.

    Peer engines may report candidates from their own threads, so every
    access goes through a threading lock. Once sealed, new candidates are
    dropped.
    """

    def __init__(self) -> None:
        self._items: list[IceCandidate] = []
        self._lock = threading.Lock()
        self._sealed = False

    def add(self, candidate: IceCandidate) -> None:
        with self._lock:
            if self._sealed:
                return
            self._items.append(candidate)

    def drain(self) -> list[IceCandidate]:
        """Return everything buffered and reset to empty in one step."""
        with self._lock:
            drained = self._items
            self._items = []
        return drained

    def seal(self) -> None:
        with self._lock:
            self._sealed = True
            self._items = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


@dataclass
class Session:
    """One negotiated transport attempt between two endpoints.

    Negotiation calls (remote description, close) are serialized by an
    asyncio lock so a description is never applied to a closing peer.

    Attributes:
        id: 24-character connection ID.
        local_description: Description generated when the session was created.
        peer: The owned transport resource.
        user_data: Value returned by the authorizer, echoed on creation.
        candidates: Buffer of candidates discovered after creation.
        created_at: Timestamp when the session was created.
    """

    id: str
    local_description: SessionDescription
    peer: PeerResource
    user_data: Any = None
    candidates: CandidateBuffer = field(default_factory=CandidateBuffer)
    created_at: datetime = field(default_factory=datetime.now)
    _negotiation_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    _closed: bool = field(default=False, repr=False)

    def drain_candidates(self) -> list[IceCandidate]:
        """Read and clear the candidate buffer atomically."""
        return self.candidates.drain()

    async def set_remote_description(self, sdp: str, type: str) -> None:
        """Apply the counterpart's description to the peer.

        Raises:
            RuntimeError: If the session is already closed.
            Exception: Whatever the peer raises for a malformed or
                incompatible description.
        """
        async with self._negotiation_lock:
            if self._closed:
                raise RuntimeError(f"Session {self.id} is closed")
            await maybe_await(self.peer.set_remote_description(sdp, type))

    async def close(self) -> None:
        """Close the peer exactly once. Errors from the peer are logged."""
        async with self._negotiation_lock:
            if self._closed:
                return
            self._closed = True
            self.candidates.seal()
            try:
                await maybe_await(self.peer.close())
            except Exception as e:
                logger.warning("Peer close failed for session %s: %s", self.id, e)
