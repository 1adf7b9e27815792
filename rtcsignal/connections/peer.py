"""Capability interface for the external peer-transport engine.

The signaling layer never talks to a concrete transport. It depends on the
small ``PeerResource`` protocol below and receives instances from a
``PeerFactory``. The factory is handed a ``PeerEvents`` sink through which
the engine reports asynchronously discovered candidates and disconnects.

Any method of a peer may be a plain function or a coroutine function.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

from rtcsignal.core.errors import SignalError


class RemoteDescriptionError(SignalError):
    """Raised by a peer when it rejects a remote session description."""


@dataclass(frozen=True)
class SessionDescription:
    """An SDP blob and its role in the offer/answer exchange."""

    sdp: str
    type: str

    def to_dict(self) -> dict[str, str]:
        return {"sdp": self.sdp, "type": self.type}


@dataclass(frozen=True)
class IceCandidate:
    """A reachability candidate discovered after the initial description.

    Serialized in the browser's RTCIceCandidateInit shape.
    """

    candidate: str
    sdp_mid: str | None = None
    sdp_mline_index: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "candidate": self.candidate,
            "sdpMid": self.sdp_mid,
            "sdpMLineIndex": self.sdp_mline_index,
        }


@dataclass(frozen=True)
class PeerEvents:
    """Out-of-band channel from a peer back to its session.

    Attributes:
        add_candidate: Append a candidate to the session's buffer.
        disconnected: Report that the transport is gone; the session is
            closed and removed from its registry.
    """

    add_candidate: Callable[[IceCandidate], None]
    disconnected: Callable[[], None]


class PeerResource(Protocol):
    """The operations the signaling layer needs from a transport engine."""

    def create_local_description(self) -> SessionDescription | Awaitable[SessionDescription]: ...

    def set_remote_description(self, sdp: str, type: str) -> None | Awaitable[None]: ...

    def close(self) -> None | Awaitable[None]: ...


PeerFactory = Callable[[str, PeerEvents], "PeerResource | Awaitable[PeerResource]"]
"""Builds the peer for a new connection ID."""
