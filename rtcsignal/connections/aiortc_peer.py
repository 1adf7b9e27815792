"""PeerResource implementation backed by aiortc.

Install with ``pip install rtcsignal[aiortc]``. The server side creates the
offer (with one data channel) and the browser answers through the
remote-description route.

aiortc gathers every local candidate before ``setLocalDescription``
returns, so the candidates are already inside the offer SDP and the
additional-candidates buffer normally stays empty.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from aiortc import RTCConfiguration, RTCIceServer, RTCPeerConnection, RTCSessionDescription
from aiortc.exceptions import InvalidStateError

from rtcsignal.config.schema import IceServerConfig
from rtcsignal.connections.peer import (
    PeerEvents,
    PeerFactory,
    RemoteDescriptionError,
    SessionDescription,
)

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL_LABEL = "rtcsignal"


def _make_rtc_config(ice_servers: Sequence[IceServerConfig]) -> RTCConfiguration:
    return RTCConfiguration(
        iceServers=[
            RTCIceServer(urls=s.urls, username=s.username, credential=s.credential)
            for s in ice_servers
        ]
    )


class AiortcPeer:
    """One RTCPeerConnection with a single data channel."""

    def __init__(
        self,
        connection_id: str,
        events: PeerEvents,
        ice_servers: Sequence[IceServerConfig] = (),
        channel_label: str = DEFAULT_CHANNEL_LABEL,
    ) -> None:
        self.connection_id = connection_id
        self._events = events
        self._pc = RTCPeerConnection(configuration=_make_rtc_config(ice_servers))
        self.channel = self._pc.createDataChannel(channel_label)

        @self._pc.on("connectionstatechange")
        async def on_connection_state_change() -> None:
            state = self._pc.connectionState
            logger.debug("Peer %s connection state: %s", connection_id, state)
            if state in ("failed", "closed"):
                self._events.disconnected()

    async def create_local_description(self) -> SessionDescription:
        offer = await self._pc.createOffer()
        await self._pc.setLocalDescription(offer)
        local = self._pc.localDescription
        return SessionDescription(sdp=local.sdp, type=local.type)

    async def set_remote_description(self, sdp: str, type: str) -> None:
        try:
            await self._pc.setRemoteDescription(RTCSessionDescription(sdp=sdp, type=type))
        except (ValueError, InvalidStateError) as e:
            raise RemoteDescriptionError(f"Remote description rejected: {e}") from e

    async def close(self) -> None:
        await self._pc.close()


def aiortc_peer_factory(ice_servers: Sequence[IceServerConfig] = ()) -> PeerFactory:
    """Build a PeerFactory producing AiortcPeer instances."""
    servers = tuple(ice_servers)

    def factory(connection_id: str, events: PeerEvents) -> AiortcPeer:
        return AiortcPeer(connection_id, events, ice_servers=servers)

    return factory
