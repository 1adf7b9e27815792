"""Shared pytest fixtures: fake peer engine, registry and router."""

from __future__ import annotations

import pytest

from rtcsignal.config.schema import CorsConfig
from rtcsignal.connections.peer import PeerEvents, RemoteDescriptionError, SessionDescription
from rtcsignal.connections.registry import ConnectionRegistry
from rtcsignal.server.router import SignalingRouter

REJECTED_SDP = "bad"


class FakePeer:
    """In-memory PeerResource that records every call."""

    def __init__(self, connection_id: str, events: PeerEvents) -> None:
        self.connection_id = connection_id
        self.events = events
        self.remote_descriptions: list[tuple[str, str]] = []
        self.close_calls = 0

    async def create_local_description(self) -> SessionDescription:
        return SessionDescription(sdp=f"v=0\r\no=- {self.connection_id} 2 IN IP4 127.0.0.1\r\n", type="offer")

    async def set_remote_description(self, sdp: str, type: str) -> None:
        if sdp == REJECTED_SDP:
            raise RemoteDescriptionError("unparseable sdp")
        self.remote_descriptions.append((sdp, type))

    async def close(self) -> None:
        self.close_calls += 1


class FakePeerFactory:
    """PeerFactory that keeps every peer it built, keyed by connection ID."""

    def __init__(self) -> None:
        self.peers: dict[str, FakePeer] = {}

    def __call__(self, connection_id: str, events: PeerEvents) -> FakePeer:
        peer = FakePeer(connection_id, events)
        self.peers[connection_id] = peer
        return peer


@pytest.fixture
def peer_factory() -> FakePeerFactory:
    return FakePeerFactory()


@pytest.fixture
def registry(peer_factory: FakePeerFactory) -> ConnectionRegistry:
    return ConnectionRegistry(peer_factory=peer_factory)


@pytest.fixture
def router(registry: ConnectionRegistry) -> SignalingRouter:
    return SignalingRouter(registry, prefix="/.wrtc/v2", cors=CorsConfig())
