"""Tests for SignalingClient against an in-process ASGI app."""

from typing import Any

import httpx
import pytest

from rtcsignal.client import ClientError, SignalingClient
from rtcsignal.connections.auth import BearerTokenAuthorizer
from rtcsignal.connections.peer import IceCandidate
from rtcsignal.connections.registry import ConnectionRegistry
from rtcsignal.server.middleware import SignalingMiddleware
from rtcsignal.server.router import SignalingRouter


async def not_found_app(scope: dict[str, Any], receive: Any, send: Any) -> None:
    await send({"type": "http.response.start", "status": 404, "headers": []})
    await send({"type": "http.response.body", "body": b""})


def _transport(router: SignalingRouter) -> httpx.ASGITransport:
    return httpx.ASGITransport(app=SignalingMiddleware(not_found_app, router=router))


class TestSignalingClient:
    """Tests for the client protocol round trip."""

    @pytest.mark.asyncio
    async def test_full_exchange(self, router: SignalingRouter, peer_factory: Any) -> None:
        async with SignalingClient("http://test", transport=_transport(router)) as client:
            created = await client.create_connection()
            peer = peer_factory.peers[created.id]

            await client.set_remote_description(created.id, "v=0 answer", "answer")
            peer.events.add_candidate(IceCandidate(candidate="candidate:1", sdp_mid="0", sdp_mline_index=0))
            candidates = await client.poll_candidates(created.id)
            await client.close(created.id)

        assert created.local_description.type == "offer"
        assert peer.remote_descriptions == [("v=0 answer", "answer")]
        assert candidates == [IceCandidate(candidate="candidate:1", sdp_mid="0", sdp_mline_index=0)]
        assert peer.close_calls == 1

    @pytest.mark.asyncio
    async def test_api_key_sent_on_create(self, peer_factory: Any) -> None:
        registry = ConnectionRegistry(
            peer_factory=peer_factory,
            authorizer=BearerTokenAuthorizer("rsk_secret"),
        )
        router = SignalingRouter(registry)

        async with SignalingClient(
            "http://test", api_key="rsk_secret", transport=_transport(router)
        ) as client:
            created = await client.create_connection()

        assert created.user_data == {"authenticated": True}

    @pytest.mark.asyncio
    async def test_rejected_create_raises_with_status(self, peer_factory: Any) -> None:
        registry = ConnectionRegistry(
            peer_factory=peer_factory,
            authorizer=BearerTokenAuthorizer("rsk_secret"),
        )
        router = SignalingRouter(registry)

        async with SignalingClient("http://test", transport=_transport(router)) as client:
            with pytest.raises(ClientError) as exc_info:
                await client.create_connection()

        assert exc_info.value.status == 401

    @pytest.mark.asyncio
    async def test_unknown_session_is_404(self, router: SignalingRouter) -> None:
        async with SignalingClient("http://test", transport=_transport(router)) as client:
            with pytest.raises(ClientError) as exc_info:
                await client.poll_candidates("Zz9Yy8Xx7Ww6Vv5Uu4Tt3Ss2")

        assert exc_info.value.status == 404

    @pytest.mark.asyncio
    async def test_use_without_context_manager(self) -> None:
        client = SignalingClient()
        with pytest.raises(ClientError, match="not initialized"):
            await client.create_connection()

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with SignalingClient("http://test", transport=httpx.MockTransport(refuse)) as client:
            with pytest.raises(ClientError, match="Connection error"):
                await client.create_connection()

    @pytest.mark.asyncio
    async def test_malformed_create_response(self) -> None:
        def reply(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"id": "x"})

        async with SignalingClient("http://test", transport=httpx.MockTransport(reply)) as client:
            with pytest.raises(ClientError, match="Invalid create response"):
                await client.create_connection()

    @pytest.mark.asyncio
    async def test_paths_use_prefix(self) -> None:
        seen: list[tuple[str, str]] = []

        def reply(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path))
            return httpx.Response(200, json=[])

        async with SignalingClient(
            "http://test/", prefix="/rtc/", transport=httpx.MockTransport(reply)
        ) as client:
            await client.poll_candidates("abc")
            await client.close("abc")

        assert seen == [
            ("GET", "/rtc/connections/abc/additional-candidates"),
            ("POST", "/rtc/connections/abc/close"),
        ]
