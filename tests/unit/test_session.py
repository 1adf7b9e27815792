"""Tests for the candidate buffer and Session entity."""

import asyncio
import threading
from unittest.mock import AsyncMock, MagicMock

import pytest

from rtcsignal.connections.peer import IceCandidate, SessionDescription
from rtcsignal.connections.session import CandidateBuffer, Session


def _candidate(n: int) -> IceCandidate:
    return IceCandidate(candidate=f"candidate:{n} 1 udp 2122260223 10.0.0.{n} 5000 typ host", sdp_mid="0", sdp_mline_index=0)


def _session(peer: object | None = None) -> Session:
    return Session(
        id="aB3dE5gH7jK9mN1pQ3sT5vW7",
        local_description=SessionDescription(sdp="v=0", type="offer"),
        peer=peer or MagicMock(),
    )


class TestCandidateBuffer:
    """Tests for CandidateBuffer."""

    def test_drain_returns_in_order_and_clears(self) -> None:
        buffer = CandidateBuffer()
        buffer.add(_candidate(1))
        buffer.add(_candidate(2))

        assert buffer.drain() == [_candidate(1), _candidate(2)]
        assert buffer.drain() == []
        assert len(buffer) == 0

    def test_sealed_buffer_drops_candidates(self) -> None:
        buffer = CandidateBuffer()
        buffer.add(_candidate(1))
        buffer.seal()
        buffer.add(_candidate(2))

        assert buffer.drain() == []

    def test_adds_from_threads_are_not_lost(self) -> None:
        """Candidates reported from engine threads all end up in some drain."""
        buffer = CandidateBuffer()
        drained: list[IceCandidate] = []

        def produce(base: int) -> None:
            for i in range(200):
                buffer.add(_candidate(base + i))

        threads = [threading.Thread(target=produce, args=(n * 1000,)) for n in range(4)]
        for t in threads:
            t.start()
        while any(t.is_alive() for t in threads):
            drained.extend(buffer.drain())
        for t in threads:
            t.join()
        drained.extend(buffer.drain())

        assert len(drained) == 800
        assert len(set(drained)) == 800


class TestIceCandidate:
    """Tests for IceCandidate serialization."""

    def test_to_dict_uses_browser_field_names(self) -> None:
        assert _candidate(1).to_dict() == {
            "candidate": "candidate:1 1 udp 2122260223 10.0.0.1 5000 typ host",
            "sdpMid": "0",
            "sdpMLineIndex": 0,
        }


class TestSession:
    """Tests for Session."""

    @pytest.mark.asyncio
    async def test_set_remote_description_forwards_to_peer(self) -> None:
        peer = MagicMock()
        peer.set_remote_description = AsyncMock()
        session = _session(peer)

        await session.set_remote_description("v=0 answer", "answer")

        peer.set_remote_description.assert_awaited_once_with("v=0 answer", "answer")

    @pytest.mark.asyncio
    async def test_sync_peer_methods_are_supported(self) -> None:
        peer = MagicMock()
        peer.set_remote_description.return_value = None
        peer.close.return_value = None
        session = _session(peer)

        await session.set_remote_description("v=0", "answer")
        await session.close()

        peer.set_remote_description.assert_called_once_with("v=0", "answer")
        peer.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self) -> None:
        peer = MagicMock()
        peer.close = AsyncMock()
        session = _session(peer)

        await session.close()
        await session.close()

        peer.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_swallows_peer_error(self) -> None:
        peer = MagicMock()
        peer.close = AsyncMock(side_effect=RuntimeError("engine exploded"))
        session = _session(peer)

        await session.close()

        with pytest.raises(RuntimeError, match="closed"):
            await session.set_remote_description("v=0", "answer")

    @pytest.mark.asyncio
    async def test_set_after_close_raises(self) -> None:
        peer = MagicMock()
        peer.close = AsyncMock()
        peer.set_remote_description = AsyncMock()
        session = _session(peer)
        await session.close()

        with pytest.raises(RuntimeError, match="closed"):
            await session.set_remote_description("v=0", "answer")
        peer.set_remote_description.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_close_waits_for_in_flight_negotiation(self) -> None:
        """Close never runs while a remote description is being applied."""
        order: list[str] = []
        release = asyncio.Event()

        async def slow_set(sdp: str, type: str) -> None:
            order.append("set-start")
            await release.wait()
            order.append("set-end")

        async def close() -> None:
            order.append("close")

        peer = MagicMock()
        peer.set_remote_description = slow_set
        peer.close = close
        session = _session(peer)

        set_task = asyncio.create_task(session.set_remote_description("v=0", "answer"))
        await asyncio.sleep(0)
        close_task = asyncio.create_task(session.close())
        await asyncio.sleep(0)
        release.set()
        await asyncio.gather(set_task, close_task)

        assert order == ["set-start", "set-end", "close"]

    def test_drain_candidates(self) -> None:
        session = _session()
        session.candidates.add(_candidate(1))

        assert session.drain_candidates() == [_candidate(1)]
        assert session.drain_candidates() == []
