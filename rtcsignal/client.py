"""Async HTTP client for the signaling protocol."""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from rtcsignal.connections.peer import IceCandidate, SessionDescription
from rtcsignal.core.constants import DEFAULT_PREFIX
from rtcsignal.core.errors import SignalError

logger = logging.getLogger(__name__)


class ClientError(SignalError):
    """Exception for client-side errors (connection, timeout, HTTP status)."""

    def __init__(self, message: str, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)


@dataclass(frozen=True)
class CreatedConnection:
    """Server reply to a create request."""

    id: str
    local_description: SessionDescription
    user_data: Any = None


class SignalingClient:
    """Async client for a signaling server.

    Usage:
        async with SignalingClient("http://127.0.0.1:9208", api_key="rsk_...") as client:
            created = await client.create_connection()
            await client.set_remote_description(created.id, answer_sdp, "answer")
            candidates = await client.poll_candidates(created.id)
            await client.close(created.id)
    """

    def __init__(
        self,
        url: str = "http://127.0.0.1:9208",
        prefix: str = DEFAULT_PREFIX,
        timeout: float = 30.0,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            url: Base URL of the server (scheme, host, port).
            prefix: Signaling route prefix on that server.
            timeout: Request timeout in seconds.
            api_key: Optional API key, sent as Authorization: Bearer <key>
                on connection creation.
            transport: Optional httpx transport (e.g. httpx.ASGITransport).
        """
        self._url = url.rstrip("/")
        self._prefix = prefix.rstrip("/")
        self._timeout = timeout
        self._api_key = api_key
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        logger.debug("SignalingClient initialized: url=%s, prefix=%s", self._url, self._prefix)

    async def __aenter__(self) -> "SignalingClient":
        """Enter async context, create httpx client."""
        self._client = httpx.AsyncClient(
            base_url=self._url,
            timeout=self._timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context, close httpx client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _path(self, *segments: str) -> str:
        return "/".join([self._prefix, "connections", *segments])

    async def _request(
        self,
        method: str,
        path: str,
        json_body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        if self._client is None:
            raise ClientError("Client not initialized. Use 'async with SignalingClient() as client:'")

        try:
            response = await self._client.request(method, path, json=json_body, headers=headers)
        except httpx.TimeoutException as e:
            raise ClientError(f"Request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise ClientError(f"Connection error: {e}") from e

        if response.status_code != 200:
            raise ClientError(
                f"{method} {path} failed with HTTP {response.status_code}",
                status=response.status_code,
            )
        return response

    async def create_connection(self) -> CreatedConnection:
        """Create a session and return its ID and the server's offer."""
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else None
        response = await self._request("POST", self._path(), headers=headers)
        try:
            data = response.json()
            description = data["localDescription"]
            return CreatedConnection(
                id=data["id"],
                local_description=SessionDescription(sdp=description["sdp"], type=description["type"]),
                user_data=data.get("userData"),
            )
        except (ValueError, KeyError, TypeError) as e:
            raise ClientError(f"Invalid create response: {e}") from e

    async def set_remote_description(self, connection_id: str, sdp: str, type: str) -> None:
        """Send the local answer (or offer) to the server."""
        await self._request(
            "POST",
            self._path(connection_id, "remote-description"),
            json_body={"sdp": sdp, "type": type},
        )

    async def poll_candidates(self, connection_id: str) -> list[IceCandidate]:
        """Fetch and clear the server's buffered candidates."""
        response = await self._request("GET", self._path(connection_id, "additional-candidates"))
        try:
            return [
                IceCandidate(
                    candidate=item["candidate"],
                    sdp_mid=item.get("sdpMid"),
                    sdp_mline_index=item.get("sdpMLineIndex"),
                )
                for item in response.json()
            ]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise ClientError(f"Invalid candidates response: {e}") from e

    async def close(self, connection_id: str) -> None:
        """Ask the server to tear the session down."""
        await self._request("POST", self._path(connection_id, "close"))
