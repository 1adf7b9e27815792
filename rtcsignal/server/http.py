"""Minimal asyncio HTTP/1.1 request reading and response writing.

Used by the interception adapter, which owns a raw ``asyncio.start_server``
listener. Requests are read in stages: the request line first (enough to
decide who owns the request), then the headers, bounded by the signaling
limits only for claimed requests, then the body, only for claimed requests.
Unclaimed requests leave the body unread on the stream for the fallback
handler.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any
from urllib.parse import urlsplit

from rtcsignal.core.errors import SignalError

logger = logging.getLogger(__name__)

# Constants
MAX_BODY_SIZE = 1_048_576  # 1MB
READ_TIMEOUT = 30.0

# HTTP header limits (DoS protection)
MAX_HEADERS_COUNT = 128
MAX_HEADER_NAME_LEN = 1024
MAX_HEADER_VALUE_LEN = 8192
MAX_TOTAL_HEADERS_SIZE = 32 * 1024
MAX_REQUEST_LINE_LEN = 8192


@dataclass
class HttpRequest:
    """Parsed HTTP request.

    Attributes:
        method: HTTP method (GET, POST, etc.)
        path: Request path without query string (e.g., "/.wrtc/v2/connections")
        headers: Dict of lowercase header names to values
        body: Request body as string ("" if not read or empty)
        query: Raw query string without the leading "?"
        json_body: Body already parsed upstream by a host framework, if any
    """

    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""
    query: str = ""
    json_body: Any = None

    @classmethod
    def from_target(
        cls,
        method: str,
        target: str,
        headers: dict[str, str] | None = None,
        body: str = "",
    ) -> HttpRequest:
        """Build a request from a raw request-target such as "/a/b?x=1"."""
        parts = urlsplit(target)
        return cls(
            method=method.upper(),
            path=parts.path or "/",
            headers=headers or {},
            body=body,
            query=parts.query,
        )


@dataclass
class HttpResponse:
    """An HTTP response produced by the signaling router.

    Header names are stored as given; lookups via ``header()`` are
    case-insensitive.
    """

    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""

    def set_header(self, name: str, value: str) -> None:
        for existing in list(self.headers):
            if existing.lower() == name.lower():
                del self.headers[existing]
        self.headers[name] = value

    def header(self, name: str) -> str | None:
        for existing, value in self.headers.items():
            if existing.lower() == name.lower():
                return value
        return None

    def end(self, status: int) -> HttpResponse:
        """Finish with a status and no body."""
        self.status = status
        self.body = ""
        return self

    def json(self, payload: Any, status: int = 200) -> HttpResponse:
        """Finish with a JSON body."""
        self.status = status
        self.body = json.dumps(payload)
        return self


class HttpParseError(SignalError):
    """Raised when HTTP request parsing fails."""


async def _read_line(reader: asyncio.StreamReader, what: str) -> bytes:
    try:
        return await asyncio.wait_for(reader.readline(), timeout=READ_TIMEOUT)
    except TimeoutError:
        raise HttpParseError(f"{what} timeout") from None
    except ValueError as e:
        # StreamReader.readline reports a line over the stream limit as ValueError
        raise HttpParseError(f"{what} line exceeds the stream limit") from e


def _decode(raw: bytes, what: str) -> str:
    try:
        return raw.decode("utf-8").strip()
    except UnicodeDecodeError as e:
        raise HttpParseError(f"Invalid {what} encoding: {e}") from e


def parse_request_line(raw: bytes) -> tuple[str, str]:
    """Split "METHOD target HTTP/x.y" into (METHOD, target)."""
    if len(raw) > MAX_REQUEST_LINE_LEN:
        raise HttpParseError(f"Request line too long: {len(raw)} > {MAX_REQUEST_LINE_LEN}")
    line = _decode(raw, "request")
    parts = line.split(" ")
    if len(parts) != 3 or not parts[2].startswith("HTTP/"):
        raise HttpParseError(f"Invalid request line: {line!r}")
    return parts[0].upper(), parts[1]


def parse_header_line(raw: bytes, strict: bool = True) -> tuple[str, str] | None:
    """Parse "Name: value" into (lowercase name, value), or None if malformed.

    With strict=False no length limits apply and the line is decoded as
    latin-1, so any head a host application accepts passes through.
    """
    text = _decode(raw, "header") if strict else raw.decode("latin-1").strip()
    name, sep, value = text.partition(":")
    if not sep:
        return None
    name, value = name.strip().lower(), value.strip()
    if not strict:
        return name, value
    if len(name) > MAX_HEADER_NAME_LEN:
        raise HttpParseError(f"Header name too long: {len(name)} > {MAX_HEADER_NAME_LEN}")
    if len(value) > MAX_HEADER_VALUE_LEN:
        raise HttpParseError(f"Header value too long: {len(value)} > {MAX_HEADER_VALUE_LEN}")
    return name, value


async def read_request_line(reader: asyncio.StreamReader) -> tuple[str, str]:
    """Read the request line only.

    Raises:
        HttpParseError: On an empty, oversized or malformed line.
    """
    first = await _read_line(reader, "Request")
    if not first:
        raise HttpParseError("Empty request")
    return parse_request_line(first)


async def read_http_headers(reader: asyncio.StreamReader, strict: bool = True) -> dict[str, str]:
    """Read header lines up to the blank line and leave the body on the stream.

    Args:
        reader: Stream positioned just after the request line.
        strict: Enforce the signaling layer's size and count limits. Heads
            of requests forwarded to a host application are read with
            strict=False.

    Raises:
        HttpParseError: On a timeout, a line over the stream limit, or
            (strict only) a head over the limits.
    """
    headers: dict[str, str] = {}
    head_size = 0
    while (raw := await _read_line(reader, "Header read")).strip():
        head_size += len(raw)
        if strict and head_size > MAX_TOTAL_HEADERS_SIZE:
            raise HttpParseError(f"Headers exceed {MAX_TOTAL_HEADERS_SIZE} bytes")
        parsed = parse_header_line(raw, strict=strict)
        if parsed is None:
            continue
        if strict and len(headers) >= MAX_HEADERS_COUNT:
            raise HttpParseError(f"Too many headers: more than {MAX_HEADERS_COUNT}")
        headers[parsed[0]] = parsed[1]
    return headers


def content_length(headers: dict[str, str], max_body_size: int = MAX_BODY_SIZE) -> int:
    """Validated Content-Length of a request (0 when absent).

    Raises:
        HttpParseError: For chunked bodies, non-numeric or negative values,
            or a length over max_body_size.
    """
    if "chunked" in headers.get("transfer-encoding", "").lower():
        raise HttpParseError("Chunked request bodies are not supported")

    raw = headers.get("content-length", "0").strip()
    if not (raw.isascii() and raw.isdigit()):
        raise HttpParseError(f"Invalid Content-Length: {raw!r}")
    length = int(raw)
    if length > max_body_size:
        raise HttpParseError(f"Request body too large: {length} > {max_body_size}")
    return length


async def read_http_body(
    reader: asyncio.StreamReader,
    headers: dict[str, str],
    max_body_size: int = MAX_BODY_SIZE,
) -> str:
    """Read exactly Content-Length bytes and decode them as UTF-8.

    Raises:
        HttpParseError: On a bad length, a short or slow body, or bad UTF-8.
    """
    length = content_length(headers, max_body_size)
    if length == 0:
        return ""

    try:
        data = await asyncio.wait_for(reader.readexactly(length), timeout=READ_TIMEOUT)
    except TimeoutError:
        raise HttpParseError("Body read timeout") from None
    except asyncio.IncompleteReadError as e:
        raise HttpParseError(f"Incomplete body: expected {length}, got {len(e.partial)}") from e

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise HttpParseError(f"Invalid body encoding: {e}") from e


def _reason_phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Unknown"


def encode_http_response(response: HttpResponse) -> bytes:
    """Serialize a response into HTTP/1.1 wire bytes (Connection: close)."""
    body_bytes = response.body.encode("utf-8")
    lines = [f"HTTP/1.1 {response.status} {_reason_phrase(response.status)}"]
    for name, value in response.headers.items():
        if name.lower() in ("content-length", "connection"):
            continue
        lines.append(f"{name}: {value}")
    lines.append(f"Content-Length: {len(body_bytes)}")
    lines.append("Connection: close")
    lines.append("")
    lines.append("")
    return "\r\n".join(lines).encode("utf-8") + body_bytes


async def send_http_response(writer: asyncio.StreamWriter, response: HttpResponse) -> bool:
    """Send an HTTP response unless the client is already gone.

    Args:
        writer: The asyncio StreamWriter to write to.
        response: The response to send.

    Returns:
        True if the response was written, False if the connection was
        closed before or during the write.
    """
    if writer.is_closing():
        logger.debug("Client gone, dropping %d response", response.status)
        return False

    try:
        writer.write(encode_http_response(response))
        await writer.drain()
    except (ConnectionResetError, BrokenPipeError) as e:
        logger.debug("Client disconnected during response write: %s", e)
        return False
    return True


async def close_writer(writer: asyncio.StreamWriter) -> None:
    """Close a writer, ignoring errors from an already-dead connection."""
    try:
        if not writer.is_closing():
            writer.close()
        await writer.wait_closed()
    except (ConnectionResetError, BrokenPipeError, OSError) as e:
        logger.debug("Connection close failed (already closed?): %s", e)
