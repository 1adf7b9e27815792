"""Authorization for new signaling sessions.

Creating a connection is the only guarded operation. The host application
supplies an authorizer ``authorize(header_value, request)`` that may be a
plain or coroutine function. Its result is normalized into an
``AuthResult``:

    - ``AuthResult``        used as-is
    - ``True`` / ``None``   allowed, no user data
    - ``False``             rejected with 401
    - ``int``               HTTP status; 200 allows, anything else rejects
    - anything else         allowed, the value becomes the session's user data

Status codes coming back from the authorizer are untrusted: anything outside
the HTTP status range [100, 600) is replaced with 500 before it reaches the
wire.

A ready-made bearer-token authorizer is provided for the standalone server:

    authorize = BearerTokenAuthorizer(api_key=generate_api_key())
"""

from __future__ import annotations

import hmac
import logging
import secrets
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from rtcsignal.core.utils import maybe_await

if TYPE_CHECKING:
    from rtcsignal.server.http import HttpRequest

logger = logging.getLogger(__name__)

# API key prefix for identification
API_KEY_PREFIX = "rsk_"

MIN_HTTP_STATUS = 100
MAX_HTTP_STATUS = 600  # exclusive


@dataclass(frozen=True)
class AuthResult:
    """Outcome of an authorization check.

    Attributes:
        status: HTTP status; 200 means authorized.
        user_data: Opaque value attached to the new session.
    """

    status: int = 200
    user_data: Any = None

    @property
    def ok(self) -> bool:
        return self.status == 200


Authorizer = Callable[[str | None, "HttpRequest"], Any | Awaitable[Any]]


def normalize_status(status: Any) -> int:
    """Return status if it is a valid HTTP status code, otherwise 500."""
    if isinstance(status, bool) or not isinstance(status, int):
        return 500
    if MIN_HTTP_STATUS <= status < MAX_HTTP_STATUS:
        return status
    return 500


def normalize_auth_result(result: Any) -> AuthResult:
    """Convert whatever an authorizer returned into an AuthResult."""
    if isinstance(result, AuthResult):
        return result
    if result is None or result is True:
        return AuthResult(status=200)
    if result is False:
        return AuthResult(status=401)
    if isinstance(result, int):
        return AuthResult(status=result)
    return AuthResult(status=200, user_data=result)


async def run_authorizer(
    authorizer: Authorizer | None,
    header_value: str | None,
    request: HttpRequest,
) -> AuthResult:
    """Invoke an authorizer (sync or async) and normalize its result.

    A missing authorizer allows every request.
    """
    if authorizer is None:
        return AuthResult(status=200)
    result = await maybe_await(authorizer(header_value, request))
    return normalize_auth_result(result)


def generate_api_key() -> str:
    """Generate a new API key with rsk_ prefix.

    Returns:
        A new API key in format: rsk_ + 32 bytes URL-safe Base64.
    """
    token = secrets.token_urlsafe(32)
    return f"{API_KEY_PREFIX}{token}"


def validate_api_key(provided: str, expected: str) -> bool:
    """Validate an API key using constant-time comparison.

    Args:
        provided: The API key provided by the client.
        expected: The expected API key stored on the server.

    Returns:
        True if the keys match, False otherwise (including empty inputs).
    """
    if not provided or not expected:
        return False

    return hmac.compare_digest(provided, expected)


def extract_bearer_token(header_value: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` value.

    Handles a case-insensitive "Bearer " prefix and extra whitespace.
    """
    if not header_value:
        return None
    if header_value.lower().startswith("bearer "):
        return header_value[7:].strip()
    return None


class BearerTokenAuthorizer:
    """Authorizer that requires ``Authorization: Bearer <api_key>``.

    Missing header -> 401, wrong key -> 403. On success the user data is
    ``{"authenticated": True}``.
    """

    def __init__(self, api_key: str) -> None:
        if not api_key:
            raise ValueError("api_key must not be empty")
        self._api_key = api_key

    def __call__(self, header_value: str | None, request: HttpRequest) -> AuthResult:
        token = extract_bearer_token(header_value)
        if token is None:
            logger.debug("Rejected connection request without bearer token: %s", request.path)
            return AuthResult(status=401)
        if not validate_api_key(token, self._api_key):
            logger.warning("Rejected connection request with invalid API key")
            return AuthResult(status=403)
        return AuthResult(status=200, user_data={"authenticated": True})
