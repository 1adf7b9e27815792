"""Tests for authorization result handling and the bearer-token authorizer."""

import pytest

from rtcsignal.connections.auth import (
    API_KEY_PREFIX,
    AuthResult,
    BearerTokenAuthorizer,
    extract_bearer_token,
    generate_api_key,
    normalize_auth_result,
    normalize_status,
    run_authorizer,
    validate_api_key,
)
from rtcsignal.server.http import HttpRequest


def _request() -> HttpRequest:
    return HttpRequest(method="POST", path="/.wrtc/v2/connections")


class TestNormalizeStatus:
    """Tests for normalize_status."""

    @pytest.mark.parametrize("status", [100, 200, 401, 403, 418, 599])
    def test_valid_status_passes_through(self, status: int) -> None:
        assert normalize_status(status) == status

    @pytest.mark.parametrize("status", [0, 99, 600, 1000, -401])
    def test_out_of_range_becomes_500(self, status: int) -> None:
        assert normalize_status(status) == 500

    @pytest.mark.parametrize("status", ["401", 401.0, None, True])
    def test_non_int_becomes_500(self, status: object) -> None:
        assert normalize_status(status) == 500


class TestNormalizeAuthResult:
    """Tests for normalize_auth_result."""

    def test_auth_result_unchanged(self) -> None:
        result = AuthResult(status=403)
        assert normalize_auth_result(result) is result

    @pytest.mark.parametrize("value", [True, None])
    def test_allow(self, value: object) -> None:
        result = normalize_auth_result(value)
        assert result.ok
        assert result.user_data is None

    def test_false_is_401(self) -> None:
        assert normalize_auth_result(False).status == 401

    def test_int_is_status(self) -> None:
        assert normalize_auth_result(429).status == 429
        assert normalize_auth_result(200).ok

    def test_other_value_is_user_data(self) -> None:
        result = normalize_auth_result({"user": "alice"})
        assert result.ok
        assert result.user_data == {"user": "alice"}


class TestRunAuthorizer:
    """Tests for run_authorizer."""

    @pytest.mark.asyncio
    async def test_no_authorizer_allows(self) -> None:
        result = await run_authorizer(None, None, _request())
        assert result == AuthResult(status=200)

    @pytest.mark.asyncio
    async def test_sync_authorizer(self) -> None:
        seen: list[tuple[str | None, str]] = []

        def authorize(header: str | None, request: HttpRequest) -> AuthResult:
            seen.append((header, request.path))
            return AuthResult(status=200, user_data="u1")

        result = await run_authorizer(authorize, "Bearer x", _request())

        assert result.user_data == "u1"
        assert seen == [("Bearer x", "/.wrtc/v2/connections")]

    @pytest.mark.asyncio
    async def test_async_authorizer(self) -> None:
        async def authorize(header: str | None, request: HttpRequest) -> int:
            return 403

        result = await run_authorizer(authorize, None, _request())
        assert result.status == 403


class TestApiKeys:
    """Tests for API key helpers."""

    def test_generate_has_prefix(self) -> None:
        key = generate_api_key()
        assert key.startswith(API_KEY_PREFIX)
        assert len(key) > len(API_KEY_PREFIX) + 32

    def test_generated_keys_differ(self) -> None:
        assert generate_api_key() != generate_api_key()

    def test_validate(self) -> None:
        assert validate_api_key("rsk_abc", "rsk_abc")
        assert not validate_api_key("rsk_abd", "rsk_abc")
        assert not validate_api_key("", "rsk_abc")
        assert not validate_api_key("rsk_abc", "")

    @pytest.mark.parametrize(
        "header,expected",
        [
            ("Bearer rsk_abc", "rsk_abc"),
            ("bearer   rsk_abc  ", "rsk_abc"),
            ("Basic dXNlcjpwYXNz", None),
            ("", None),
            (None, None),
        ],
    )
    def test_extract_bearer_token(self, header: str | None, expected: str | None) -> None:
        assert extract_bearer_token(header) == expected


class TestBearerTokenAuthorizer:
    """Tests for BearerTokenAuthorizer."""

    def test_empty_key_rejected(self) -> None:
        with pytest.raises(ValueError):
            BearerTokenAuthorizer("")

    def test_missing_header_is_401(self) -> None:
        authorize = BearerTokenAuthorizer("rsk_secret")
        assert authorize(None, _request()).status == 401

    def test_wrong_key_is_403(self) -> None:
        authorize = BearerTokenAuthorizer("rsk_secret")
        assert authorize("Bearer rsk_wrong", _request()).status == 403

    def test_correct_key(self) -> None:
        authorize = BearerTokenAuthorizer("rsk_secret")
        result = authorize("Bearer rsk_secret", _request())

        assert result.ok
        assert result.user_data == {"authenticated": True}
