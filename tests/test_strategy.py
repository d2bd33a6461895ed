# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_linkedin_token

import asyncio
import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from coreason_linkedin_token.config import LinkedInTokenConfig
from coreason_linkedin_token.exceptions import InternalOAuthError, OAuth2RequestError, ProfileParseError
from coreason_linkedin_token.models import (
    AuthError,
    AuthFailure,
    AuthSuccess,
    IncomingRequest,
    LinkedInProfile,
    VerifyResult,
)
from coreason_linkedin_token.oauth2_client import OAuth2Client
from coreason_linkedin_token.profile_fields import DEFAULT_PROFILE_URL
from coreason_linkedin_token.skip_policy import AlwaysSkip, AsyncSkip, SyncSkip
from coreason_linkedin_token.strategy import LINKEDIN_ACCESS_TOKEN_NAME, LinkedInTokenStrategy

ADA: dict[str, Any] = {
    "id": "42",
    "formattedName": "Ada Lovelace",
    "firstName": "Ada",
    "lastName": "Lovelace",
    "emailAddress": "ada@example.com",
}


@pytest.fixture
def config() -> LinkedInTokenConfig:
    return LinkedInTokenConfig(client_id="client", client_secret="secret")


@pytest.fixture
def mock_client() -> AsyncMock:
    client = AsyncMock(spec=OAuth2Client)
    client.get.return_value = (json.dumps(ADA), MagicMock(spec=httpx.Response))
    return client


@pytest.fixture
def verify() -> AsyncMock:
    return AsyncMock(return_value=VerifyResult(user={"id": "user-1"}, info={"scope": "r_basicprofile"}))


@pytest.fixture
def strategy(config: LinkedInTokenConfig, verify: AsyncMock, mock_client: AsyncMock) -> LinkedInTokenStrategy:
    return LinkedInTokenStrategy(config, verify, client=mock_client)


def test_strategy_name(strategy: LinkedInTokenStrategy) -> None:
    assert strategy.name == "linkedin-token"


def test_default_profile_url(strategy: LinkedInTokenStrategy) -> None:
    assert strategy.profile_url == DEFAULT_PROFILE_URL


def test_profile_url_from_scope(verify: AsyncMock, mock_client: AsyncMock) -> None:
    config = LinkedInTokenConfig(client_id="c", client_secret="s", scope=["r_emailaddress"])
    strategy = LinkedInTokenStrategy(config, verify, client=mock_client)

    assert strategy.profile_url.startswith("https://api.linkedin.com/v1/people/~:(id,first-name,")
    assert strategy.profile_url.endswith(",email-address)?format=json")


def test_profile_url_explicit(verify: AsyncMock, mock_client: AsyncMock) -> None:
    config = LinkedInTokenConfig(
        client_id="c", client_secret="s", profile_url="https://api.example.com/me", profile_fields=["id"]
    )
    strategy = LinkedInTokenStrategy(config, verify, client=mock_client)
    assert strategy.profile_url == "https://api.example.com/me"


@pytest.mark.asyncio
async def test_authenticate_success(
    strategy: LinkedInTokenStrategy, verify: AsyncMock, mock_client: AsyncMock
) -> None:
    result = await strategy.authenticate(IncomingRequest(query={"access_token": "tok", "refresh_token": "ref"}))

    assert isinstance(result, AuthSuccess)
    assert result.user == {"id": "user-1"}
    assert result.info == {"scope": "r_basicprofile"}

    mock_client.get.assert_awaited_once_with(
        DEFAULT_PROFILE_URL, "tok", access_token_name=LINKEDIN_ACCESS_TOKEN_NAME
    )
    access_token, refresh_token, profile = verify.await_args.args
    assert access_token == "tok"
    assert refresh_token == "ref"
    assert isinstance(profile, LinkedInProfile)
    assert profile.id == "42"


@pytest.mark.asyncio
async def test_authenticate_without_token_fails(
    strategy: LinkedInTokenStrategy, verify: AsyncMock, mock_client: AsyncMock
) -> None:
    result = await strategy.authenticate(IncomingRequest(body={}, query={"refresh_token": "ref"}))

    assert isinstance(result, AuthFailure)
    assert result.info is None
    mock_client.get.assert_not_awaited()
    verify.assert_not_awaited()


@pytest.mark.asyncio
async def test_authenticate_provider_error_fails(
    strategy: LinkedInTokenStrategy, verify: AsyncMock, mock_client: AsyncMock
) -> None:
    request = IncomingRequest(
        body={"access_token": "tok"},
        query={"error": "access_denied", "error_description": "user cancelled"},
    )
    result = await strategy.authenticate(request)

    assert isinstance(result, AuthFailure)
    assert result.info is None
    mock_client.get.assert_not_awaited()
    verify.assert_not_awaited()


@pytest.mark.asyncio
async def test_empty_error_param_is_ignored(strategy: LinkedInTokenStrategy) -> None:
    result = await strategy.authenticate(IncomingRequest(query={"error": "", "access_token": "tok"}))
    assert isinstance(result, AuthSuccess)


@pytest.mark.asyncio
async def test_token_precedence_body_first(
    strategy: LinkedInTokenStrategy, verify: AsyncMock, mock_client: AsyncMock
) -> None:
    request = IncomingRequest(
        body={"access_token": "body-tok"},
        query={"access_token": "query-tok", "refresh_token": "query-ref"},
        headers={"access_token": "header-tok", "refresh_token": "header-ref"},
    )
    await strategy.authenticate(request)

    assert mock_client.get.await_args.args[1] == "body-tok"
    access_token, refresh_token, _ = verify.await_args.args
    assert access_token == "body-tok"
    assert refresh_token == "query-ref"


@pytest.mark.asyncio
async def test_token_from_headers(
    strategy: LinkedInTokenStrategy, verify: AsyncMock, mock_client: AsyncMock
) -> None:
    await strategy.authenticate(IncomingRequest(headers={"Access_Token": "header-tok"}))

    assert mock_client.get.await_args.args[1] == "header-tok"
    assert verify.await_args.args[1] is None


@pytest.mark.asyncio
async def test_request_not_mutated(strategy: LinkedInTokenStrategy) -> None:
    request = IncomingRequest(body={"access_token": "tok"}, query={"a": "b"}, headers={"x": "y"})
    before = request.model_dump()
    await strategy.authenticate(request)
    assert request.model_dump() == before


@pytest.mark.asyncio
async def test_verify_rejects_with_info(strategy: LinkedInTokenStrategy, verify: AsyncMock) -> None:
    verify.return_value = VerifyResult(user=False, info={"message": "unknown member"})

    result = await strategy.authenticate(IncomingRequest(query={"access_token": "tok"}))

    assert isinstance(result, AuthFailure)
    assert result.info == {"message": "unknown member"}


@pytest.mark.asyncio
async def test_verify_bare_return_values(strategy: LinkedInTokenStrategy, verify: AsyncMock) -> None:
    request = IncomingRequest(query={"access_token": "tok"})

    verify.return_value = None
    assert isinstance(await strategy.authenticate(request), AuthFailure)

    verify.return_value = "user-7"
    result = await strategy.authenticate(request)
    assert isinstance(result, AuthSuccess)
    assert result.user == "user-7"
    assert result.info is None


@pytest.mark.asyncio
async def test_verify_exception_is_error(strategy: LinkedInTokenStrategy, verify: AsyncMock) -> None:
    boom = RuntimeError("database unavailable")
    verify.side_effect = boom

    result = await strategy.authenticate(IncomingRequest(query={"access_token": "tok"}))

    assert isinstance(result, AuthError)
    assert result.error is boom


@pytest.mark.asyncio
async def test_pass_request_to_callback(verify: AsyncMock, mock_client: AsyncMock) -> None:
    config = LinkedInTokenConfig(client_id="c", client_secret="s", pass_request_to_callback=True)
    strategy = LinkedInTokenStrategy(config, verify, client=mock_client)
    request = IncomingRequest(body={"access_token": "tok", "refresh_token": "ref"})

    result = await strategy.authenticate(request)

    assert isinstance(result, AuthSuccess)
    req, access_token, refresh_token, profile = verify.await_args.args
    assert req is request
    assert (access_token, refresh_token) == ("tok", "ref")
    assert profile.id == "42"


@pytest.mark.asyncio
async def test_transport_failure_is_error(
    strategy: LinkedInTokenStrategy, verify: AsyncMock, mock_client: AsyncMock
) -> None:
    cause = httpx.ConnectError("connection refused")
    mock_client.get.side_effect = cause

    result = await strategy.authenticate(IncomingRequest(query={"access_token": "tok"}))

    assert isinstance(result, AuthError)
    assert isinstance(result.error, InternalOAuthError)
    assert result.error.oauth_error is cause
    verify.assert_not_awaited()


@pytest.mark.asyncio
async def test_http_error_status_is_wrapped(strategy: LinkedInTokenStrategy, mock_client: AsyncMock) -> None:
    mock_client.get.side_effect = OAuth2RequestError(401, '{"message": "Invalid access token."}')

    with pytest.raises(InternalOAuthError, match="failed to fetch user profile") as exc_info:
        await strategy.user_profile("tok")

    assert isinstance(exc_info.value.oauth_error, OAuth2RequestError)
    assert exc_info.value.__cause__ is exc_info.value.oauth_error


@pytest.mark.asyncio
async def test_malformed_profile_is_error(
    strategy: LinkedInTokenStrategy, verify: AsyncMock, mock_client: AsyncMock
) -> None:
    mock_client.get.return_value = ('{"id": "42", ', MagicMock(spec=httpx.Response))

    with pytest.raises(ProfileParseError):
        await strategy.user_profile("tok")

    result = await strategy.authenticate(IncomingRequest(query={"access_token": "tok"}))
    assert isinstance(result, AuthError)
    assert isinstance(result.error, ProfileParseError)
    verify.assert_not_awaited()


@pytest.mark.asyncio
async def test_user_profile_normalization(strategy: LinkedInTokenStrategy, mock_client: AsyncMock) -> None:
    profile = await strategy.user_profile("tok")

    assert profile.model_dump(by_alias=True, exclude={"raw", "json_data"}) == {
        "provider": "linkedin",
        "id": "42",
        "displayName": "Ada Lovelace",
        "name": {"givenName": "Ada", "familyName": "Lovelace"},
        "emails": [{"value": "ada@example.com"}],
        "photos": [],
    }
    assert profile.json_data == ADA


@pytest.mark.asyncio
async def test_user_profile_picture(strategy: LinkedInTokenStrategy, mock_client: AsyncMock) -> None:
    mock_client.get.return_value = (json.dumps({**ADA, "pictureUrl": "http://x/y.jpg"}), MagicMock())
    profile = await strategy.user_profile("tok")
    assert profile.photos == ["http://x/y.jpg"]


@pytest.mark.asyncio
async def test_sync_skip_returns_no_profile(verify: AsyncMock, mock_client: AsyncMock) -> None:
    config = LinkedInTokenConfig(client_id="c", client_secret="s", skip_user_profile=SyncSkip(predicate=lambda: True))
    strategy = LinkedInTokenStrategy(config, verify, client=mock_client)

    assert await strategy._load_user_profile("tok") is None
    mock_client.get.assert_not_awaited()

    result = await strategy.authenticate(IncomingRequest(query={"access_token": "tok"}))
    assert isinstance(result, AuthSuccess)
    assert verify.await_args.args[2] is None


@pytest.mark.asyncio
async def test_always_skip(verify: AsyncMock, mock_client: AsyncMock) -> None:
    config = LinkedInTokenConfig(client_id="c", client_secret="s", skip_user_profile=AlwaysSkip())
    strategy = LinkedInTokenStrategy(config, verify, client=mock_client)

    assert await strategy._load_user_profile("tok") is None
    mock_client.get.assert_not_awaited()


@pytest.mark.asyncio
async def test_async_skip_decides_per_token(verify: AsyncMock, mock_client: AsyncMock) -> None:
    async def known_token(token: str) -> bool:
        return token == "cached"

    config = LinkedInTokenConfig(client_id="c", client_secret="s", skip_user_profile=AsyncSkip(predicate=known_token))
    strategy = LinkedInTokenStrategy(config, verify, client=mock_client)

    assert await strategy._load_user_profile("cached") is None
    mock_client.get.assert_not_awaited()

    profile = await strategy._load_user_profile("fresh")
    assert profile is not None
    mock_client.get.assert_awaited_once()


@pytest.mark.asyncio
async def test_async_skip_error_is_error(verify: AsyncMock, mock_client: AsyncMock) -> None:
    predicate = AsyncMock(side_effect=RuntimeError("cache down"))
    config = LinkedInTokenConfig(client_id="c", client_secret="s", skip_user_profile=AsyncSkip(predicate=predicate))
    strategy = LinkedInTokenStrategy(config, verify, client=mock_client)

    result = await strategy.authenticate(IncomingRequest(query={"access_token": "tok"}))

    assert isinstance(result, AuthError)
    assert str(result.error) == "cache down"
    mock_client.get.assert_not_awaited()
    verify.assert_not_awaited()


@pytest.mark.asyncio
async def test_authenticate_with_dispatches_once(strategy: LinkedInTokenStrategy) -> None:
    handler = MagicMock()

    await strategy.authenticate_with(IncomingRequest(query={"access_token": "tok"}), handler)
    handler.success.assert_called_once_with({"id": "user-1"}, {"scope": "r_basicprofile"})
    handler.fail.assert_not_called()
    handler.error.assert_not_called()

    handler.reset_mock()
    await strategy.authenticate_with(IncomingRequest(), handler)
    handler.fail.assert_called_once_with(None)
    handler.success.assert_not_called()
    handler.error.assert_not_called()


@pytest.mark.asyncio
async def test_concurrent_authentications_are_independent(
    strategy: LinkedInTokenStrategy, verify: AsyncMock, mock_client: AsyncMock
) -> None:
    async def fake_get(url: str, token: str, access_token_name: str | None = None) -> tuple[str, Any]:
        await asyncio.sleep(0.01 if token == "tok-a" else 0)
        return json.dumps({"id": token}), MagicMock()

    async def echo_verify(access_token: str, refresh_token: str | None, profile: LinkedInProfile | None) -> Any:
        assert profile is not None
        return VerifyResult(user=profile.id)

    mock_client.get.side_effect = fake_get
    strategy._verify = echo_verify

    results = await asyncio.gather(
        *(strategy.authenticate(IncomingRequest(query={"access_token": f"tok-{n}"})) for n in "abc")
    )

    assert [r.user for r in results if isinstance(r, AuthSuccess)] == ["tok-a", "tok-b", "tok-c"]
    for call in mock_client.get.await_args_list:
        assert call.kwargs["access_token_name"] == LINKEDIN_ACCESS_TOKEN_NAME


def test_authorization_params(strategy: LinkedInTokenStrategy) -> None:
    assert strategy.authorization_params({"state": "xyz"}) == {"state": "xyz"}
    assert strategy.authorization_params({}) == {}
    assert strategy.authorization_params({"state": ""}) == {}


@pytest.mark.asyncio
async def test_internal_client_lifecycle(config: LinkedInTokenConfig, verify: AsyncMock) -> None:
    async with LinkedInTokenStrategy(config, verify) as strategy:
        assert isinstance(strategy._oauth2, OAuth2Client)
        assert strategy._oauth2.client_id == "client"
        http_client = strategy._oauth2.http_client

    assert http_client.is_closed


@pytest.mark.asyncio
async def test_external_client_not_closed(strategy: LinkedInTokenStrategy, mock_client: AsyncMock) -> None:
    async with strategy:
        pass
    assert strategy._internal_client is False
    assert strategy._oauth2 is mock_client
