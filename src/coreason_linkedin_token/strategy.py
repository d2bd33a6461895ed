# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_linkedin_token

"""
LinkedInTokenStrategy: authenticates requests carrying a LinkedIn OAuth 2.0 access token.
"""

import hashlib
import hmac
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import httpx
from opentelemetry import trace
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.trace import Status, StatusCode

from coreason_linkedin_token.config import LinkedInTokenConfig
from coreason_linkedin_token.exceptions import InternalOAuthError
from coreason_linkedin_token.models import (
    AuthError,
    AuthFailure,
    AuthOutcomeHandler,
    AuthResult,
    AuthSuccess,
    IncomingRequest,
    LinkedInProfile,
    VerifyResult,
)
from coreason_linkedin_token.oauth2_client import OAuth2Client
from coreason_linkedin_token.profile_fields import build_profile_url
from coreason_linkedin_token.transport import SafeAsyncTransport
from coreason_linkedin_token.utils.logger import logger

tracer = trace.get_tracer(__name__)

# LinkedIn expects the token under a custom query parameter name
LINKEDIN_ACCESS_TOKEN_NAME = "oauth2_access_token"

Verify = Callable[[str, str | None, LinkedInProfile | None], Awaitable[Any]]
VerifyWithRequest = Callable[[IncomingRequest, str, str | None, LinkedInProfile | None], Awaitable[Any]]


class LinkedInTokenStrategy:
    """
    Authenticates requests that carry a LinkedIn access token obtained client-side
    (implicit grant), without the authorization-code redirect.

    The token is read from the request body, query string or headers, exchanged
    for a normalized `LinkedInProfile` and handed to the application's verify
    callback, which decides whether the credentials map to a user.

    Example:
        async def verify(access_token, refresh_token, profile):
            user = await users.find_or_create(linkedin_id=profile.id)
            return VerifyResult(user=user)

        async with LinkedInTokenStrategy(LinkedInTokenConfig(), verify) as strategy:
            result = await strategy.authenticate(IncomingRequest(query=request.query_params))

    Attributes:
        name (str): Strategy name under which frameworks register it.
        config (LinkedInTokenConfig): The frozen configuration.
        profile_url (str): The resolved LinkedIn profile endpoint.
    """

    name = "linkedin-token"

    def __init__(
        self,
        config: LinkedInTokenConfig,
        verify: Verify | VerifyWithRequest,
        client: OAuth2Client | None = None,
    ) -> None:
        """
        Initialize the LinkedInTokenStrategy.

        Args:
            config: The configuration object.
            verify: Async verify callback. Receives the request first when
                `config.pass_request_to_callback` is set.
            client: External OAuth2 client (optional). If not provided, one is built on
                an `httpx.AsyncClient` with `SafeAsyncTransport` and closed on `__aexit__`.
        """
        self.config = config
        self._verify = verify
        self._internal_client = client is None

        if client is None:
            http_client = httpx.AsyncClient(transport=SafeAsyncTransport(), timeout=config.http_timeout)
            HTTPXClientInstrumentor().instrument_client(http_client)
            client = OAuth2Client(
                client_id=config.client_id,
                client_secret=config.client_secret,
                http_client=http_client,
                authorize_url=config.authorization_url,
                token_url=config.token_url,
            )
        self._oauth2 = client

        self.profile_url = build_profile_url(config.profile_url, config.scope, config.profile_fields)

    async def __aenter__(self) -> "LinkedInTokenStrategy":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._internal_client:
            await self._oauth2.http_client.aclose()

    def _anonymize(self, value: str) -> str:
        return hmac.new(
            self.config.pii_salt.get_secret_value().encode("utf-8"),
            value.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    async def authenticate(self, request: IncomingRequest, options: Mapping[str, Any] | None = None) -> AuthResult:
        """
        Authenticates the request.

        Emits an OpenTelemetry span `authenticate`.

        Args:
            request: The incoming request.
            options: Per-call options from the framework. Currently unused.

        Returns:
            AuthResult: `AuthFailure` when the request carries a provider error or no token,
            or the verify callback rejects; `AuthError` when the profile cannot be loaded or
            the verify callback raises; `AuthSuccess` otherwise.
        """
        with tracer.start_as_current_span("authenticate") as span:
            span.set_attribute("auth.strategy", self.name)

            # The provider's error detail is not forwarded
            if request.query.get("error"):
                logger.info("Authentication failed: provider reported an error")
                span.set_attribute("auth.outcome", "failure")
                return AuthFailure()

            access_token = request.lookup("access_token")
            refresh_token = request.lookup("refresh_token")

            if not access_token:
                logger.debug("Authentication failed: no access token in request")
                span.set_attribute("auth.outcome", "failure")
                return AuthFailure()

            try:
                profile = await self._load_user_profile(access_token)
            except Exception as e:
                logger.warning(f"Authentication error while loading profile: {e}")
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                return AuthError(error=e)

            try:
                if self.config.pass_request_to_callback:
                    outcome = await self._verify(request, access_token, refresh_token, profile)  # type: ignore[call-arg]
                else:
                    outcome = await self._verify(access_token, refresh_token, profile)  # type: ignore[call-arg,arg-type]
            except Exception as e:
                logger.exception("Verify callback raised")
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                return AuthError(error=e)

            verified = outcome if isinstance(outcome, VerifyResult) else VerifyResult(user=outcome)
            if not verified.user:
                logger.info("Authentication failed: verify callback rejected the credentials")
                span.set_attribute("auth.outcome", "failure")
                return AuthFailure(info=verified.info)

            span.set_attribute("auth.outcome", "success")
            span.set_status(Status(StatusCode.OK))
            return AuthSuccess(user=verified.user, info=verified.info)

    async def authenticate_with(
        self,
        request: IncomingRequest,
        handler: AuthOutcomeHandler,
        options: Mapping[str, Any] | None = None,
    ) -> AuthResult:
        """
        Authenticates the request and reports the outcome to `handler` exactly once.
        """
        result = await self.authenticate(request, options)
        result.dispatch(handler)
        return result

    def authorization_params(self, options: Mapping[str, Any]) -> dict[str, str]:
        """
        Extra parameters for an authorization request. LinkedIn rejects requests without `state`.
        """
        params: dict[str, str] = {}
        if options.get("state"):
            params["state"] = options["state"]
        return params

    async def user_profile(self, access_token: str) -> LinkedInProfile:
        """
        Retrieves and normalizes the user's LinkedIn profile.

        The resulting profile has:
          - `provider`         always `linkedin`
          - `id`               the user's LinkedIn ID
          - `display_name`     the formatted full name
          - `name`             family and given name
          - `emails`           the primary email address, if granted
          - `photos`           the picture URL, if any

        Args:
            access_token: The LinkedIn access token.

        Returns:
            LinkedInProfile: The normalized profile.

        Raises:
            InternalOAuthError: If the profile request fails.
            ProfileParseError: If the response is not a valid JSON profile.
        """
        with tracer.start_as_current_span("fetch_user_profile") as span:
            try:
                body, _ = await self._oauth2.get(
                    self.profile_url, access_token, access_token_name=LINKEDIN_ACCESS_TOKEN_NAME
                )
            except Exception as e:
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise InternalOAuthError("failed to fetch user profile", oauth_error=e) from e

            profile = LinkedInProfile.from_body(body)

            profile_hash = self._anonymize(profile.id)
            logger.info(f"Fetched LinkedIn profile {profile_hash}")
            span.set_attribute("enduser.id", profile_hash)
            return profile

    async def _load_user_profile(self, access_token: str) -> LinkedInProfile | None:
        """
        Loads the profile unless the configured skip policy opts out for this token.
        """
        if await self.config.skip_user_profile.should_skip(access_token):
            logger.debug("Skipping LinkedIn profile fetch")
            return None
        return await self.user_profile(access_token)
