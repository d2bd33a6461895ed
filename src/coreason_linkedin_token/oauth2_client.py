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
Minimal OAuth 2.0 resource client used to call the provider with an access token.
"""

import httpx
from authlib.common.urls import add_params_to_uri
from pydantic import SecretStr

from coreason_linkedin_token.exceptions import ConfigurationError, OAuth2RequestError
from coreason_linkedin_token.transport import read_bounded
from coreason_linkedin_token.utils.logger import logger


class OAuth2Client:
    """
    Issues access-token authenticated requests against an OAuth 2.0 resource server.

    The client holds no per-request state: the name of the query parameter that
    carries the token is passed on every call, so one instance can serve
    concurrent requests for providers with different conventions.

    Attributes:
        client_id (str): The OAuth client ID.
        authorize_url (str): The provider's authorization endpoint.
        token_url (str): The provider's token endpoint.
        access_token_name (str): Default query parameter name for the access token.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: SecretStr | str,
        http_client: httpx.AsyncClient,
        authorize_url: str = "",
        token_url: str = "",
        access_token_name: str = "access_token",
    ) -> None:
        """
        Initialize the OAuth2Client.

        Args:
            client_id: The OAuth client ID. Must not be empty.
            client_secret: The OAuth client secret. Must not be empty.
            http_client: The async HTTP client used for all requests.
            authorize_url: The provider's authorization endpoint.
            token_url: The provider's token endpoint.
            access_token_name: Default query parameter name for the access token.

        Raises:
            ConfigurationError: If the client id or secret is missing.
        """
        secret = client_secret if isinstance(client_secret, SecretStr) else SecretStr(client_secret)
        if not client_id:
            raise ConfigurationError("OAuth2Client requires a client_id.")
        if not secret.get_secret_value():
            raise ConfigurationError("OAuth2Client requires a client_secret.")

        self.client_id = client_id
        self._client_secret = secret
        self.http_client = http_client
        self.authorize_url = authorize_url
        self.token_url = token_url
        self.access_token_name = access_token_name

    async def get(
        self, url: str, access_token: str, access_token_name: str | None = None
    ) -> tuple[str, httpx.Response]:
        """
        Performs an authenticated GET, passing the token as a query parameter.

        Args:
            url: The resource URL.
            access_token: The bearer token.
            access_token_name: Query parameter name for the token. Defaults to `self.access_token_name`.

        Returns:
            tuple[str, httpx.Response]: The decoded body and the response.

        Raises:
            OAuth2RequestError: If the server answers with a non-2xx status.
            OversizedResponseError: If the body exceeds the size limit.
            httpx.HTTPError: For transport failures.
        """
        name = access_token_name or self.access_token_name
        request_url = add_params_to_uri(url, [(name, access_token)])

        async with self.http_client.stream("GET", request_url, follow_redirects=True) as response:
            content = await read_bounded(response)

        body = content.decode(response.encoding or "utf-8", errors="replace")
        if not response.is_success:
            logger.warning(f"Resource request to {url} failed with HTTP {response.status_code}")
            raise OAuth2RequestError(response.status_code, body)
        return body, response
