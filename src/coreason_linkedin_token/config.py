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
Configuration for the coreason-linkedin-token package.
"""

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from coreason_linkedin_token.skip_policy import NeverSkip, SkipPolicy

DEFAULT_AUTHORIZATION_URL = "https://www.linkedin.com"
DEFAULT_TOKEN_URL = "https://www.linkedin.com/uas/oauth2/accessToken"


class LinkedInTokenConfig(BaseSettings):
    """
    Configuration settings for the LinkedIn token strategy.

    The instance is frozen once built and is shared read-only by every
    `authenticate` call on a strategy.

    Attributes:
        client_id (str): The LinkedIn application's client ID.
        client_secret (SecretStr): The LinkedIn application's client secret.
        authorization_url (str): Authorization endpoint of the provider.
        token_url (str): Token endpoint of the provider.
        profile_url (str | None): Explicit profile endpoint. Derived from scope/profile_fields when unset.
        scope (list[str] | None): Requested LinkedIn scopes, drives the profile field selection.
        profile_fields (list[str] | None): Explicit LinkedIn profile field list. Wins over `scope`.
        scope_separator (str): Separator used when the scope list is rendered as a string.
        pass_request_to_callback (bool): Pass the incoming request as first argument to verify.
        skip_user_profile (SkipPolicy): Whether the profile fetch is bypassed.
        http_timeout (float): Timeout in seconds for the profile request.
        pii_salt (SecretStr): Salt for anonymizing profile ids in logs/traces.
        unsafe_local_dev (bool): Allows plain HTTP endpoints. Local testing only.
    """

    model_config = SettingsConfigDict(
        env_prefix="COREASON_LINKEDIN_",
        case_sensitive=False,
        frozen=True,
    )

    client_id: str
    client_secret: SecretStr
    authorization_url: str = DEFAULT_AUTHORIZATION_URL
    token_url: str = DEFAULT_TOKEN_URL
    profile_url: str | None = None
    scope: list[str] | None = None
    profile_fields: list[str] | None = None
    scope_separator: str = ","
    pass_request_to_callback: bool = False
    skip_user_profile: SkipPolicy = Field(default_factory=NeverSkip)
    http_timeout: float = Field(default=10.0, gt=0, description="Timeout in seconds for the profile request.")
    pii_salt: SecretStr = SecretStr("coreason-unsafe-default-salt")
    unsafe_local_dev: bool = False

    @field_validator("client_id")
    @classmethod
    def require_client_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("client_id must not be empty.")
        return v

    @field_validator("client_secret")
    @classmethod
    def require_client_secret(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("client_secret must not be empty.")
        return v

    @field_validator("scope_separator")
    @classmethod
    def require_separator(cls, v: str) -> str:
        if not v:
            return ","
        return v

    @model_validator(mode="after")
    def validate_https(self) -> "LinkedInTokenConfig":
        """
        Ensures that all provider endpoints use HTTPS, unless strictly opted out for local dev.
        """
        if self.unsafe_local_dev:
            return self

        for name in ("authorization_url", "token_url", "profile_url"):
            url = getattr(self, name)
            if url and not url.startswith("https://"):
                raise ValueError(
                    f"{name} must use HTTPS. Set 'unsafe_local_dev=True' only for local testing."
                )
        return self

    def requested_scope(self) -> str | None:
        """
        Returns the configured scope rendered with `scope_separator`, or None if no scope is set.
        """
        if not self.scope:
            return None
        return self.scope_separator.join(self.scope)
