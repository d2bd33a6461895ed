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
Custom exceptions for the coreason-linkedin-token package.
"""


class CoreasonLinkedInError(Exception):
    """Base exception for all coreason-linkedin-token errors."""


class ConfigurationError(CoreasonLinkedInError):
    """Raised when the strategy or OAuth2 client is misconfigured (e.g. missing credentials)."""


class InternalOAuthError(CoreasonLinkedInError):
    """
    Raised when a request to the provider fails at the transport or HTTP level.

    The underlying cause is kept on `oauth_error` (and chained as `__cause__`).
    """

    def __init__(self, message: str, oauth_error: BaseException | None = None) -> None:
        super().__init__(message)
        self.oauth_error = oauth_error

    def __str__(self) -> str:
        if self.oauth_error is None:
            return super().__str__()
        return f"{super().__str__()}: {self.oauth_error}"


class OAuth2RequestError(CoreasonLinkedInError):
    """Raised by the OAuth2 client when the resource server answers with an HTTP error status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Resource server responded with HTTP {status_code}")
        self.status_code = status_code
        self.body = body


class ProfileParseError(CoreasonLinkedInError):
    """Raised when the profile response is not a valid JSON profile object."""


class OversizedResponseError(CoreasonLinkedInError):
    """Raised when an HTTP response is too large."""


class SecurityError(CoreasonLinkedInError):
    """Raised when a security violation is detected (e.g. SSRF attempt)."""
