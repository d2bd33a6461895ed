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
LinkedIn access-token authentication strategy for the implicit (token) OAuth 2.0 flow.
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .config import LinkedInTokenConfig
from .exceptions import CoreasonLinkedInError, InternalOAuthError, ProfileParseError
from .models import (
    AuthError,
    AuthFailure,
    AuthOutcomeHandler,
    AuthResult,
    AuthSuccess,
    IncomingRequest,
    LinkedInProfile,
    VerifyResult,
)
from .oauth2_client import OAuth2Client
from .profile_fields import LinkedInScope, convert_scope_to_profile_fields
from .skip_policy import AlwaysSkip, AsyncSkip, NeverSkip, SkipPolicy, SyncSkip
from .strategy import LinkedInTokenStrategy

__all__ = [
    "AlwaysSkip",
    "AsyncSkip",
    "AuthError",
    "AuthFailure",
    "AuthOutcomeHandler",
    "AuthResult",
    "AuthSuccess",
    "CoreasonLinkedInError",
    "IncomingRequest",
    "InternalOAuthError",
    "LinkedInProfile",
    "LinkedInScope",
    "LinkedInTokenConfig",
    "LinkedInTokenStrategy",
    "NeverSkip",
    "OAuth2Client",
    "ProfileParseError",
    "SkipPolicy",
    "SyncSkip",
    "VerifyResult",
    "convert_scope_to_profile_fields",
]
