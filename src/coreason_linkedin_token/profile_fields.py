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
LinkedIn people API field selection.

The v1 people API returns only the fields named in the URL, e.g.
`/v1/people/~:(id,first-name,email-address)`. Scopes are mapped onto the
fields they unlock so that callers can request a profile by scope.
"""

from collections.abc import Sequence
from enum import StrEnum

PROFILE_API_BASE = "https://api.linkedin.com/v1/people/~"
DEFAULT_PROFILE_URL = (
    "https://api.linkedin.com/v1/people/~:(id,first-name,last-name,email-address,public-profile-url)?format=json"
)


class LinkedInScope(StrEnum):
    BASIC_PROFILE = "r_basicprofile"
    EMAIL_ADDRESS = "r_emailaddress"
    FULL_PROFILE = "r_fullprofile"


BASE_SCOPE = LinkedInScope.BASIC_PROFILE

SCOPE_PROFILE_FIELDS: dict[str, tuple[str, ...]] = {
    LinkedInScope.BASIC_PROFILE: (
        "id",
        "first-name",
        "last-name",
        "picture-url",
        "formatted-name",
        "maiden-name",
        "phonetic-first-name",
        "phonetic-last-name",
        "formatted-phonetic-name",
        "headline",
        "location:(name,country:(code))",
        "industry",
        "distance",
        "relation-to-viewer:(distance,connections)",
        "current-share",
        "num-connections",
        "num-connections-capped",
        "summary",
        "specialties",
        "positions",
        "site-standard-profile-request",
        "api-standard-profile-request:(headers,url)",
        "public-profile-url",
    ),
    LinkedInScope.EMAIL_ADDRESS: ("email-address",),
    LinkedInScope.FULL_PROFILE: (
        "last-modified-timestamp",
        "proposal-comments",
        "associations",
        "interests",
        "publications",
        "patents",
        "languages",
        "skills",
        "certifications",
        "educations",
        "courses",
        "volunteer",
        "three-current-positions",
        "three-past-positions",
        "num-recommenders",
        "recommendations-received",
        "mfeed-rss-url",
        "following",
        "job-bookmarks",
        "suggestions",
        "date-of-birth",
        "member-url-resources:(name,url)",
        "related-profile-views",
        "honors-awards",
    ),
}


def convert_scope_to_profile_fields(
    scope: Sequence[str] | None, profile_fields: Sequence[str] | None = None
) -> str:
    """
    Renders the comma-joined LinkedIn field list for a scope or an explicit field list.

    An explicit `profile_fields` is used verbatim. Otherwise the base scope is
    prepended when missing and the fields of every known scope are concatenated
    in scope order; unknown scopes are ignored. `scope` itself is not modified.

    Args:
        scope: Requested LinkedIn scopes.
        profile_fields: Explicit field names, wins over `scope`.

    Returns:
        str: Comma-joined field selector (may be empty).
    """
    if profile_fields is not None:
        return ",".join(profile_fields)

    if scope is None:
        return ""

    scopes = list(scope)
    if BASE_SCOPE not in scopes:
        scopes.insert(0, BASE_SCOPE)

    fields: list[str] = []
    for name in scopes:
        fields.extend(SCOPE_PROFILE_FIELDS.get(name, ()))
    return ",".join(fields)


def build_profile_url(
    profile_url: str | None = None,
    scope: Sequence[str] | None = None,
    profile_fields: Sequence[str] | None = None,
) -> str:
    """
    Resolves the profile endpoint: explicit URL, else field selection, else the default URL.
    """
    if profile_url:
        return profile_url
    if scope is None and profile_fields is None:
        return DEFAULT_PROFILE_URL
    fields = convert_scope_to_profile_fields(scope, profile_fields)
    return f"{PROFILE_API_BASE}:({fields})?format=json"
