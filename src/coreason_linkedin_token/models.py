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
Data models for the coreason-linkedin-token package.
"""

import json
from collections.abc import Mapping
from typing import Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from coreason_linkedin_token.exceptions import ProfileParseError


class IncomingRequest(BaseModel):
    """
    Read-only view of the HTTP request handed over by the hosting framework.

    Header names are matched case-insensitively.
    """

    model_config = ConfigDict(frozen=True)

    body: dict[str, Any] | None = None
    query: dict[str, Any] = Field(default_factory=dict)
    headers: dict[str, Any] = Field(default_factory=dict)

    @field_validator("headers", mode="before")
    @classmethod
    def lowercase_header_names(cls, v: Any) -> Any:
        if isinstance(v, Mapping):
            return {str(k).lower(): value for k, value in v.items()}
        return v

    def lookup(self, key: str) -> Any:
        """
        Returns the first non-empty value for `key`, searching body, then query, then headers.
        """
        for source in (self.body or {}, self.query, self.headers):
            value = source.get(key)
            if value:
                return value
        return None


class ProfileName(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    family_name: str | None = None
    given_name: str | None = None


class ProfileEmail(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str


class LinkedInProfile(BaseModel):
    """
    Normalized LinkedIn user profile.

    `model_dump(by_alias=True)` produces the camelCase shape (`displayName`,
    `name.familyName`, ...). The unparsed body and parsed JSON are kept on
    `raw` and `json_data` for fields that have no normalized counterpart.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    provider: Literal["linkedin"] = "linkedin"
    id: str
    display_name: str | None = None
    name: ProfileName = Field(default_factory=ProfileName)
    emails: list[ProfileEmail] = Field(default_factory=list)
    photos: list[str] = Field(default_factory=list)
    raw: str = Field(default="", alias="_raw")
    json_data: dict[str, Any] = Field(default_factory=dict, alias="_json")

    @classmethod
    def from_body(cls, body: str | bytes) -> "LinkedInProfile":
        """
        Builds a profile from the raw body of a LinkedIn people API response.

        A missing `emailAddress` yields an empty `emails` list rather than a `None` entry.

        Args:
            body: The response body, expected to hold a JSON object.

        Returns:
            LinkedInProfile: The normalized profile.

        Raises:
            ProfileParseError: If the body is not UTF-8 JSON, not an object, or lacks an `id`.
        """
        try:
            text = body.decode("utf-8") if isinstance(body, bytes) else body
            data = json.loads(text)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ProfileParseError(f"Profile response is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ProfileParseError(f"Profile response must be a JSON object, got {type(data).__name__}")
        if data.get("id") is None:
            raise ProfileParseError("Profile response is missing 'id'")

        email = data.get("emailAddress")
        picture = data.get("pictureUrl")
        try:
            return cls(
                id=str(data["id"]),
                display_name=data.get("formattedName"),
                name=ProfileName(family_name=data.get("lastName"), given_name=data.get("firstName")),
                emails=[ProfileEmail(value=email)] if email else [],
                photos=[picture] if picture else [],
                raw=text,
                json_data=data,
            )
        except ValidationError as e:
            raise ProfileParseError(f"Profile response has unexpected field types: {e}") from e

    def __repr__(self) -> str:
        # PII fields MUST be redacted in __repr__
        return (
            f"LinkedInProfile(provider={self.provider!r}, id='<REDACTED>', "
            f"display_name='<REDACTED>', emails=<{len(self.emails)} REDACTED>, "
            f"photos=<{len(self.photos)}>)"
        )

    def __str__(self) -> str:
        return self.__repr__()


class VerifyResult(BaseModel):
    """
    Outcome of the application's verify callback.

    A falsy `user` rejects the credentials; `info` is forwarded to the framework either way.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    user: Any = None
    info: Any = None


class AuthOutcomeHandler(Protocol):
    """The three terminal calls a hosting authentication framework expects from a strategy."""

    def success(self, user: Any, info: Any = None) -> None: ...

    def fail(self, info: Any = None) -> None: ...

    def error(self, err: BaseException) -> None: ...


class AuthSuccess(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["success"] = "success"
    user: Any
    info: Any = None

    def dispatch(self, handler: AuthOutcomeHandler) -> None:
        handler.success(self.user, self.info)


class AuthFailure(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["failure"] = "failure"
    info: Any = None

    def dispatch(self, handler: AuthOutcomeHandler) -> None:
        handler.fail(self.info)


class AuthError(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["error"] = "error"
    error: BaseException

    def dispatch(self, handler: AuthOutcomeHandler) -> None:
        handler.error(self.error)


AuthResult = AuthSuccess | AuthFailure | AuthError
