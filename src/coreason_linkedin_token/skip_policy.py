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
Policies deciding whether the profile fetch is skipped for a given access token.

The variant is chosen explicitly when the configuration is built:

    LinkedInTokenConfig(..., skip_user_profile=SyncSkip(predicate=lambda: settings.offline))
    LinkedInTokenConfig(..., skip_user_profile=AsyncSkip(predicate=is_known_token))
"""

from collections.abc import Awaitable, Callable
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class _SkipPolicyBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    async def should_skip(self, access_token: str) -> bool:
        raise NotImplementedError


class NeverSkip(_SkipPolicyBase):
    """Always fetch the profile (default)."""

    kind: Literal["never"] = "never"

    async def should_skip(self, access_token: str) -> bool:
        return False


class AlwaysSkip(_SkipPolicyBase):
    """Never fetch the profile; the verify callback receives `None`."""

    kind: Literal["always"] = "always"

    async def should_skip(self, access_token: str) -> bool:
        return True


class SyncSkip(_SkipPolicyBase):
    """Skip when a zero-argument predicate returns a truthy value."""

    kind: Literal["sync"] = "sync"
    predicate: Callable[[], bool]

    async def should_skip(self, access_token: str) -> bool:
        return bool(self.predicate())


class AsyncSkip(_SkipPolicyBase):
    """Skip when an awaitable predicate, called with the access token, resolves truthy."""

    kind: Literal["async"] = "async"
    predicate: Callable[[str], Awaitable[bool]]

    async def should_skip(self, access_token: str) -> bool:
        return bool(await self.predicate(access_token))


SkipPolicy = Annotated[NeverSkip | AlwaysSkip | SyncSkip | AsyncSkip, Field(discriminator="kind")]
