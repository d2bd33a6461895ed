import asyncio
import contextlib
import os
import sys

# Add src to path for running directly
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "../src")))

from anyio import create_task_group
from pydantic import SecretStr

from coreason_linkedin_token import (
    IncomingRequest,
    LinkedInProfile,
    LinkedInTokenConfig,
    LinkedInTokenStrategy,
    VerifyResult,
)


async def verify(access_token: str, refresh_token: str | None, profile: LinkedInProfile | None) -> VerifyResult:
    if profile is None:
        return VerifyResult(user=False, info={"message": "profile unavailable"})
    return VerifyResult(user={"linkedin_id": profile.id, "name": profile.display_name})


async def main() -> None:
    """
    Authenticates two client-supplied LinkedIn tokens concurrently against one strategy.
    Without real tokens both attempts end in an error outcome from the profile endpoint.
    """
    print(">>> Starting LinkedIn token login example")

    config = LinkedInTokenConfig(
        client_id=os.environ.get("LINKEDIN_CLIENT_ID", "example-client"),
        client_secret=SecretStr(os.environ.get("LINKEDIN_CLIENT_SECRET", "example-secret")),
        scope=["r_basicprofile", "r_emailaddress"],
        http_timeout=5.0,
    )

    requests = [
        IncomingRequest(body={"access_token": os.environ.get("LINKEDIN_ACCESS_TOKEN", "token-from-spa")}),
        IncomingRequest(headers={"access_token": "token-from-mobile-app"}),
    ]

    async with LinkedInTokenStrategy(config, verify) as strategy:
        print(f">>> Profile URL: {strategy.profile_url}")

        async def attempt(request: IncomingRequest) -> None:
            result = await strategy.authenticate(request)
            print(f"    - {result.kind}: {result!r}")

        async with create_task_group() as tg:
            for request in requests:
                tg.start_soon(attempt, request)

    print(">>> Done.")


if __name__ == "__main__":
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(main())
