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
Secure HTTP transport and bounded response reading for provider calls.
"""

import ipaddress
import socket

import anyio
import httpx

from coreason_linkedin_token.exceptions import OversizedResponseError, SecurityError
from coreason_linkedin_token.utils.logger import logger

MAX_RESPONSE_BYTES = 1_000_000


def _is_blocked(ip_obj: ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    return (
        ip_obj.is_private
        or ip_obj.is_loopback
        or ip_obj.is_link_local
        or ip_obj.is_reserved
        or ip_obj.is_multicast
    )


class SafeAsyncTransport(httpx.AsyncHTTPTransport):
    """
    An HTTP transport that pins each request to a public IP address.

    The hostname is resolved once, resolved addresses in private, loopback,
    link-local, reserved or multicast ranges are rejected, and the connection is
    made to the first public address while the Host header and SNI keep the
    original hostname for TLS verification. This prevents SSRF and DNS
    rebinding through a configurable profile URL.
    """

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        hostname = request.url.host

        try:
            literal_ip = ipaddress.ip_address(hostname)
        except ValueError:
            literal_ip = None

        if literal_ip is not None:
            if _is_blocked(literal_ip):
                logger.warning(f"Security violation: Blocked access to {hostname}")
                raise SecurityError(f"Access to {hostname} is blocked")
            return await super().handle_async_request(request)

        try:
            addr_infos = await anyio.to_thread.run_sync(socket.getaddrinfo, hostname, None, 0, socket.SOCK_STREAM)
        except socket.gaierror as e:
            logger.error(f"DNS resolution failed for {hostname}: {e}")
            raise SecurityError(f"DNS resolution failed for {hostname}") from e

        target_ip: str | None = None
        for _, _, _, _, sockaddr in addr_infos:
            try:
                ip_obj = ipaddress.ip_address(sockaddr[0])
            except ValueError:
                continue
            if _is_blocked(ip_obj):
                logger.warning(f"Security violation: {hostname} resolved to blocked address {ip_obj}")
                continue
            target_ip = str(ip_obj)
            break

        if target_ip is None:
            raise SecurityError(f"Security violation: No valid public IP found for {hostname}")

        request.extensions["sni_hostname"] = hostname
        if "Host" not in request.headers:
            request.headers["Host"] = request.url.netloc.decode("ascii")
        request.url = request.url.copy_with(host=target_ip)

        logger.debug(f"DNS Pinned: {hostname} -> {target_ip}")
        return await super().handle_async_request(request)


async def read_bounded(response: httpx.Response, limit: int = MAX_RESPONSE_BYTES) -> bytes:
    """
    Reads a streamed response body, refusing anything larger than `limit` bytes.

    Raises:
        OversizedResponseError: If Content-Length or the streamed body exceeds the limit.
    """
    content_length = response.headers.get("Content-Length")
    if content_length and content_length.isdigit() and int(content_length) > limit:
        raise OversizedResponseError(f"Response too large ({content_length} bytes)")

    content = bytearray()
    async for chunk in response.aiter_bytes():
        content.extend(chunk)
        if len(content) > limit:
            raise OversizedResponseError("Response too large")
    return bytes(content)
