"""
Origin Forwarder

Sends the (possibly rewritten) request to the origin server and relays the
origin's status, headers and body. The inbound body is fully read before
forwarding; nothing is streamed.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

import httpx
from fastapi.responses import Response

from core.config import Settings, get_settings
from core.logger import get_logger
from gatekeeper.errors import TransportError
from gatekeeper.token_codec import ParsedToken

logger = get_logger(__name__)

# Connection-scoped headers are never relayed in either direction
HOP_BY_HOP_HEADERS = frozenset([
    "connection", "keep-alive", "proxy-authenticate",
    "proxy-authorization", "te", "trailers",
    "transfer-encoding", "upgrade",
])

# RFC 6265 cookie-octet
_COOKIE_VALUE_PATTERN = re.compile(r"^[\x21\x23-\x2B\x2D-\x3A\x3C-\x5B\x5D-\x7E]+$")


def _relayable(name: str) -> bool:
    lowered = name.lower()
    return lowered not in HOP_BY_HOP_HEADERS and lowered != "content-length"


@dataclass
class OriginResponse:
    """Response received from the origin, body fully read and undecoded."""

    status_code: int
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""

    def header(self, name: str) -> Optional[str]:
        """Return the first origin header called ``name``, or None."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    def to_response(self, method: str = "GET") -> Response:
        """
        Build the response relayed to the caller, keeping repeated headers.

        Content-Length is recomputed from the relayed body, except for HEAD
        requests and empty bodies: there the origin's value describes a body
        that is not sent, so it is relayed as received.
        """
        response = Response(content=self.body, status_code=self.status_code)
        for name, value in self.headers:
            if _relayable(name):
                response.headers.append(name, value)

        origin_length = self.header("content-length")
        if origin_length is not None and (method.upper() == "HEAD" or not self.body):
            response.headers["content-length"] = origin_length
        return response


class OriginForwarder:
    """
    Forwards requests to the origin over a shared httpx.AsyncClient.

    The client only holds the connection pool; no per-request state is kept.
    Transport failures are not retried.
    """

    def __init__(self, client: httpx.AsyncClient):
        # Only the caller's headers go upstream, not httpx's defaults
        client.headers.clear()
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def forward(
        self,
        method: str,
        url: str,
        headers: list[tuple[str, str]],
        body: bytes,
    ) -> OriginResponse:
        """
        Send a request to the origin and read its full response.

        Args:
            method: HTTP method of the inbound request
            url: Absolute origin URL
            headers: Inbound headers; hop-by-hop headers and Content-Length are dropped
            body: Inbound body, attached only if non-empty

        Returns:
            OriginResponse with the raw (still content-encoded) body

        Raises:
            TransportError: If the request cannot be built, the origin is unreachable
                or its body cannot be read
        """
        outbound_headers = [(name, value) for name, value in headers if _relayable(name)]

        try:
            request = self._client.build_request(
                method,
                url,
                headers=outbound_headers,
                content=body or None,
            )
            response = await self._client.send(request, stream=True)
            try:
                if response.is_stream_consumed:
                    # Body was already read by the transport
                    raw_body = response.content
                else:
                    raw_body = b"".join([chunk async for chunk in response.aiter_raw()])
            finally:
                await response.aclose()
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as e:
            raise TransportError(f"Origin request to {url} failed: {e!s}") from e

        logger.debug(f"Origin responded {response.status_code} for {method} {url}")
        return OriginResponse(
            status_code=response.status_code,
            headers=list(response.headers.multi_items()),
            body=raw_body,
        )


def attach_access_cookie(response: Response, token: ParsedToken, settings: Settings) -> None:
    """
    Add the access-token cookie to a relayed response.

    Nothing is added when the composite token had no access segment, when
    the segment was empty, or when the value is not a valid cookie value.
    Cookies set by the origin are kept.
    """
    access_token = token.access_token
    if access_token is None:
        return
    if not access_token:
        logger.debug("Access token segment present but empty, no cookie set")
        return
    if not _COOKIE_VALUE_PATTERN.match(access_token):
        logger.warning("Access token is not a valid cookie value, no cookie set")
        return

    response.headers.append(
        "set-cookie",
        f"{settings.access_cookie_name}={access_token}; Path=/; HttpOnly; Secure; SameSite=Strict",
    )


# Global forwarder instance
_forwarder: Optional[OriginForwarder] = None


def get_forwarder() -> OriginForwarder:
    """
    Get or create the forwarder instance.

    The underlying client is created on first use with the configured
    origin timeout and never follows redirects.
    """
    global _forwarder

    if _forwarder is None:
        settings = get_settings()
        client = httpx.AsyncClient(
            timeout=settings.origin_timeout_seconds,
            follow_redirects=False,
        )
        _forwarder = OriginForwarder(client)

    return _forwarder


async def close_forwarder() -> None:
    """Close the shared client, if one was created."""
    global _forwarder

    if _forwarder is not None:
        await _forwarder.client.aclose()
        _forwarder = None
