"""
Login Gate Router

Catch-all route in front of the origin. Login requests must carry a valid
HMAC proof token; every other request is forwarded untouched.
"""

import time
from typing import Callable

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from core.config import Settings, get_settings
from core.logger import get_logger
from gatekeeper import (
    ConfigurationError,
    VerificationFailure,
    build_origin_url,
    check_proof_token,
    classify_request,
    get_raw_param,
    parse_composite_token,
    parse_query,
    resolve_client_ip,
    rewrite_query,
)
from services.forwarder import OriginForwarder, attach_access_cookie, get_forwarder

logger = get_logger(__name__)

router = APIRouter(tags=["gate"])

PROXIED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def get_clock() -> Callable[[], float]:
    """Clock used for token expiry checks (seconds since the epoch)."""
    return time.time


def _raw_path(request: Request) -> str:
    """Inbound path as sent by the client, without re-encoding."""
    raw_path = request.scope.get("raw_path")
    if raw_path:
        return raw_path.split(b"?", 1)[0].decode("latin-1")
    return request.url.path


@router.api_route("/{path:path}", methods=PROXIED_METHODS)
async def gate(
    request: Request,
    settings: Settings = Depends(get_settings),
    forwarder: OriginForwarder = Depends(get_forwarder),
    clock: Callable[[], float] = Depends(get_clock),
) -> Response:
    """
    Verify login requests and forward everything that passes to the origin.

    Raises:
        ConfigurationError: If no HMAC secret is configured
        MissingToken: If a login request has no token parameter
        MalformedToken: If the composite token lacks an application or proof part
        VerificationFailure: If the proof token is invalid or expired
        TransportError: If the origin cannot be reached
    """
    secret = settings.resolve_secret()
    if not secret:
        raise ConfigurationError("missing secret")

    raw_query = request.url.query
    params = parse_query(raw_query)
    path = _raw_path(request)

    request_class = classify_request(params, settings)
    if not request_class.requires_verification:
        body = await request.body()
        origin = await forwarder.forward(
            request.method,
            build_origin_url(settings.origin_url, path, raw_query),
            request.headers.items(),
            body,
        )
        return origin.to_response(request.method)

    token = parse_composite_token(get_raw_param(params, settings.token_param), settings.token_layout)
    client_ip = resolve_client_ip(request.headers, settings)
    logger.debug(
        f"formsToken:{token.application_token}, clientIP:{client_ip}, "
        f"providedToken:{token.proof_token}, accessToken:{token.access_token}"
    )

    reason = check_proof_token(
        client_ip,
        token.proof_token,
        secret,
        settings.token_validity_seconds,
        now=clock(),
    )
    if reason is not None:
        raise VerificationFailure(f"{reason} (clientIP:{client_ip})")

    body = await request.body()
    origin = await forwarder.forward(
        request.method,
        build_origin_url(settings.origin_url, path, rewrite_query(params, token.application_token, settings)),
        request.headers.items(),
        body,
    )

    response = origin.to_response(request.method)
    attach_access_cookie(response, token, settings)
    return response
