"""
Gatekeeper Package

Request verification pipeline for the login endpoint:
- Request classification and query rewriting
- Client IP resolution
- Composite token parsing
- HMAC proof verification
"""

from .client_ip import resolve_client_ip
from .errors import (
    ClientInputError,
    ConfigurationError,
    GatekeeperError,
    MalformedToken,
    MissingToken,
    TransportError,
    VerificationFailure,
)
from .query import (
    QueryParam,
    RequestClass,
    build_origin_url,
    classify_request,
    get_param,
    get_raw_param,
    parse_query,
    rewrite_query,
)
from .token_codec import ParsedToken, parse_composite_token
from .verifier import (
    build_proof_token,
    check_proof_token,
    compute_digest,
    constant_time_equals,
    format_timestamp,
    verify_hmac_token,
)

__all__ = [
    # Errors
    "GatekeeperError",
    "ConfigurationError",
    "ClientInputError",
    "MissingToken",
    "MalformedToken",
    "VerificationFailure",
    "TransportError",
    # Pipeline
    "QueryParam",
    "RequestClass",
    "parse_query",
    "get_param",
    "get_raw_param",
    "classify_request",
    "rewrite_query",
    "build_origin_url",
    "resolve_client_ip",
    "ParsedToken",
    "parse_composite_token",
    "compute_digest",
    "build_proof_token",
    "format_timestamp",
    "constant_time_equals",
    "check_proof_token",
    "verify_hmac_token",
]
