"""
HMAC Proof Verification

A proof token has the form ``<timestamp>-<base64 digest>`` where

    digest = base64(HMAC-SHA256(secret, "<client_ip>:<timestamp>"))

The token proves that its holder received it from an issuer that knows the
secret, for this client IP, at ``timestamp``. Only the age of the token is
bounded: timestamps in the future are accepted.
"""

import base64
import hashlib
import hmac
import math
import re
import time
from decimal import Decimal
from typing import Optional, Union

from core.logger import get_logger

logger = get_logger(__name__)

# Non-negative decimal, optional exponent. No sign, whitespace, inf or nan.
_TIMESTAMP_PATTERN = re.compile(r"^(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

BytesLike = Union[str, bytes, bytearray, memoryview]


def looks_like_proof_token(value: str) -> bool:
    """Return True if ``value`` has the ``<timestamp>-<digest>`` shape."""
    parts = value.split("-")
    return len(parts) == 2 and bool(parts[1]) and bool(_TIMESTAMP_PATTERN.match(parts[0]))


def format_timestamp(timestamp: float) -> str:
    """
    Render a timestamp the way the issuer puts it into the HMAC message.

    Shortest round-trip digits in positional notation, without a trailing
    ``.0``: 1000.0 -> "1000", 1700000000.25 -> "1700000000.25".
    """
    text = repr(timestamp)
    if "e" in text:
        text = format(Decimal(text), "f")
    if text.endswith(".0"):
        text = text[:-2]
    return text


def compute_digest(client_ip: str, secret: str, timestamp: float) -> str:
    """
    Compute the expected proof digest.

    Args:
        client_ip: Resolved client IP, used verbatim
        secret: Shared HMAC secret
        timestamp: Issue time in seconds since the epoch

    Returns:
        Base64-encoded (standard alphabet, padded) HMAC-SHA256 digest
    """
    message = f"{client_ip}:{format_timestamp(timestamp)}"
    mac = hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256)
    return base64.b64encode(mac.digest()).decode("ascii")


def build_proof_token(client_ip: str, secret: str, timestamp: float) -> str:
    """Assemble a ``<timestamp>-<digest>`` proof token for the given caller."""
    return f"{format_timestamp(timestamp)}-{compute_digest(client_ip, secret, timestamp)}"


def constant_time_equals(a: BytesLike, b: BytesLike) -> bool:
    """
    Compare two values without short-circuiting on the first differing byte.

    Lengths are compared first and a mismatch returns immediately; only
    fixed-length digests are compared in practice.
    """
    left = a.encode("utf-8") if isinstance(a, str) else a
    right = b.encode("utf-8") if isinstance(b, str) else b

    if len(left) != len(right):
        logger.debug("length mismatch!")
        return False

    result = 0
    for x, y in zip(left, right):
        result |= x ^ y
    return result == 0


def check_proof_token(
    client_ip: str,
    proof_token: str,
    secret: str,
    validity_seconds: float,
    now: Optional[float] = None,
) -> Optional[str]:
    """
    Validate a proof token and explain a rejection.

    Args:
        client_ip: Resolved client IP
        proof_token: ``<timestamp>-<digest>`` token from the request
        secret: Shared HMAC secret
        validity_seconds: Maximum token age
        now: Current time in seconds since the epoch (defaults to time.time())

    Returns:
        None if the token is valid, otherwise a short rejection reason
        meant for diagnostics only
    """
    token_parts = proof_token.split("-")
    if len(token_parts) != 2:
        return "malformed proof token"

    timestamp_text, provided_hash = token_parts
    if not _TIMESTAMP_PATTERN.match(timestamp_text):
        return "invalid timestamp"
    timestamp = float(timestamp_text)
    if not math.isfinite(timestamp):
        return "invalid timestamp"

    current_time = time.time() if now is None else now
    if current_time - timestamp > validity_seconds:
        return "token expired"

    expected_hash = compute_digest(client_ip, secret, timestamp)
    if not constant_time_equals(expected_hash, provided_hash):
        return "digest mismatch"

    return None


def verify_hmac_token(
    client_ip: str,
    proof_token: str,
    secret: str,
    validity_seconds: float,
    now: Optional[float] = None,
) -> bool:
    """Return True if ``proof_token`` is valid for ``client_ip`` at ``now``."""
    return check_proof_token(client_ip, proof_token, secret, validity_seconds, now) is None
