"""
Client IP Resolution

The resolved address is part of the HMAC message, so header precedence,
trimming and fallback must match the token issuer exactly.
"""

from collections.abc import Mapping

from core.config import Settings
from core.logger import get_logger

logger = get_logger(__name__)


def resolve_client_ip(headers: Mapping[str, str], settings: Settings) -> str:
    """
    Derive the caller's IP from request headers.

    Args:
        headers: Case-insensitive request headers
        settings: Application settings (header names and fallback)

    Returns:
        The direct-connection header value, else the first X-Forwarded-For
        entry, else the loopback fallback. The value is not validated.
    """
    direct_ip = headers.get(settings.client_ip_header)
    if direct_ip:
        return direct_ip

    forwarded_for = headers.get(settings.forwarded_for_header)
    if forwarded_for is not None:
        return forwarded_for.split(",", 1)[0].strip()

    logger.warning("No client IP found in headers, using default")
    return settings.fallback_client_ip
