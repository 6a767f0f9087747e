"""
Services Package

Contains service layer classes for:
- Forwarding verified requests to the origin
"""

from services.forwarder import (
    OriginForwarder,
    OriginResponse,
    attach_access_cookie,
    close_forwarder,
    get_forwarder,
)

__all__ = [
    "OriginForwarder",
    "OriginResponse",
    "attach_access_cookie",
    "get_forwarder",
    "close_forwarder",
]
