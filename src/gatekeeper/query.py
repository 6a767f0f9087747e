"""
Query Classification and Rewriting

Query strings are parsed by hand rather than with ``parse_qsl``. Each pair
keeps the text it arrived as: the token parameter is split on its ``++``
delimiter before any percent-decoding, and pairs the gate does not own are
forwarded to the origin byte for byte.
"""

from enum import Enum
from typing import NamedTuple, Optional
from urllib.parse import quote, unquote, urlsplit

from core.config import Settings
from core.logger import get_logger

logger = get_logger(__name__)


class QueryParam(NamedTuple):
    """One ``key=value`` pair: decoded name and value plus the text as received."""

    key: str
    value: str
    raw: str

    @property
    def raw_value(self) -> str:
        """Value part of the pair, still percent-encoded."""
        return self.raw.partition("=")[2]


QueryParams = list[QueryParam]


class RequestClass(Enum):
    """Outcome of inspecting the function-id parameter."""

    LOGIN = "login"
    MISSING_FUNCTION_ID = "missing_function_id"
    NON_LOGIN = "non_login"

    @property
    def requires_verification(self) -> bool:
        return self is RequestClass.LOGIN


def parse_query(query: str) -> QueryParams:
    """
    Parse a raw query string into ordered pairs.

    A pair without ``=`` gets an empty value and empty segments are skipped.
    Decoding uses ``unquote``, so ``+`` is kept as-is rather than turned into
    a space.
    """
    params: QueryParams = []
    for pair in query.split("&"):
        if not pair:
            continue
        key, _, value = pair.partition("=")
        params.append(QueryParam(unquote(key), unquote(value), pair))
    return params


def _last(params: QueryParams, name: str) -> Optional[QueryParam]:
    found = None
    for param in params:
        if param.key == name:
            found = param
    return found


def get_param(params: QueryParams, name: str) -> Optional[str]:
    """Return the decoded value of the last occurrence of ``name``, or None."""
    param = _last(params, name)
    return param.value if param is not None else None


def get_raw_param(params: QueryParams, name: str) -> Optional[str]:
    """Return the still-encoded value of the last occurrence of ``name``, or None."""
    param = _last(params, name)
    return param.raw_value if param is not None else None


def classify_request(params: QueryParams, settings: Settings) -> RequestClass:
    """
    Decide whether a request must pass HMAC verification.

    Only an exact match of the function-id parameter against the login
    designator triggers verification; everything else bypasses it.
    """
    function_id = get_param(params, settings.function_id_param)

    if function_id is None:
        logger.info("missing function_id - bypassing HMAC validation")
        return RequestClass.MISSING_FUNCTION_ID

    if function_id != settings.login_function_id:
        logger.info(f"Not a login request ({function_id!r}) - bypassing HMAC validation")
        return RequestClass.NON_LOGIN

    return RequestClass.LOGIN


def rewrite_query(params: QueryParams, application_token: str, settings: Settings) -> str:
    """
    Build the outbound query string.

    Drops every occurrence of the token parameter, keeps the remaining pairs
    exactly as received and in their original order, and re-appends the
    application token under the token parameter name when it is non-empty.

    Args:
        params: Parsed inbound query
        application_token: Decoded token the origin expects to receive
        settings: Application settings

    Returns:
        Encoded query string without a leading '?'
    """
    pairs = [param.raw for param in params if param.key != settings.token_param]
    if application_token:
        pairs.append(f"{quote(settings.token_param, safe='')}={quote(application_token, safe='')}")
    return "&".join(pairs)


def build_origin_url(origin_url: str, path: str, query: str) -> str:
    """
    Join the origin base URL, the inbound path and a query string.

    Args:
        origin_url: Base URL of the origin, optionally with a path prefix
        path: Inbound request path (starting with '/')
        query: Encoded query string, may be empty

    Returns:
        Absolute URL to send the outbound request to
    """
    base = urlsplit(origin_url)
    prefix = base.path.rstrip("/")
    url = f"{base.scheme}://{base.netloc}{prefix}{path or '/'}"
    if query:
        url = f"{url}?{query}"
    return url
