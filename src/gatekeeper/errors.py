"""
Gatekeeper Errors

Every rejection carries a fixed public ``detail`` that is sent to the
caller and a ``reason`` that only goes to the logs. Verification failures
share one public message so callers cannot tell expiry from a bad digest.
"""


class GatekeeperError(Exception):
    """Base class for errors that end a request without forwarding it."""

    status_code: int = 400
    detail: str = "Bad request"

    def __init__(self, reason: str | None = None):
        self.reason = reason or self.detail
        super().__init__(self.reason)


class ConfigurationError(GatekeeperError):
    """The HMAC secret is missing or empty."""

    status_code = 400
    detail = "missing secret"


class ClientInputError(GatekeeperError):
    """The caller sent a token that cannot be parsed."""


class MissingToken(ClientInputError):
    status_code = 400
    detail = "Missing oait parameter"


class MalformedToken(ClientInputError):
    status_code = 403
    detail = "Invalid token format"


class VerificationFailure(GatekeeperError):
    """The proof token is malformed, expired or signed for another caller."""

    status_code = 403
    detail = "Invalid or expired token"


class TransportError(GatekeeperError):
    """The origin could not be reached or the outbound request could not be built."""

    status_code = 502
    detail = "Bad gateway"
