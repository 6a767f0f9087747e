"""
Composite Token Codec

The inbound token parameter carries an application token and a proof token
joined by ``++``, optionally followed by ``++`` and an access token. Issuers
differ in which of the first two segments holds the proof, so the layout is
configurable; ``auto`` keeps the application-first order unless only the
first segment is shaped like a proof token.

Only the structure is checked here; the proof itself is validated by the
verifier.
"""

from dataclasses import dataclass
from typing import Literal, Optional
from urllib.parse import unquote

from gatekeeper.errors import MalformedToken, MissingToken
from gatekeeper.verifier import looks_like_proof_token

TOKEN_DELIMITER = "++"

TokenLayout = Literal["auto", "application_first", "proof_first"]


@dataclass(frozen=True)
class ParsedToken:
    """Constituent parts of a composite token."""

    application_token: str
    proof_token: str
    access_token: Optional[str] = None  # None when the third segment is absent

    @property
    def has_access_token(self) -> bool:
        return bool(self.access_token)


def _proof_comes_first(first: str, second: str, layout: TokenLayout) -> bool:
    if layout == "proof_first":
        return True
    if layout == "application_first":
        return False
    return looks_like_proof_token(first.strip()) and not looks_like_proof_token(second.strip())


def parse_composite_token(raw: Optional[str], layout: TokenLayout = "auto") -> ParsedToken:
    """
    Split a composite token into its parts.

    The value is split on the literal delimiter while still percent-encoded
    and each segment is decoded afterwards, so an encoded ``%2B%2B`` inside a
    base64 digest never splits the token.

    Args:
        raw: Undecoded value of the token query parameter, or None if absent
        layout: Which of the first two segments carries the proof token

    Returns:
        ParsedToken with the proof token stripped of surrounding whitespace

    Raises:
        MissingToken: If the parameter is absent or empty
        MalformedToken: If there are fewer than two segments, or the first two
            hold a single non-empty value that is not shaped like a proof token
    """
    if not raw:
        raise MissingToken("Missing oait parameter")

    segments = [unquote(segment) for segment in raw.split(TOKEN_DELIMITER)]
    if len(segments) < 2:
        raise MalformedToken(f"Invalid token format-oaitParam: {raw}")

    first, second = segments[0], segments[1]
    present = [segment for segment in (first, second) if segment]
    # An empty application token is allowed, an empty proof slot is not
    if not present or (len(present) == 1 and not looks_like_proof_token(present[0].strip())):
        raise MalformedToken(f"Invalid token format-oaitParam: {raw}")

    if _proof_comes_first(first, second, layout):
        application_token, proof_token = second, first
    else:
        application_token, proof_token = first, second

    return ParsedToken(
        application_token=application_token,
        proof_token=proof_token.strip(),
        access_token=segments[2] if len(segments) > 2 else None,
    )
