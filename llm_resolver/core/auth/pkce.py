"""
PKCE (Proof Key for Code Exchange) for the browser login flow.

A CLI cannot keep a client secret, so the authorization code is bound to
a one-time verifier that never leaves this process.
"""

import base64
import hashlib
import secrets
from dataclasses import dataclass, field

from .constants import PkceProtocol


@dataclass(frozen=True)
class PkceCodes:
    """PKCE code verifier and challenge pair.

    Attributes:
        code_verifier: Random URL-safe string, 43-128 characters
        code_challenge: Base64url SHA-256 of the verifier, unpadded
        method: Challenge method sent to the authorization server
    """

    code_verifier: str = field(repr=False)
    code_challenge: str
    method: str = PkceProtocol.CODE_CHALLENGE_METHOD


def generate_pkce() -> PkceCodes:
    """Generate a fresh verifier/challenge pair (S256)."""
    code_verifier = secrets.token_urlsafe(PkceProtocol.CODE_VERIFIER_BYTES)
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    code_challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return PkceCodes(code_verifier=code_verifier, code_challenge=code_challenge)
