"""Exchange of an authorization grant for a session token.

Business logic only; the callback listener and the orchestrator decide
when an exchange happens.
"""

from __future__ import annotations

import base64
import binascii
import datetime
import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .http_client import HttpClient

from .constants import OAuthProtocol
from .credentials import SessionToken
from .exceptions import LoginFlowError, ValidationError
from .http_client import HttpError
from .pkce import PkceCodes


@dataclass(frozen=True)
class TokenExchangeContext:
    """Everything needed to redeem an authorization code.

    Attributes:
        code: Authorization code from the callback
        redirect_uri: Callback URL the code was issued for
        pkce: Verifier matching the challenge sent with the authorization
        token_endpoint: Authorization server token URL
        identity_provider: Third-party provider the user logged in with
    """

    code: str = field(repr=False)
    redirect_uri: str
    pkce: PkceCodes
    token_endpoint: str
    identity_provider: str


def _jwt_expiry(token: str) -> datetime.datetime | None:
    """Read the ``exp`` claim of a JWT without verifying it.

    Session tokens are opaque to us; when one happens to be a JWT its
    expiry is still worth keeping. Anything unparsable yields None.
    """
    if token.count(".") != 2:
        return None
    payload = token.split(".")[1]
    padded = payload + "=" * (-len(payload) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(padded.encode()).decode())
    except (ValueError, binascii.Error, UnicodeDecodeError):
        return None
    exp = claims.get("exp") if isinstance(claims, dict) else None
    if not isinstance(exp, (int, float)):
        return None
    return _from_timestamp(exp)


def _from_timestamp(value: float) -> datetime.datetime | None:
    try:
        return datetime.datetime.fromtimestamp(value, tz=datetime.timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def session_from_payload(
    payload: dict[str, Any], now: datetime.datetime | None = None
) -> SessionToken:
    """Build a SessionToken from a token or session endpoint response.

    Accepts ``session_token`` or ``access_token``, and ``expires_at`` (ISO
    8601 or epoch seconds) or ``expires_in`` (seconds). Falls back to the
    JWT ``exp`` claim.

    Raises:
        LoginFlowError: If the payload carries no usable token
    """
    issued_at = now or datetime.datetime.now(datetime.timezone.utc)
    token = payload.get("session_token") or payload.get("access_token")
    if not isinstance(token, str) or not token:
        raise LoginFlowError("Token response did not contain a session token")

    expires_at: datetime.datetime | None = None
    raw_expires_at = payload.get("expires_at")
    expires_in = payload.get("expires_in")
    if isinstance(raw_expires_at, str):
        try:
            expires_at = datetime.datetime.fromisoformat(raw_expires_at.replace("Z", "+00:00"))
        except ValueError as e:
            raise LoginFlowError(f"Token response has an invalid expires_at: {e}") from e
    elif isinstance(raw_expires_at, (int, float)) and not isinstance(raw_expires_at, bool):
        expires_at = _from_timestamp(raw_expires_at)
        if expires_at is None:
            raise LoginFlowError("Token response has an out-of-range expires_at")
    elif isinstance(expires_in, (int, float)) and expires_in > 0:
        try:
            expires_at = issued_at + datetime.timedelta(seconds=expires_in)
        except OverflowError as e:
            raise LoginFlowError("Token response has an out-of-range expires_in") from e
    else:
        expires_at = _jwt_expiry(token)

    try:
        return SessionToken(token=token, issued_at=issued_at, expires_at=expires_at)
    except ValidationError as e:
        raise LoginFlowError(f"Token response rejected: {e.message}") from e


class TokenExchanger:
    """Redeem authorization codes for session tokens."""

    def __init__(self, http_client: HttpClient) -> None:
        self.http_client = http_client

    async def exchange(self, ctx: TokenExchangeContext) -> SessionToken:
        """Exchange the authorization code.

        Raises:
            LoginFlowError: If the server refuses the code, cannot be
                reached, or returns an unusable response
        """
        data = {
            "grant_type": OAuthProtocol.GRANT_TYPE_AUTH_CODE,
            "code": ctx.code,
            "redirect_uri": ctx.redirect_uri,
            "code_verifier": ctx.pkce.code_verifier,
            "provider": ctx.identity_provider,
        }
        headers = {"Content-Type": "application/x-www-form-urlencoded"}

        try:
            response = await self.http_client.post(ctx.token_endpoint, data=data, headers=headers)
            payload = response.json()
        except HttpError as e:
            raise LoginFlowError(f"Token exchange failed: HTTP {e.status_code} - {e.reason}") from e
        except ValueError as e:
            raise LoginFlowError("Token exchange failed: response is not a JSON object") from e

        return session_from_payload(payload)


__all__ = [
    "TokenExchanger",
    "TokenExchangeContext",
    "session_from_payload",
]
