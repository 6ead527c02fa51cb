"""Remote validation of stored session tokens."""

from __future__ import annotations

import logging

from .constants import OAuthProtocol, RemoteService
from .credentials import SessionToken
from .exceptions import AuthRejected, AuthTransientFailure, LoginFlowError
from .http_client import HttpClient, HttpError, HttpxHttpClient
from .token_exchanger import session_from_payload
from .validation import validate_url

_logger = logging.getLogger(__name__)


class SessionValidator:
    """Ask the authorization server whether a session token still works.

    Outcomes map onto the error taxonomy:
    - 2xx: valid; a refreshed token is returned only if the server sent a
      new expiry
    - 401/403: AuthRejected
    - network error or 5xx: AuthTransientFailure
    """

    def __init__(
        self,
        auth_url: str = RemoteService.AUTH_BASE_URL,
        http_client: HttpClient | None = None,
    ) -> None:
        validate_url(auth_url, "auth_url")
        self.session_url = f"{auth_url.rstrip('/')}{RemoteService.SESSION_PATH}"
        self.http_client = http_client or HttpxHttpClient()

    async def validate(self, session: SessionToken) -> SessionToken:
        """Validate ``session`` with one remote call.

        Returns:
            ``session`` unchanged, or a copy carrying the server's new
            expiry

        Raises:
            AuthRejected: If the server no longer accepts the token
            AuthTransientFailure: If the server could not be reached
        """
        headers = {"Authorization": f"Bearer {session.token}"}
        try:
            response = await self.http_client.get(self.session_url, headers=headers)
        except HttpError as e:
            if e.status_code in OAuthProtocol.REJECTION_STATUS_CODES:
                raise AuthRejected(f"Session rejected by server (HTTP {e.status_code})") from e
            if e.is_network_error or e.is_server_error:
                _logger.warning("Session validation failed: %s", e.reason)
                raise AuthTransientFailure(f"Session validation failed: {e.reason}") from e
            raise AuthRejected(f"Session validation failed: HTTP {e.status_code}") from e

        try:
            payload = response.json()
        except ValueError:
            return session

        if not payload.get("expires_at") and not payload.get("expires_in"):
            return session

        try:
            refreshed = session_from_payload(
                {"session_token": session.token, **_expiry_fields(payload)},
            )
        except LoginFlowError:
            _logger.debug("Ignoring malformed expiry in session response")
            return session
        if refreshed.expires_at is None or refreshed.expires_at == session.expires_at:
            return session
        # Keep the original issue time; only the expiry moved
        return SessionToken(
            token=session.token, issued_at=session.issued_at, expires_at=refreshed.expires_at
        )


def _expiry_fields(payload: dict) -> dict:
    return {k: payload[k] for k in ("expires_at", "expires_in") if k in payload}


__all__ = ["SessionValidator"]
