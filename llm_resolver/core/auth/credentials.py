"""
Credential variants.

A backend family holds exactly one of:
- ApiKey: long-lived key supplied by the user
- SessionToken: short-lived token obtained through interactive login
- NoCredential: nothing stored (or nothing needed, for local backends)

Secrets are excluded from ``repr()``; ``to_record()`` is only called by
credential stores when persisting.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, ClassVar, Union

from .constants import SessionDefaults
from .exceptions import ValidationError
from .validation import parse_iso_timestamp, validate_secret


def _utc(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


def mask_secret(secret: str) -> str:
    """Show just enough of a secret to tell two apart."""
    if len(secret) <= 8:
        return "****"
    return f"{secret[:4]}…{secret[-4:]}"


@dataclass(frozen=True)
class ApiKey:
    """Long-lived API key."""

    kind: ClassVar[str] = "api_key"

    secret: str = field(repr=False)

    def __post_init__(self) -> None:
        validate_secret(self.secret, "api_key")

    @property
    def masked(self) -> str:
        return mask_secret(self.secret)

    def to_record(self) -> dict[str, Any]:
        return {"kind": self.kind, "secret": self.secret}


@dataclass(frozen=True)
class SessionToken:
    """Session token issued by the authorization server.

    Attributes:
        token: Bearer token for the inference API
        issued_at: When the token was issued (UTC)
        expires_at: When the token stops working, if known (UTC)
    """

    kind: ClassVar[str] = "session_token"

    token: str = field(repr=False)
    issued_at: datetime.datetime
    expires_at: datetime.datetime | None = None

    def __post_init__(self) -> None:
        validate_secret(self.token, "session_token")
        object.__setattr__(self, "issued_at", _utc(self.issued_at))
        if self.expires_at is not None:
            object.__setattr__(self, "expires_at", _utc(self.expires_at))

    @property
    def masked(self) -> str:
        return mask_secret(self.token)

    def is_expired(
        self,
        now: datetime.datetime | None = None,
        threshold_seconds: float = SessionDefaults.EXPIRY_THRESHOLD_SECONDS,
    ) -> bool:
        """True if the token expires within ``threshold_seconds``.

        Tokens without a known expiry are never considered expired
        locally; the server decides during validation.
        """
        if self.expires_at is None:
            return False
        current = _utc(now) if now else datetime.datetime.now(datetime.timezone.utc)
        return (self.expires_at - current).total_seconds() < threshold_seconds

    def to_record(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "token": self.token,
            "issued_at": self.issued_at.isoformat(),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }


@dataclass(frozen=True)
class NoCredential:
    """No credential material."""

    kind: ClassVar[str] = "none"

    def to_record(self) -> dict[str, Any]:
        return {"kind": self.kind}


Credential = Union[ApiKey, SessionToken, NoCredential]


def credential_from_record(data: Any) -> Credential:
    """Rebuild a credential from its persisted record.

    Unknown fields are ignored so records written by newer versions still
    load.

    Raises:
        ValidationError: If the record is not a dict, has an unknown kind,
            or misses a required field
    """
    if not isinstance(data, dict):
        raise ValidationError("record", type(data).__name__, "must be a JSON object")

    kind = data.get("kind")
    if kind == ApiKey.kind:
        return ApiKey(secret=data.get("secret", ""))

    if kind == SessionToken.kind:
        issued_at = parse_iso_timestamp(data.get("issued_at"), "issued_at")
        if issued_at is None:
            raise ValidationError("issued_at", None, "required field is missing")
        return SessionToken(
            token=data.get("token", ""),
            issued_at=issued_at,
            expires_at=parse_iso_timestamp(data.get("expires_at"), "expires_at"),
        )

    if kind == NoCredential.kind:
        return NoCredential()

    raise ValidationError("kind", kind, "unknown credential kind")


__all__ = [
    "ApiKey",
    "SessionToken",
    "NoCredential",
    "Credential",
    "credential_from_record",
    "mask_secret",
]
