"""
Validation helpers for the auth package.

Each helper raises ValidationError with an actionable message. Helpers that
check secrets pass ``secret=True`` so the rejected value never reaches a
log line or traceback.

Example:
    >>> validate_port(80, "port")
    ValidationError: Invalid 'port': must be at least 1024 (got 80)
"""

from __future__ import annotations

import datetime
import urllib.parse
from typing import Any

from .constants import ValidationLimits
from .exceptions import ValidationError


def validate_string(value: object, field_name: str, allow_empty: bool = False) -> str:
    """Validate that value is a string (optionally non-empty).

    Returns:
        The validated string
    """
    if not isinstance(value, str):
        raise ValidationError(field_name, value, f"must be str, got {type(value).__name__}")

    if not allow_empty and not value:
        raise ValidationError(field_name, value, "must be a non-empty string")

    return value


def validate_range(
    value: int | float,
    field_name: str,
    min_value: int | float | None = None,
    max_value: int | float | None = None,
) -> None:
    """Validate that a number is within the inclusive range."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(field_name, value, f"must be a number, got {type(value).__name__}")

    if min_value is not None and value < min_value:
        raise ValidationError(field_name, value, f"must be at least {min_value}")

    if max_value is not None and value > max_value:
        raise ValidationError(field_name, value, f"must be at most {max_value}")


def validate_port(port: int, field_name: str = "port") -> None:
    """Validate a non-privileged port number (1024-65535)."""
    if not isinstance(port, int) or isinstance(port, bool):
        raise ValidationError(field_name, port, f"must be int, got {type(port).__name__}")
    validate_range(
        port,
        field_name,
        min_value=ValidationLimits.MIN_PORT,
        max_value=ValidationLimits.MAX_PORT,
    )


def validate_url(value: str, field_name: str, require_https: bool = False) -> str:
    """Validate that value is a well-formed http(s) URL.

    Raises:
        ValidationError: If URL is malformed or has the wrong scheme
    """
    validate_string(value, field_name)

    parsed = urllib.parse.urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError(field_name, value, "URL must have an http(s) scheme and a host")

    if require_https and parsed.scheme != "https":
        raise ValidationError(field_name, value, "URL must use HTTPS scheme")

    return value


def parse_iso_timestamp(value: Any, field_name: str) -> datetime.datetime | None:
    """Parse an ISO 8601 timestamp into an aware UTC datetime.

    ``None`` passes through. Naive timestamps are taken as UTC, and a
    trailing ``Z`` is accepted.
    """
    if value is None:
        return None

    validate_string(value, field_name)
    text = value[:-1] + "+00:00" if value.endswith("Z") else value

    try:
        parsed = datetime.datetime.fromisoformat(text)
    except ValueError as e:
        raise ValidationError(field_name, value, f"invalid ISO 8601 timestamp: {e}") from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed.astimezone(datetime.timezone.utc)


def validate_secret(value: object, field_name: str) -> str:
    """Sanity-check an API key or token without echoing it.

    Raises:
        ValidationError: If the value is not a printable string of
            plausible length
    """
    if not isinstance(value, str) or not value:
        raise ValidationError(field_name, value, "must be a non-empty string", secret=True)

    if len(value) < ValidationLimits.MIN_SECRET_LENGTH:
        raise ValidationError(
            field_name,
            value,
            f"too short (minimum {ValidationLimits.MIN_SECRET_LENGTH} characters)",
            secret=True,
        )

    if not value.isprintable() or any(ch.isspace() for ch in value):
        raise ValidationError(
            field_name, value, "contains whitespace or non-printable characters", secret=True
        )

    return value


__all__ = [
    "validate_string",
    "validate_range",
    "validate_port",
    "validate_url",
    "parse_iso_timestamp",
    "validate_secret",
]
