"""
HTTP client abstraction for the auth package.

Provides a testable interface for the few requests authentication needs
(token exchange, session validation) with httpx as the default
implementation. There is no transport-level retry: the orchestrator owns
the single retry allowed for transient failures.
"""

from __future__ import annotations

import abc
import json
import logging
import typing
from dataclasses import dataclass, field

import httpx

from .constants import LoginDefaults
from .exceptions import AuthError

_logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================


@dataclass
class HttpClientConfig:
    """Configuration for HTTP client behavior.

    Attributes:
        timeout: Request timeout in seconds
        enable_logging: Log request/response metadata at DEBUG (never bodies
            or headers, which carry secrets)
    """

    timeout: float = LoginDefaults.HTTP_REQUEST_TIMEOUT
    enable_logging: bool = True


# =============================================================================
# Response
# =============================================================================


@dataclass
class HttpResponse:
    """HTTP response wrapper adapting httpx.Response to our interface."""

    _raw: httpx.Response
    _text: str | None = field(init=False, default=None)

    @property
    def status_code(self) -> int:
        return self._raw.status_code

    @property
    def text(self) -> str:
        if self._text is None:
            self._text = self._raw.text
        return self._text

    def json(self) -> dict[str, typing.Any]:
        payload = self._raw.json()
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")
        return payload


# =============================================================================
# Exceptions
# =============================================================================


class HttpError(AuthError):
    """HTTP request failed.

    Attributes:
        status_code: HTTP status code (0 for network errors)
        reason: Human-readable reason
        url: Request URL
    """

    def __init__(self, status_code: int, reason: str, url: str) -> None:
        self.status_code = status_code
        self.reason = reason
        self.url = url
        super().__init__(f"HTTP {status_code} - {reason} for {url}")

    @property
    def is_network_error(self) -> bool:
        return self.status_code == 0

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500


# =============================================================================
# Abstract Client
# =============================================================================


class HttpClient(abc.ABC):
    """Abstract async HTTP client.

    Implementations raise HttpError for network failures and for 4xx/5xx
    responses.
    """

    @abc.abstractmethod
    async def get(
        self,
        url: str,
        headers: dict[str, str],
        timeout: float | None = None,
    ) -> HttpResponse:
        """Make an HTTP GET request."""

    @abc.abstractmethod
    async def post(
        self,
        url: str,
        data: dict[str, str],
        headers: dict[str, str],
        timeout: float | None = None,
    ) -> HttpResponse:
        """Make an HTTP POST request with a form-encoded body."""


# =============================================================================
# httpx Implementation
# =============================================================================


class HttpxHttpClient(HttpClient):
    """Default HTTP client using httpx.AsyncClient.

    Example:
        >>> client = HttpxHttpClient()
        >>> response = await client.post(
        ...     "https://example.com/token",
        ...     {"grant_type": "authorization_code"},
        ...     {},
        ... )
    """

    def __init__(self, config: HttpClientConfig | None = None) -> None:
        self.config = config or HttpClientConfig()

    async def get(
        self,
        url: str,
        headers: dict[str, str],
        timeout: float | None = None,
    ) -> HttpResponse:
        return await self._request("GET", url, headers=headers, timeout=timeout)

    async def post(
        self,
        url: str,
        data: dict[str, str],
        headers: dict[str, str],
        timeout: float | None = None,
    ) -> HttpResponse:
        return await self._request("POST", url, headers=headers, data=data, timeout=timeout)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        timeout: float | None,
        data: dict[str, str] | None = None,
    ) -> HttpResponse:
        effective_timeout = timeout or self.config.timeout

        if self.config.enable_logging:
            _logger.debug("HTTP %s %s (timeout=%ss)", method, url, effective_timeout)

        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(effective_timeout)) as client:
                response = await client.request(method, url, headers=headers, data=data)

            if self.config.enable_logging:
                _logger.debug(
                    "HTTP %s from %s (body=%d bytes)",
                    response.status_code,
                    url,
                    len(response.content),
                )

            response.raise_for_status()
            return HttpResponse(response)

        except httpx.HTTPStatusError as e:
            raise HttpError(
                status_code=e.response.status_code,
                reason=str(e.response.reason_phrase),
                url=str(e.request.url),
            ) from e

        except httpx.HTTPError as e:
            raise HttpError(status_code=0, reason=e.__class__.__name__, url=url) from e


# =============================================================================
# Mock Client for Testing
# =============================================================================


class MockHttpClient(HttpClient):
    """Mock HTTP client for testing.

    Returns predefined responses without making network requests and
    records every request, so tests can assert on call counts (including
    zero).

    Example:
        >>> mock = MockHttpClient(json_response={"session_token": "t" * 32})
        >>> response = await mock.post("https://example.com", {}, {})
        >>> assert len(mock.requests) == 1
    """

    def __init__(
        self,
        status_code: int = 200,
        json_response: dict[str, typing.Any] | None = None,
        text_response: str = "",
        raise_error: Exception | type[Exception] | None = None,
        responses: list[typing.Any] | None = None,
    ) -> None:
        """Initialize mock client.

        Args:
            status_code: HTTP status code to return
            json_response: JSON response body
            text_response: Text response body (used if json_response is None)
            raise_error: Exception to raise on every request
            responses: Queue consumed one item per request; an item is either
                an exception to raise or a (status_code, json_body) tuple.
                Falls back to the fixed response once exhausted.
        """
        self.status_code = status_code
        self.json_response = json_response
        self.text_response = text_response
        self.raise_error = raise_error
        self.responses = list(responses or [])

        self.requests: list[dict[str, typing.Any]] = []

    async def get(
        self,
        url: str,
        headers: dict[str, str],
        timeout: float | None = None,
    ) -> HttpResponse:
        return self._respond("GET", url, headers, None, timeout)

    async def post(
        self,
        url: str,
        data: dict[str, str],
        headers: dict[str, str],
        timeout: float | None = None,
    ) -> HttpResponse:
        return self._respond("POST", url, headers, data, timeout)

    def _respond(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        data: dict[str, str] | None,
        timeout: float | None,
    ) -> HttpResponse:
        self.requests.append(
            {"method": method, "url": url, "headers": headers, "data": data, "timeout": timeout}
        )

        status_code = self.status_code
        json_body = self.json_response
        if self.responses:
            item = self.responses.pop(0)
            if isinstance(item, BaseException) or (
                isinstance(item, type) and issubclass(item, BaseException)
            ):
                raise item
            status_code, json_body = item
        elif self.raise_error:
            raise self.raise_error

        if json_body is not None:
            body = json.dumps(json_body).encode()
        else:
            body = self.text_response.encode()

        if status_code >= 400:
            raise HttpError(status_code=status_code, reason="mock error", url=url)

        mock_response = httpx.Response(
            status_code=status_code,
            content=body,
            request=httpx.Request(method, url),
        )
        return HttpResponse(mock_response)


__all__ = [
    "HttpClient",
    "HttpClientConfig",
    "HttpResponse",
    "HttpError",
    "HttpxHttpClient",
    "MockHttpClient",
]
