"""Live model discovery.

Discovery is best effort. Every failure (network, HTTP status, malformed
payload, timeout) is reported as ``DiscoveryUnavailable`` so the builder
can fall back to the bundled table.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from llm_resolver.core.exceptions import DiscoveryUnavailable

from .catalog import BackendProfile
from .static_catalog import ModelInfo, with_pricing

_logger = logging.getLogger(__name__)

DEFAULT_DISCOVERY_TIMEOUT = 2.0


def parse_model_ids(payload: Any, discovery_format: str) -> list[str]:
    """Extract model ids from a discovery response.

    Raises:
        ValueError: If the payload does not have the expected shape
    """
    if not isinstance(payload, dict):
        raise ValueError("expected a JSON object")

    if discovery_format == "ollama":
        entries, key = payload.get("models"), "name"
    else:
        entries, key = payload.get("data"), "id"

    if not isinstance(entries, list):
        raise ValueError(f"missing '{'models' if discovery_format == 'ollama' else 'data'}' list")

    ids = [entry[key] for entry in entries if isinstance(entry, dict) and entry.get(key)]
    return [str(model_id) for model_id in ids]


class ModelDiscovery:
    """Fetch the model list of a backend within a short timeout."""

    def __init__(
        self,
        timeout: float = DEFAULT_DISCOVERY_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if timeout <= 0:
            raise ValueError(f"timeout must be positive (got {timeout!r})")
        self.timeout = timeout
        self._transport = transport

    async def discover(
        self, profile: BackendProfile, headers: dict[str, str]
    ) -> tuple[ModelInfo, ...]:
        """Fetch and price the models ``profile`` currently offers.

        Raises:
            DiscoveryUnavailable: On any failure
        """
        if profile.discovery_path is None or profile.base_url is None:
            raise DiscoveryUnavailable(f"{profile.family} does not support discovery")

        url = f"{profile.base_url.rstrip('/')}{profile.discovery_path}"
        try:
            payload = await asyncio.wait_for(self._fetch(url, headers), timeout=self.timeout)
            model_ids = parse_model_ids(payload, profile.discovery_format)
        except asyncio.TimeoutError as e:
            raise DiscoveryUnavailable(f"{url} timed out after {self.timeout:g}s") from e
        except httpx.HTTPStatusError as e:
            raise DiscoveryUnavailable(f"{url} returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise DiscoveryUnavailable(f"{url} failed: {e.__class__.__name__}") from e
        except ValueError as e:
            raise DiscoveryUnavailable(f"{url} returned an unexpected payload: {e}") from e

        if not model_ids:
            raise DiscoveryUnavailable(f"{url} listed no models")

        _logger.debug("Discovered %d model(s) at %s", len(model_ids), url)
        return with_pricing(profile.family, model_ids)

    async def _fetch(self, url: str, headers: dict[str, str]) -> Any:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout), transport=self._transport
        ) as client:
            response = await client.get(url, headers=headers)
            response.raise_for_status()
            return response.json()


__all__ = ["DEFAULT_DISCOVERY_TIMEOUT", "ModelDiscovery", "parse_model_ids"]
