"""Bounded-time reachability checks for local inference endpoints.

Probing is advisory: a probe reports ``reachable=False`` for every kind of
failure (refused, timeout, DNS, TLS, malformed URL) and never raises to the
caller. A probe makes exactly one attempt.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass

import httpx

from llm_resolver.core.backend import DEFAULT_PROBE_TIMEOUT
from llm_resolver.core.error_types import ErrorType

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of a single probe.

    Attributes:
        endpoint: URL that was probed
        reachable: True only if an HTTP response arrived within the budget
        elapsed: Wall-clock seconds spent on the probe
    """

    endpoint: str
    reachable: bool
    elapsed: float


class ReachabilityProbe:
    """Checks whether local endpoints accept connections.

    Any HTTP response counts as reachable, including 4xx/5xx: the goal is
    to learn whether something is listening, not whether it is healthy.

    Example:
        >>> prober = ReachabilityProbe()
        >>> result = await prober.probe("http://localhost:11434")
        >>> result.reachable
        False
    """

    def __init__(self, timeout: float = DEFAULT_PROBE_TIMEOUT) -> None:
        if timeout <= 0:
            raise ValueError(f"timeout must be positive (got {timeout!r})")
        self.timeout = timeout

    async def probe(
        self,
        endpoint: str,
        timeout: float | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> ProbeResult:
        """Probe one endpoint with a single bounded attempt."""
        budget = self.timeout if timeout is None else timeout
        started = time.monotonic()

        try:
            if client is None:
                async with httpx.AsyncClient(timeout=httpx.Timeout(budget)) as own_client:
                    await asyncio.wait_for(own_client.get(endpoint), timeout=budget)
            else:
                await asyncio.wait_for(client.get(endpoint), timeout=budget)
            reachable = True
        except asyncio.TimeoutError:
            _logger.debug(
                "Probe %s: %s after %.0fms",
                endpoint,
                ErrorType.PROBE_TIMEOUT.value,
                budget * 1000,
            )
            reachable = False
        except httpx.TimeoutException:
            _logger.debug("Probe %s: %s", endpoint, ErrorType.PROBE_TIMEOUT.value)
            reachable = False
        except Exception as e:
            _logger.debug("Probe %s unreachable: %s", endpoint, e.__class__.__name__)
            reachable = False

        elapsed = time.monotonic() - started
        return ProbeResult(endpoint=endpoint, reachable=reachable, elapsed=elapsed)

    async def probe_many(
        self,
        endpoints: Sequence[str],
        timeout: float | None = None,
    ) -> list[ProbeResult]:
        """Probe several endpoints concurrently under one shared deadline.

        Returns one result per endpoint, in input order. Probes still
        running when the deadline passes are cancelled and reported as
        unreachable, so the call takes O(timeout) regardless of how many
        endpoints are given.
        """
        if not endpoints:
            return []

        budget = self.timeout if timeout is None else timeout
        started = time.monotonic()

        async with httpx.AsyncClient(timeout=httpx.Timeout(budget)) as client:
            tasks = [
                asyncio.create_task(self.probe(endpoint, budget, client=client))
                for endpoint in endpoints
            ]
            done, pending = await asyncio.wait(tasks, timeout=budget)
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        elapsed = time.monotonic() - started
        results: list[ProbeResult] = []
        for endpoint, task in zip(endpoints, tasks):
            if task in done:
                results.append(task.result())
            else:
                results.append(ProbeResult(endpoint=endpoint, reachable=False, elapsed=elapsed))

        _logger.debug(
            "Probed %d endpoint(s) in %.0fms: %s",
            len(results),
            elapsed * 1000,
            ", ".join(f"{r.endpoint}={'up' if r.reachable else 'down'}" for r in results),
        )
        return results
