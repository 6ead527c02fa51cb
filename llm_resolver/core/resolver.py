"""Backend resolution with explicit configuration first and probing last."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from llm_resolver.core.backend import BackendIdentity, BackendKind, ResolutionInput
from llm_resolver.core.error_types import ErrorType
from llm_resolver.core.exceptions import ResolverError
from llm_resolver.core.probe import ProbeResult, ReachabilityProbe

_logger = logging.getLogger(__name__)


class ResolutionAmbiguous(ResolverError, RuntimeError):
    """The decision table did not produce a backend.

    Unreachable by construction; raised only if the priority rules are
    broken or ``decide`` is called without the probe results it needs.
    """

    error_type = ErrorType.RESOLUTION_AMBIGUOUS


def needs_probe(resolution_input: ResolutionInput) -> bool:
    """Whether resolution must consult the network (step 3)."""
    return (
        resolution_input.backend_override is None
        and resolution_input.base_url_override is None
    )


def decide(
    resolution_input: ResolutionInput,
    probe_results: Sequence[ProbeResult] | None = None,
) -> BackendIdentity:
    """Pick a backend from configuration and probe outcomes. Performs no I/O.

    Priority, first match wins:
    1. Explicit backend override, used verbatim
    2. Explicit base URL override -> local OpenAI-compatible server
    3. Reachable local inference endpoint -> Ollama (or the first
       reachable preset, when presets are probed too)
    4. Remote managed service

    Args:
        resolution_input: Startup snapshot
        probe_results: Results for ``resolution_input.probe_candidates()``;
            required only when steps 1 and 2 do not apply

    Returns:
        The selected backend identity

    Raises:
        ResolutionAmbiguous: If step 3 is reached without probe results
    """
    override = resolution_input.backend_override
    if override is not None:
        if override.base_url is None:
            return override.with_base_url(resolution_input.base_url_override)
        return override

    if resolution_input.base_url_override is not None:
        return BackendIdentity.local_openai_compatible(resolution_input.base_url_override)

    if probe_results is None:
        raise ResolutionAmbiguous(
            "No explicit backend or base URL configured and no probe results supplied"
        )

    reachable = {result.endpoint for result in probe_results if result.reachable}
    for candidate in resolution_input.probe_candidates():
        if candidate.base_url not in reachable:
            continue
        if candidate.kind is BackendKind.LOCAL_OLLAMA:
            return BackendIdentity.local_ollama(candidate.base_url)
        return BackendIdentity.local_openai_compatible(candidate.base_url)

    return BackendIdentity.remote_managed()


def preview(
    resolution_input: ResolutionInput,
    *,
    local_reachable: bool,
    reachable_presets: Iterable[str] = (),
) -> BackendIdentity:
    """Resolve hypothetical input without touching the network.

    Used by the setup wizard to show which backend a configuration would
    select. ``reachable_presets`` lists preset names (e.g. ``"lmstudio"``)
    to treat as up.
    """
    up = set(reachable_presets)
    results = [
        ProbeResult(
            endpoint=candidate.base_url,
            reachable=local_reachable if index == 0 else candidate.name in up,
            elapsed=0.0,
        )
        for index, candidate in enumerate(resolution_input.probe_candidates())
    ]
    return decide(resolution_input, results)


class BackendResolver:
    """Resolves the backend for this process.

    Responsibilities:
    - Honor explicit configuration without any network traffic
    - Probe local candidates concurrently under one shared deadline
    - Fall back to the remote managed service for zero-config users

    Example:
        >>> resolver = BackendResolver()
        >>> identity = await resolver.resolve(ResolutionInput())
    """

    def __init__(self, probe: ReachabilityProbe | None = None) -> None:
        self._probe = probe or ReachabilityProbe()
        self._last_probe_results: tuple[ProbeResult, ...] = ()

    async def resolve(self, resolution_input: ResolutionInput) -> BackendIdentity:
        """Resolve ``resolution_input`` to one backend.

        Takes O(probe_timeout) wall-clock time at most; never raises for
        probe failures.
        """
        results: list[ProbeResult] | None = None
        self._last_probe_results = ()
        if needs_probe(resolution_input):
            endpoints = [c.base_url for c in resolution_input.probe_candidates()]
            results = await self._probe.probe_many(endpoints, resolution_input.probe_timeout)
            self._last_probe_results = tuple(results)

        identity = decide(resolution_input, results)

        if resolution_input.backend_override is not None:
            _logger.info("Using configured backend '%s'", identity)
        elif resolution_input.base_url_override is not None:
            _logger.info("Using OpenAI-compatible server at %s", identity.base_url)
        elif identity.is_local:
            _logger.info("Detected local inference server at %s", identity.base_url)
        else:
            _logger.debug("No local inference server detected, using '%s'", identity)

        return identity

    @property
    def last_probe_results(self) -> tuple[ProbeResult, ...]:
        """Probe results of the most recent resolution (empty if none ran)."""
        return self._last_probe_results
