import asyncio
import time

import httpx
import pytest
import respx

from llm_resolver.core.probe import ProbeResult, ReachabilityProbe
from tests.fixtures.mock_http import unreachable


class SlowProbe(ReachabilityProbe):
    """Probe whose single attempt hangs far beyond any budget."""

    async def probe(self, endpoint, timeout=None, *, client=None):
        await asyncio.sleep(10)
        return ProbeResult(endpoint=endpoint, reachable=True, elapsed=10)


@pytest.mark.unit
class TestReachabilityProbe:
    @pytest.mark.asyncio
    async def test_any_response_is_reachable(self, mock_ollama):
        mock_ollama.get("/").mock(return_value=httpx.Response(200, text="Ollama is running"))

        result = await ReachabilityProbe(timeout=0.5).probe("http://localhost:11434")

        assert result.reachable
        assert result.endpoint == "http://localhost:11434"
        assert result.elapsed >= 0

    @pytest.mark.asyncio
    async def test_error_status_still_counts_as_reachable(self, mock_ollama):
        mock_ollama.get("/").mock(return_value=httpx.Response(503))

        result = await ReachabilityProbe(timeout=0.5).probe("http://localhost:11434")

        assert result.reachable

    @pytest.mark.asyncio
    async def test_connection_refused_is_unreachable(self, mock_ollama):
        mock_ollama.get("/").mock(side_effect=unreachable)

        result = await ReachabilityProbe(timeout=0.5).probe("http://localhost:11434")

        assert not result.reachable

    @pytest.mark.asyncio
    async def test_transport_timeout_is_unreachable(self, mock_ollama):
        mock_ollama.get("/").mock(side_effect=httpx.ConnectTimeout("timed out"))

        result = await ReachabilityProbe(timeout=0.5).probe("http://localhost:11434")

        assert not result.reachable

    @pytest.mark.asyncio
    async def test_malformed_url_never_raises(self):
        result = await ReachabilityProbe(timeout=0.5).probe("not a url")

        assert not result.reachable

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValueError):
            ReachabilityProbe(timeout=0)


@pytest.mark.unit
class TestProbeMany:
    @pytest.mark.asyncio
    async def test_results_keep_input_order(self):
        with respx.mock(assert_all_called=False) as router:
            router.get("http://localhost:11434/").mock(side_effect=unreachable)
            router.get("http://localhost:1234/v1").mock(return_value=httpx.Response(404))
            router.get("http://localhost:8000/v1").mock(side_effect=unreachable)

            results = await ReachabilityProbe(timeout=0.5).probe_many(
                [
                    "http://localhost:11434/",
                    "http://localhost:1234/v1",
                    "http://localhost:8000/v1",
                ]
            )

        assert [r.reachable for r in results] == [False, True, False]
        assert results[1].endpoint == "http://localhost:1234/v1"

    @pytest.mark.asyncio
    async def test_empty_input(self):
        assert await ReachabilityProbe().probe_many([]) == []

    @pytest.mark.asyncio
    async def test_shared_deadline_bounds_total_time(self):
        endpoints = [f"http://localhost:{port}" for port in range(9000, 9008)]

        started = time.monotonic()
        results = await SlowProbe(timeout=0.05).probe_many(endpoints)
        elapsed = time.monotonic() - started

        # One budget for all eight, not eight budgets in sequence
        assert elapsed < 1.0
        assert len(results) == len(endpoints)
        assert not any(r.reachable for r in results)
        assert [r.endpoint for r in results] == endpoints

    @pytest.mark.asyncio
    async def test_explicit_zero_budget_is_honored(self):
        started = time.monotonic()
        results = await SlowProbe(timeout=5).probe_many(["http://localhost:11434"], timeout=0.0)
        elapsed = time.monotonic() - started

        assert elapsed < 1.0
        assert not results[0].reachable
