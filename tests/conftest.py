"""Shared pytest configuration and fixtures for LLM Resolver tests."""

import pytest

from llm_resolver.core.auth.http_client import MockHttpClient
from llm_resolver.core.auth.storage import FileSystemCredentialStore, InMemoryCredentialStore
from llm_resolver.core.config.schema import ConfigSchema

# Import HTTP mocking fixtures from fixtures module
pytest_plugins = ["tests.fixtures.mock_http"]


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests (fast, no external deps)")
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (local sockets, real threads)"
    )


def pytest_collection_modifyitems(config, items):
    """Add markers to tests based on their location."""
    for item in items:
        path = str(item.fspath)
        if "tests/integration/" in path:
            item.add_marker(pytest.mark.integration)
        elif "tests/unit/" in path or "tests/cli/" in path:
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Give every test a clean environment and a private resolver home.

    Developer shells often export API keys or LLM_BACKEND; none of that
    may leak into tests, and nothing may touch the real ~/.llm-resolver.
    """
    for spec in ConfigSchema.all_specs().values():
        monkeypatch.delenv(spec.name, raising=False)
    home = tmp_path / "resolver-home"
    monkeypatch.setenv("LLM_RESOLVER_HOME", str(home))
    return home


@pytest.fixture
def resolver_home(isolated_environment):
    """Path of the per-test resolver home directory."""
    return isolated_environment


@pytest.fixture
def memory_store():
    """In-memory credential store."""
    return InMemoryCredentialStore()


@pytest.fixture
def file_store(resolver_home):
    """File credential store rooted in the per-test home."""
    return FileSystemCredentialStore(str(resolver_home))


@pytest.fixture
def mock_http_client():
    """Mock auth HTTP client returning an empty 200 response."""
    return MockHttpClient(json_response={})
