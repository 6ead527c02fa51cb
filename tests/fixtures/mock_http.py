"""RESPX-based HTTP mocking fixtures for testing.

Fixtures for mocking model discovery on the remote service, vendor APIs
and local inference servers.
"""

import httpx
import pytest
import respx

# === Discovery Payload Fixtures ===


@pytest.fixture
def openai_models_payload():
    """OpenAI-style /models response."""
    return {
        "object": "list",
        "data": [
            {"id": "gpt-4o", "object": "model", "owned_by": "openai"},
            {"id": "gpt-4o-mini", "object": "model", "owned_by": "openai"},
            {"id": "o3-mini", "object": "model", "owned_by": "openai"},
        ],
    }


@pytest.fixture
def remote_models_payload():
    """Remote managed service /models response."""
    return {
        "object": "list",
        "data": [
            {"id": "deepseek-ai/DeepSeek-V3.1", "object": "model"},
            {"id": "zai-org/GLM-4.6", "object": "model"},
        ],
    }


@pytest.fixture
def ollama_tags_payload():
    """Ollama /api/tags response."""
    return {
        "models": [
            {"name": "llama3.2:latest", "size": 2019393189},
            {"name": "qwen2.5-coder:7b", "size": 4683087332},
        ]
    }


@pytest.fixture
def session_payload():
    """Authorization server token response."""
    return {
        "session_token": "sess_0123456789abcdef0123456789abcdef",
        "expires_in": 3600,
    }


# === RESPX Router Fixtures ===


@pytest.fixture
def mock_remote_api():
    """Mock the remote managed inference API with RESPX.

    Example:
        def test_discovery(mock_remote_api, remote_models_payload):
            mock_remote_api.get("/v1/models").mock(
                return_value=httpx.Response(200, json=remote_models_payload)
            )
    """
    with respx.mock(base_url="https://cloud-api.near.ai", assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest.fixture
def mock_openai_api():
    """Mock OpenAI API endpoints with RESPX."""
    with respx.mock(base_url="https://api.openai.com", assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest.fixture
def mock_ollama():
    """Mock a local Ollama server with RESPX."""
    with respx.mock(base_url="http://localhost:11434", assert_all_called=False) as respx_mock:
        yield respx_mock


# === Helper Functions ===


def unreachable(request: httpx.Request) -> httpx.Response:
    """RESPX side effect simulating a refused connection."""
    raise httpx.ConnectError("Connection refused", request=request)
