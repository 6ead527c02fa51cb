"""Tests for the startup presenter."""

import datetime
from io import StringIO

import pytest
from rich.console import Console

from llm_resolver.cli.presenters.startup import StartupPresenter, describe_credential
from llm_resolver.core.auth.credentials import ApiKey, NoCredential, SessionToken
from llm_resolver.core.backend import BackendIdentity
from llm_resolver.core.config.validation import ConfigError
from llm_resolver.core.error_types import FailureReason
from llm_resolver.core.exceptions import StartupError
from llm_resolver.core.provider.chain import (
    DEGRADED_STATIC,
    ChainEntry,
    ProviderChain,
    ProviderHandle,
)
from llm_resolver.core.provider.static_catalog import ModelInfo


def _console() -> Console:
    return Console(file=StringIO(), width=200)


def _chain() -> ProviderChain:
    local = ProviderHandle(
        identity=BackendIdentity.local_ollama(),
        display_name="Ollama",
        base_url="http://localhost:11434/v1",
        headers={},
        models=(ModelInfo("llama3.2", 0.0, 0.0, 131072),),
    )
    vendor = ProviderHandle(
        identity=BackendIdentity.direct_vendor("anthropic"),
        display_name="Anthropic",
        base_url="https://api.anthropic.com",
        headers={"x-api-key": "sk-ant-never-shown"},
        api_format="anthropic",
        models=(ModelInfo("claude-sonnet-4", 3.0, 15.0, 200000), ModelInfo("mystery-model")),
    )
    return ProviderChain((ChainEntry(local), ChainEntry(vendor, note=DEGRADED_STATIC)))


@pytest.mark.unit
def test_presenter_shows_chain_and_models():
    console = _console()

    StartupPresenter(console=console).present_chain(_chain())

    output = console.file.getvalue()
    assert "Provider Chain" in output
    assert "1 (primary)" in output
    assert "2 (fallback)" in output
    assert "live" in output
    assert DEGRADED_STATIC in output
    assert "free" in output
    assert "$3 / $15" in output
    assert "unknown" in output
    assert "131,072" in output
    assert "sk-ant-never-shown" not in output


@pytest.mark.unit
def test_presenter_without_models():
    console = _console()

    StartupPresenter(console=console).present_chain(_chain(), show_models=False)

    output = console.file.getvalue()
    assert "Provider Chain" in output
    assert "Models: " not in output


@pytest.mark.unit
def test_presenter_startup_error_includes_remediation():
    console = _console()
    error = StartupError(BackendIdentity.remote_managed(), FailureReason.UNAVAILABLE)

    StartupPresenter(console=console).present_error(error)

    output = console.file.getvalue()
    assert "Authentication Failed: unavailable" in output
    assert error.remediation.splitlines()[0] in output


@pytest.mark.unit
def test_presenter_config_error():
    console = _console()

    StartupPresenter(console=console).present_error(
        ConfigError("LLM_BACKEND", "gemini", "Unknown backend 'gemini'")
    )

    output = console.file.getvalue()
    assert "Configuration Error" in output
    assert "LLM_BACKEND" in output


@pytest.mark.unit
def test_describe_credential_never_shows_secrets():
    expires = datetime.datetime(2030, 1, 1, tzinfo=datetime.timezone.utc)
    issued = expires - datetime.timedelta(days=1)
    session = SessionToken(token="sess_0123456789abcdef", issued_at=issued, expires_at=expires)

    assert describe_credential(ApiKey(secret="sk-1234567890abcd")) == "API key sk-1…abcd"
    assert describe_credential(session).startswith("session token sess…cdef")
    assert "2030-01-01" in describe_credential(session)
    assert describe_credential(NoCredential()) == "none"
