"""Integration tests for the browser login flow.

These run a real callback listener on a free localhost port and play the
part of the browser with httpx. Only the token endpoint is mocked.
"""

import asyncio
import urllib.parse
from io import StringIO

import httpx
import pytest
from rich.console import Console

from llm_resolver.core.auth.credentials import SessionToken
from llm_resolver.core.auth.exceptions import LoginFlowError
from llm_resolver.core.auth.http_client import MockHttpClient
from llm_resolver.core.auth.login import BrowserLoginFlow, LoginConfig
from llm_resolver.core.backend import BackendIdentity

TOKEN = "sess_0123456789abcdef0123456789abcdef"


def _flow(timeout: float = 10) -> tuple[BrowserLoginFlow, MockHttpClient]:
    http = MockHttpClient(json_response={"session_token": TOKEN, "expires_in": 3600})
    flow = BrowserLoginFlow(
        LoginConfig(port=0, timeout=timeout, open_browser=False),
        http_client=http,
        console=Console(file=StringIO()),
    )
    return flow, http


async def _listening(flow: BrowserLoginFlow):
    for _ in range(200):
        if flow.server is not None:
            return flow.server
        await asyncio.sleep(0.01)
    raise AssertionError("callback listener never started")


async def _closed(server) -> bool:
    for _ in range(300):
        if server.socket.fileno() == -1:
            return True
        await asyncio.sleep(0.01)
    return False


async def _browser_visit(server, **params) -> httpx.Response:
    url = f"http://127.0.0.1:{server.port}{server.callback_path}"
    async with httpx.AsyncClient(trust_env=False, timeout=5) as client:
        return await client.get(f"{url}?{urllib.parse.urlencode(params)}")


@pytest.mark.integration
class TestBrowserLoginFlow:
    @pytest.mark.asyncio
    async def test_successful_login(self):
        flow, http = _flow()
        task = asyncio.create_task(flow.login(BackendIdentity.remote_managed()))
        server = await _listening(flow)

        response = await _browser_visit(server, code="auth-code-123", state=server.state)
        session = await task

        assert response.status_code == 200
        assert "Login received" in response.text
        assert isinstance(session, SessionToken)
        assert session.token == TOKEN
        assert session.expires_at is not None

        [request] = http.requests
        assert request["method"] == "POST"
        assert request["url"].endswith("/token")
        assert request["data"]["code"] == "auth-code-123"
        assert request["data"]["redirect_uri"] == server.redirect_uri
        assert len(request["data"]["code_verifier"]) >= 43
        assert await _closed(server)

    @pytest.mark.asyncio
    async def test_wrong_state_keeps_waiting(self):
        flow, http = _flow()
        task = asyncio.create_task(flow.login(BackendIdentity.remote_managed()))
        server = await _listening(flow)

        forged = await _browser_visit(server, code="attacker-code", state="not-the-state")
        assert "Invalid state" in forged.text
        await asyncio.sleep(0.05)
        assert not task.done()
        assert http.requests == []

        await _browser_visit(server, code="auth-code-123", state=server.state)
        session = await task

        assert session.token == TOKEN
        assert http.requests[0]["data"]["code"] == "auth-code-123"

    @pytest.mark.asyncio
    async def test_error_without_state_keeps_waiting(self):
        flow, http = _flow()
        task = asyncio.create_task(flow.login(BackendIdentity.remote_managed()))
        server = await _listening(flow)

        forged = await _browser_visit(server, error="access_denied")
        assert "Invalid state" in forged.text
        await asyncio.sleep(0.05)
        assert not task.done()

        await _browser_visit(server, code="auth-code-123", state=server.state)
        session = await task

        assert session.token == TOKEN
        assert len(http.requests) == 1

    @pytest.mark.asyncio
    async def test_denied_authorization(self):
        flow, http = _flow()
        task = asyncio.create_task(flow.login(BackendIdentity.remote_managed()))
        server = await _listening(flow)

        response = await _browser_visit(server, error="access_denied", state=server.state)

        with pytest.raises(LoginFlowError, match="access_denied"):
            await task
        assert "Login failed" in response.text
        assert http.requests == []
        assert await _closed(server)

    @pytest.mark.asyncio
    async def test_timeout(self):
        flow, http = _flow(timeout=1)

        with pytest.raises(LoginFlowError, match="No login callback"):
            await flow.login(BackendIdentity.remote_managed())

        assert http.requests == []
        assert await _closed(flow.server)

    @pytest.mark.asyncio
    async def test_cancellation_closes_listener(self):
        flow, http = _flow()
        task = asyncio.create_task(flow.login(BackendIdentity.remote_managed()))
        server = await _listening(flow)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert http.requests == []
        assert await _closed(server)

    @pytest.mark.asyncio
    async def test_unknown_path_is_not_found(self):
        flow, _ = _flow()
        task = asyncio.create_task(flow.login(BackendIdentity.remote_managed()))
        server = await _listening(flow)

        async with httpx.AsyncClient(trust_env=False, timeout=5) as client:
            response = await client.get(f"http://127.0.0.1:{server.port}/favicon.ico")

        assert response.status_code == 404
        assert not task.done()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
