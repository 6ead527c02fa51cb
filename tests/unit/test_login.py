import asyncio
import base64
import datetime
import json
import urllib.parse

import pytest

from llm_resolver.core.auth.callback_server import CallbackHTTPServer
from llm_resolver.core.auth.credentials import ApiKey, SessionToken
from llm_resolver.core.auth.exceptions import (
    AuthRejected,
    AuthTransientFailure,
    LoginFlowError,
    ValidationError,
)
from llm_resolver.core.auth.http_client import HttpError, MockHttpClient
from llm_resolver.core.auth.login import ApiKeyPromptFlow, BrowserLoginFlow, LoginConfig
from llm_resolver.core.auth.pkce import generate_pkce
from llm_resolver.core.auth.session import SessionValidator
from llm_resolver.core.auth.token_exchanger import (
    TokenExchangeContext,
    TokenExchanger,
    session_from_payload,
)
from llm_resolver.core.backend import BackendIdentity

UTC = datetime.timezone.utc
NOW = datetime.datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _jwt(claims: dict) -> str:
    def encode(part: dict) -> str:
        return base64.urlsafe_b64encode(json.dumps(part).encode()).rstrip(b"=").decode()

    return f"{encode({'alg': 'none'})}.{encode(claims)}.signature"


@pytest.mark.unit
class TestLoginConfig:
    def test_defaults(self):
        config = LoginConfig()
        assert config.port == 1455
        assert config.identity_provider == "github"

    def test_unknown_identity_provider(self):
        with pytest.raises(ValidationError, match="identity_provider"):
            LoginConfig(identity_provider="myspace")

    def test_privileged_port(self):
        with pytest.raises(ValidationError, match="port"):
            LoginConfig(port=80)

    def test_any_free_port(self):
        assert LoginConfig(port=0).port == 0

    def test_timeout_bounds(self):
        with pytest.raises(ValidationError, match="timeout"):
            LoginConfig(timeout=0)

    def test_auth_url_must_be_http(self):
        with pytest.raises(ValidationError, match="auth_url"):
            LoginConfig(auth_url="ftp://example.com")


@pytest.mark.unit
class TestPkce:
    def test_verifier_length_and_challenge(self):
        pkce = generate_pkce()
        assert 43 <= len(pkce.code_verifier) <= 128
        assert "=" not in pkce.code_challenge
        assert pkce.method == "S256"
        assert pkce.code_verifier not in repr(pkce)

    def test_pairs_are_unique(self):
        assert generate_pkce().code_verifier != generate_pkce().code_verifier


@pytest.mark.unit
class TestAuthorizationUrl:
    @pytest.mark.asyncio
    async def test_carries_pkce_and_state(self):
        flow = BrowserLoginFlow(LoginConfig(auth_url="https://auth.test/", port=0))
        server = CallbackHTTPServer(("localhost", 0), asyncio.get_running_loop())
        pkce = generate_pkce()
        try:
            url = urllib.parse.urlparse(flow.authorization_url(server, pkce))
        finally:
            server.server_close()

        params = urllib.parse.parse_qs(url.query)
        assert f"{url.scheme}://{url.netloc}{url.path}" == "https://auth.test/v1/auth/github"
        assert params["state"] == [server.state]
        assert params["code_challenge"] == [pkce.code_challenge]
        assert params["code_challenge_method"] == ["S256"]
        assert params["redirect_uri"] == [server.redirect_uri]
        assert pkce.code_verifier not in url.query


@pytest.mark.unit
class TestApiKeyPromptFlow:
    @pytest.mark.asyncio
    async def test_returns_entered_key(self):
        questions = []

        def prompt(question):
            questions.append(question)
            return "  sk-ant-pasted-key  "

        credential = await ApiKeyPromptFlow(prompt=prompt).login(
            BackendIdentity.direct_vendor("anthropic")
        )

        assert credential == ApiKey(secret="sk-ant-pasted-key")
        assert "anthropic" in questions[0]

    @pytest.mark.asyncio
    async def test_empty_answer(self):
        with pytest.raises(LoginFlowError, match="No API key"):
            await ApiKeyPromptFlow(prompt=lambda q: "").login(BackendIdentity.private_inference())

    @pytest.mark.asyncio
    async def test_closed_stdin(self):
        def prompt(question):
            raise EOFError

        with pytest.raises(LoginFlowError, match="abandoned"):
            await ApiKeyPromptFlow(prompt=prompt).login(BackendIdentity.private_inference())

    @pytest.mark.asyncio
    async def test_implausible_key(self):
        with pytest.raises(LoginFlowError, match="rejected"):
            await ApiKeyPromptFlow(prompt=lambda q: "abc").login(
                BackendIdentity.direct_vendor("openai")
            )


@pytest.mark.unit
class TestSessionFromPayload:
    def test_expires_in(self):
        session = session_from_payload(
            {"session_token": "sess_0123456789", "expires_in": 3600}, now=NOW
        )
        assert session.issued_at == NOW
        assert session.expires_at == NOW + datetime.timedelta(hours=1)

    def test_expires_at(self):
        session = session_from_payload(
            {"access_token": "sess_0123456789", "expires_at": "2026-03-02T00:00:00Z"}, now=NOW
        )
        assert session.expires_at == datetime.datetime(2026, 3, 2, tzinfo=UTC)

    def test_jwt_exp_claim(self):
        token = _jwt({"sub": "user", "exp": int(NOW.timestamp()) + 600})
        session = session_from_payload({"session_token": token}, now=NOW)
        assert session.expires_at == NOW + datetime.timedelta(minutes=10)

    def test_opaque_token_without_expiry(self):
        session = session_from_payload({"session_token": "sess_0123456789"}, now=NOW)
        assert session.expires_at is None

    def test_missing_token(self):
        with pytest.raises(LoginFlowError, match="did not contain"):
            session_from_payload({"expires_in": 60})

    def test_invalid_expires_at(self):
        with pytest.raises(LoginFlowError, match="expires_at"):
            session_from_payload({"session_token": "sess_0123456789", "expires_at": "soon"})

    def test_epoch_expires_at(self):
        session = session_from_payload(
            {"session_token": "sess_0123456789", "expires_at": 1999999999}, now=NOW
        )
        assert session.expires_at == datetime.datetime.fromtimestamp(1999999999, tz=UTC)

    def test_out_of_range_jwt_exp_is_ignored(self):
        token = _jwt({"sub": "user", "exp": 10**20})
        session = session_from_payload({"session_token": token}, now=NOW)
        assert session.expires_at is None

    @pytest.mark.parametrize(
        "field,value", [("expires_in", 10**20), ("expires_in", float("inf")), ("expires_at", 1e20)]
    )
    def test_out_of_range_expiry_is_a_login_error(self, field, value):
        with pytest.raises(LoginFlowError, match="out-of-range"):
            session_from_payload({"session_token": "sess_0123456789", field: value}, now=NOW)


@pytest.mark.unit
class TestTokenExchanger:
    def _context(self):
        return TokenExchangeContext(
            code="auth-code-123",
            redirect_uri="http://localhost:1455/auth/callback",
            pkce=generate_pkce(),
            token_endpoint="https://auth.test/v1/auth/token",
            identity_provider="google",
        )

    @pytest.mark.asyncio
    async def test_posts_code_and_verifier(self):
        http = MockHttpClient(json_response={"session_token": "sess_0123456789"})
        ctx = self._context()

        session = await TokenExchanger(http).exchange(ctx)

        assert isinstance(session, SessionToken)
        request = http.requests[0]
        assert request["method"] == "POST"
        assert request["url"] == "https://auth.test/v1/auth/token"
        assert request["data"]["grant_type"] == "authorization_code"
        assert request["data"]["code"] == "auth-code-123"
        assert request["data"]["code_verifier"] == ctx.pkce.code_verifier
        assert request["data"]["provider"] == "google"

    @pytest.mark.asyncio
    async def test_refused_code(self):
        http = MockHttpClient(status_code=400)
        with pytest.raises(LoginFlowError, match="HTTP 400"):
            await TokenExchanger(http).exchange(self._context())

    @pytest.mark.asyncio
    async def test_non_json_response(self):
        http = MockHttpClient(text_response="<html>oops</html>")
        with pytest.raises(LoginFlowError, match="not a JSON object"):
            await TokenExchanger(http).exchange(self._context())

    def test_code_is_not_in_repr(self):
        assert "auth-code-123" not in repr(self._context())


@pytest.mark.unit
class TestSessionValidator:
    SESSION = SessionToken(
        token="sess_0123456789",
        issued_at=NOW,
        expires_at=NOW + datetime.timedelta(days=1),
    )

    @pytest.mark.asyncio
    async def test_accepted_session_is_returned_unchanged(self):
        validator = SessionValidator("https://auth.test", MockHttpClient(json_response={}))
        assert await validator.validate(self.SESSION) is self.SESSION

    @pytest.mark.asyncio
    async def test_same_expiry_is_unchanged(self):
        http = MockHttpClient(json_response={"expires_at": self.SESSION.expires_at.isoformat()})
        validator = SessionValidator("https://auth.test", http)
        assert await validator.validate(self.SESSION) is self.SESSION

    @pytest.mark.asyncio
    async def test_new_expiry_returns_copy(self):
        http = MockHttpClient(json_response={"expires_at": "2026-03-10T00:00:00+00:00"})
        refreshed = await SessionValidator("https://auth.test", http).validate(self.SESSION)
        assert refreshed is not self.SESSION
        assert refreshed.token == self.SESSION.token
        assert refreshed.issued_at == NOW
        assert refreshed.expires_at == datetime.datetime(2026, 3, 10, tzinfo=UTC)

    @pytest.mark.asyncio
    async def test_malformed_expiry_is_ignored(self):
        http = MockHttpClient(json_response={"expires_at": "tomorrow"})
        validator = SessionValidator("https://auth.test", http)
        assert await validator.validate(self.SESSION) is self.SESSION

    @pytest.mark.asyncio
    async def test_epoch_expiry_returns_copy(self):
        http = MockHttpClient(json_response={"expires_at": 1999999999})
        refreshed = await SessionValidator("https://auth.test", http).validate(self.SESSION)
        assert refreshed.expires_at == datetime.datetime.fromtimestamp(1999999999, tz=UTC)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("expires_at", [True, 1e20, [2030]])
    async def test_unusable_expiry_keeps_local_expiry(self, expires_at):
        http = MockHttpClient(json_response={"expires_at": expires_at})
        validator = SessionValidator("https://auth.test", http)
        assert await validator.validate(self.SESSION) is self.SESSION

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403, 404])
    async def test_client_errors_reject(self, status):
        validator = SessionValidator("https://auth.test", MockHttpClient(status_code=status))
        with pytest.raises(AuthRejected):
            await validator.validate(self.SESSION)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            HttpError(0, "ConnectError", "https://auth.test"),
            HttpError(502, "Bad Gateway", "https://auth.test"),
        ],
    )
    async def test_network_and_server_errors_are_transient(self, error):
        validator = SessionValidator("https://auth.test", MockHttpClient(raise_error=error))
        with pytest.raises(AuthTransientFailure):
            await validator.validate(self.SESSION)
