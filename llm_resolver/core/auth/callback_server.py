"""HTTP callback listener for the browser login flow.

The listener runs ``http.server`` on a background thread and hands the
authorization grant to the event loop through an ``asyncio.Future``. It
never exchanges the grant itself: the exchange happens on the event loop
after the wait completes, so cancelling the wait can never leave a
half-finished exchange behind.
"""

from __future__ import annotations

import asyncio
import html
import http.server
import logging
import secrets
import threading
import urllib.parse
from dataclasses import dataclass, field

from .constants import LoginDefaults, OAuthProtocol
from .exceptions import LoginFlowError

_logger = logging.getLogger(__name__)

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>{title}</title>
  </head>
  <body>
    <div style="max-width: 640px; margin: 80px auto;
                font-family: system-ui, -apple-system, sans-serif;">
      <h1>{title}</h1>
      <p>{message}</p>
    </div>
  </body>
</html>
"""


@dataclass(frozen=True)
class AuthorizationGrant:
    """Authorization code received on the callback."""

    code: str = field(repr=False)


class CallbackHTTPServer(http.server.HTTPServer):
    """Localhost server that receives exactly one login callback.

    Thread-safety: the handler thread only ever touches the loop through
    ``call_soon_threadsafe``.
    """

    def __init__(
        self,
        server_address: tuple[str, int],
        loop: asyncio.AbstractEventLoop,
        callback_path: str = LoginDefaults.CALLBACK_PATH,
    ) -> None:
        super().__init__(server_address, CallbackHandler, bind_and_activate=True)
        self.loop = loop
        self.callback_path = callback_path
        self.state = secrets.token_urlsafe(32)
        self.result: asyncio.Future[AuthorizationGrant] = loop.create_future()
        self._thread: threading.Thread | None = None

    @property
    def port(self) -> int:
        return int(self.server_address[1])

    @property
    def redirect_uri(self) -> str:
        return f"http://localhost:{self.port}{self.callback_path}"

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self.serve_forever, name="login-callback", daemon=True
        )
        self._thread.start()
        _logger.debug("Login callback listener on %s", self.redirect_uri)

    def close(self) -> None:
        """Stop serving without blocking the event loop."""

        def _stop() -> None:
            if self._thread is not None:
                self.shutdown()
            self.server_close()

        threading.Thread(target=_stop, daemon=True).start()

    def deliver(self, grant: AuthorizationGrant | None, error: str | None = None) -> None:
        """Resolve the waiting future from the handler thread."""

        def _set() -> None:
            if self.result.done():
                return
            if grant is not None:
                self.result.set_result(grant)
            else:
                self.result.set_exception(LoginFlowError(error or "Authorization failed"))

        self.loop.call_soon_threadsafe(_set)


class CallbackHandler(http.server.BaseHTTPRequestHandler):
    """Handle the redirect from the authorization server."""

    server: CallbackHTTPServer

    def do_GET(self) -> None:
        parsed = urllib.parse.urlparse(self.path)

        if parsed.path != self.server.callback_path:
            self.send_error(OAuthProtocol.HTTP_NOT_FOUND, "Not Found")
            return

        params = urllib.parse.parse_qs(parsed.query)
        code = params.get("code", [None])[0]
        state = params.get("state", [None])[0]
        error = params.get("error", [None])[0]

        if state != self.server.state:
            # A stray or forged request must not end the login
            self._send_page("Login failed", "Invalid state parameter.")
            return

        if error:
            self._finish(None, f"Authorization was denied: {error}")
            return

        if not code:
            self._finish(None, "Missing authorization code")
            return

        self._finish(AuthorizationGrant(code=code), None)

    def do_POST(self) -> None:
        self.send_error(OAuthProtocol.HTTP_NOT_FOUND, "Not Found")

    def log_message(self, fmt: str, *args: object) -> None:
        # Query strings carry the authorization code
        pass

    def _finish(self, grant: AuthorizationGrant | None, error: str | None) -> None:
        if grant is not None:
            self._send_page(
                "Login received", "You can now close this window and return to the terminal."
            )
        else:
            self._send_page("Login failed", error or "Authorization failed")
        self.server.deliver(grant, error)

    def _send_page(self, title: str, message: str) -> None:
        body = _PAGE_TEMPLATE.format(title=title, message=html.escape(message)).encode()
        self.send_response(OAuthProtocol.HTTP_OK)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


__all__ = [
    "AuthorizationGrant",
    "CallbackHTTPServer",
    "CallbackHandler",
]
