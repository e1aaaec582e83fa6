"""Loopback server that receives the SSO login token.

The homeserver's SSO redirect ends by sending the browser to our
redirectUrl with a `loginToken` query parameter. This module serves that
URL on 127.0.0.1 with a tiny Starlette app run by uvicorn, and hands the
token to whoever is awaiting wait_for_token().

Usage:
    async with SsoCallbackServer() as server:
        await show(connection.sso_login_url(server.redirect_url))
        login_token = await server.wait_for_token()
"""

from __future__ import annotations

__all__ = ["SsoCallbackServer"]

import asyncio
import logging
import socket

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, PlainTextResponse
from starlette.routing import Route

from mx_login.constants import SSO_CALLBACK_BACKLOG, SSO_CALLBACK_HOST, SSO_LANDING_PAGE
from mx_login.exceptions import TransportError


class SsoCallbackServer:
    """One-shot HTTP server waiting for the SSO redirect.

    The listening socket is bound to an ephemeral port before the server
    starts, so redirect_url is valid as soon as the context is entered.
    Only the first loginToken received is kept.
    """

    def __init__(self, host: str = SSO_CALLBACK_HOST) -> None:
        self._host = host
        self._socket: socket.socket | None = None
        self._server: uvicorn.Server | None = None
        self._serve_task: asyncio.Task[None] | None = None
        self._token: asyncio.Future[str] | None = None

    @property
    def port(self) -> int:
        if self._socket is None:
            raise RuntimeError("SSO callback server is not running")
        return int(self._socket.getsockname()[1])

    @property
    def redirect_url(self) -> str:
        """URL the identity provider should send the browser back to."""
        return f"http://{self._host}:{self.port}/"

    def _build_app(self) -> Starlette:
        async def callback(request: Request) -> HTMLResponse | PlainTextResponse:
            login_token = request.query_params.get("loginToken")
            if not login_token:
                return PlainTextResponse("Missing loginToken", status_code=400)
            if self._token is not None and not self._token.done():
                self._token.set_result(login_token)
            return HTMLResponse(SSO_LANDING_PAGE)

        return Starlette(routes=[Route("/", callback, methods=["GET"])])

    async def start(self) -> None:
        """Bind the loopback socket and start serving in the background."""
        self._token = asyncio.get_running_loop().create_future()

        # Bind first so the port is known (and reserved) before uvicorn starts
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.bind((self._host, 0))
            sock.listen(SSO_CALLBACK_BACKLOG)
            sock.setblocking(False)
        except OSError as e:
            sock.close()
            raise TransportError(f"Could not open SSO callback listener: {e}") from e
        self._socket = sock

        # Keep uvicorn quiet; the login flow reports progress itself
        for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
            logging.getLogger(logger_name).setLevel(logging.CRITICAL)

        config = uvicorn.Config(
            self._build_app(),
            log_config=None,
            lifespan="off",
            ws="none",
        )
        self._server = uvicorn.Server(config)
        # _serve() skips uvicorn's signal handler installation
        self._serve_task = asyncio.create_task(self._server._serve(sockets=[sock]))

    async def wait_for_token(self) -> str:
        """Suspend until the browser delivers the login token.

        Raises:
            TransportError: If the server stopped before a token arrived.
        """
        if self._token is None or self._serve_task is None:
            raise RuntimeError("SSO callback server is not running")

        await asyncio.wait({self._token, self._serve_task}, return_when=asyncio.FIRST_COMPLETED)
        if self._token.done():
            return self._token.result()

        exc = self._serve_task.exception()
        detail = f": {exc}" if exc else ""
        raise TransportError(f"SSO callback server stopped before login completed{detail}")

    async def stop(self) -> None:
        """Stop serving and release the socket."""
        if self._server is not None:
            self._server.should_exit = True
        task = self._serve_task
        self._serve_task = None
        if task is not None:
            if not task.done():
                await task
            elif not task.cancelled():
                task.exception()  # Already reported by wait_for_token()
        if self._token is not None and not self._token.done():
            self._token.cancel()
        if self._socket is not None:
            self._socket.close()
            self._socket = None
        self._server = None

    async def __aenter__(self) -> "SsoCallbackServer":
        await self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.stop()
