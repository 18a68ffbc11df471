from __future__ import annotations

import os
from typing import Mapping, Optional

from starlette.datastructures import MutableHeaders
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .config import EchoConfig, EchoKind
from .schemas import Health


# === Echo ===


def resolve_env(name: str) -> str:
    """Value of env var ``name``, or a message saying it could not be found."""
    if name not in os.environ:
        return f"failed resolving env var '{name}'"
    return os.environ[name]


def http_echo(config: EchoConfig) -> ASGIApp:
    """Build the handler that echoes the configured value as one line.

    Environment variables are looked up on every request, not once here.
    """
    kind, value = config.kind, config.value
    if kind == EchoKind.TEXT:

        def render() -> str:
            return value

    elif kind == EchoKind.ENV:

        def render() -> str:
            return resolve_env(value)

    else:
        raise ValueError(f"unknown echo kind: {kind!r}")

    async def echo(scope: Scope, receive: Receive, send: Send) -> None:
        response = PlainTextResponse(render() + "\n")
        await response(scope, receive, send)

    return echo


# === Health ===

HEALTH_BODY = Health().model_dump_json() + "\n"


def http_health() -> ASGIApp:
    async def health(scope: Scope, receive: Receive, send: Send) -> None:
        response = Response(HEALTH_BODY, media_type="application/json")
        await response(scope, receive, send)

    return health


# === Application headers ===


class AppHeaders:
    """Adds fixed headers to every response of the wrapped app.

    With no headers configured it simply forwards to the wrapped app.
    """

    def __init__(self, app: ASGIApp, headers: Optional[Mapping[str, str]] = None) -> None:
        self.app = app
        self.headers = dict(headers or {})

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not self.headers:
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                response_headers = MutableHeaders(scope=message)
                for name, value in self.headers.items():
                    response_headers[name] = value
            await send(message)

        await self.app(scope, receive, send_with_headers)


def with_app_headers(app: ASGIApp, headers: Optional[Mapping[str, str]] = None) -> AppHeaders:
    return AppHeaders(app, headers)
