from __future__ import annotations

from typing import Optional, TextIO

from fastapi import FastAPI

from .access_log import AccessLog
from .config import EchoConfig
from .handlers import http_echo, http_health, with_app_headers

VERSION = "0.1.0"


def create_app(echo: EchoConfig, access_log: Optional[TextIO] = None) -> FastAPI:
    """Build the echo application.

    ``/health`` answers the liveness probe; every other path echoes the
    configured value and is written to the access log (stdout by default).
    """
    app = FastAPI(
        title="http-echo",
        version=VERSION,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    # === Health & echo ===

    app.add_route("/health", with_app_headers(http_health()))
    app.add_route("/{path:path}", AccessLog(with_app_headers(http_echo(echo)), access_log))

    return app
