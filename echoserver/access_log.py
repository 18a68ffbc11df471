from __future__ import annotations

import logging
import sys
import time
from typing import Optional, TextIO

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Receive, Scope, Send

from .recorder import ResponseRecorder
from .utils import format_duration, format_timestamp

logger = logging.getLogger(__name__)

ACCESS_LOG_FORMAT = '{time} {host} {remote} "{method} {path} {proto}" {status} {length} "{agent}" {duration}\n'


def remote_addr(scope: Scope) -> str:
    client = scope.get("client")
    if not client:
        return ""
    host, port = client[0], client[1]
    return f"{host}:{port}"


class AccessLog:
    """ASGI wrapper writing one access log line per request to ``out``.

    The line is written once the wrapped app has returned, whether or not it
    succeeded, so it never delays the response.
    """

    def __init__(self, app: ASGIApp, out: Optional[TextIO] = None) -> None:
        self.app = app
        self.out = out

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        recorder = ResponseRecorder(send)
        start = time.perf_counter_ns()
        try:
            await self.app(scope, receive, recorder)
        finally:
            duration = time.perf_counter_ns() - start
            self.write(scope, recorder, duration)

    def write(self, scope: Scope, recorder: ResponseRecorder, duration: int) -> None:
        headers = Headers(scope=scope)
        line = ACCESS_LOG_FORMAT.format(
            time=format_timestamp(),
            host=headers.get("host", ""),
            remote=remote_addr(scope),
            method=scope["method"],
            path=scope["path"],
            proto=f"HTTP/{scope.get('http_version', '1.1')}",
            status=recorder.status,
            length=recorder.length,
            agent=headers.get("user-agent", ""),
            duration=format_duration(duration),
        )
        # Resolved per call so a replaced sys.stdout is honoured.
        out = self.out if self.out is not None else sys.stdout
        try:
            out.write(line)
            out.flush()
        except (OSError, ValueError) as exc:
            logger.warning("failed writing access log line: %s", exc)
