from __future__ import annotations

import logging
import signal
import socket
import threading
from typing import Optional, Tuple

import uvicorn
from starlette.types import ASGIApp

from .config import ServerConfig

logger = logging.getLogger(__name__)

EXIT_INTERRUPTED = 2
EXIT_FAILURE = 1


def bind(host: str, port: int) -> socket.socket:
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    return socket.create_server((host, port), family=family)


class EchoServer:
    """Serves an ASGI app on a background thread until interrupted.

    The listening socket is bound in the calling thread by :meth:`listen`,
    so a bad address fails before anything is started.
    """

    def __init__(self, app: ASGIApp, config: ServerConfig) -> None:
        self.config = config
        host, port = config.address
        self._server = uvicorn.Server(
            uvicorn.Config(
                app,
                host=host or "0.0.0.0",
                port=port,
                access_log=False,
                log_config=None,
            )
        )
        self._sock: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None
        self._wake = threading.Event()
        self._interrupted = threading.Event()

    @property
    def address(self) -> Tuple[str, int]:
        if self._sock is None:
            raise RuntimeError("server is not listening")
        return self._sock.getsockname()[:2]

    @property
    def started(self) -> bool:
        return self._server.started

    def listen(self) -> None:
        host, port = self.config.address
        self._sock = bind(host, port)
        logger.info("server is listening on %s", self.config.listen)

    def start(self) -> None:
        if self._sock is None:
            self.listen()
        self._thread = threading.Thread(target=self._serve, name="http-echo", daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        try:
            self._server.run(sockets=[self._sock])
        finally:
            self._wake.set()

    def interrupt(self) -> None:
        self._interrupted.set()
        self._wake.set()

    def wait(self) -> bool:
        """Block until interrupted or until the serve loop ends by itself.

        Returns True when woken by :meth:`interrupt`.
        """
        self._wake.wait()
        return self._interrupted.is_set()

    def shutdown(self, timeout: float) -> bool:
        """Stop accepting connections and let in-flight requests finish.

        Returns False if the server is still running after ``timeout`` seconds.
        """
        self._server.should_exit = True
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def serve(self) -> int:
        """Run until SIGINT and return the process exit code."""
        previous = signal.signal(signal.SIGINT, lambda signum, frame: self.interrupt())
        try:
            self.start()
            if not self.wait():
                logger.error("server exited unexpectedly")
                return EXIT_FAILURE

            logger.info("received interrupt, shutting down...")
            if not self.shutdown(self.config.shutdown_timeout):
                logger.error(
                    "failed to shutdown server: still running after %ss",
                    self.config.shutdown_timeout,
                )
                return EXIT_FAILURE
            # Only an interrupt gets us here, so don't report a clean exit.
            return EXIT_INTERRUPTED
        finally:
            signal.signal(signal.SIGINT, previous)
