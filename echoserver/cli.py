from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from .config import DEFAULT_LISTEN, EchoConfig, EchoKind, ServerConfig
from .main import VERSION, create_app
from .server import EXIT_FAILURE, EchoServer

logger = logging.getLogger(__name__)

EXIT_USAGE = 127

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


def build_parser() -> argparse.ArgumentParser:
    # Single dash long flags, as accepted by Go's flag package.
    parser = argparse.ArgumentParser(
        prog="http-echo",
        description="Serve a fixed text, or the value of an environment variable, over HTTP.",
        allow_abbrev=False,
    )
    parser.add_argument("-listen", "--listen", default=DEFAULT_LISTEN, help="address and port to listen")
    parser.add_argument("-text", "--text", default="", help="text to put on the webpage")
    parser.add_argument("-env", "--env", default="", help="environment variable to echo to the webpage")
    parser.add_argument("-version", "--version", action="version", version=f"%(prog)s v{VERSION}")
    parser.add_argument("args", nargs="*", help=argparse.SUPPRESS)
    return parser


def parse_args(argv: Optional[List[str]] = None) -> ServerConfig:
    """Parse and validate the command line.

    Exits with status 127 when neither ``-text`` nor ``-env`` is given, or
    when positional arguments are left over.
    """
    parser = build_parser()
    ns = parser.parse_args(argv)

    if not ns.text and not ns.env:
        parser.exit(EXIT_USAGE, "Missing -text or -env option!\n")
    if ns.args:
        parser.exit(EXIT_USAGE, "Too many arguments!\n")

    if ns.text:
        if ns.env:
            logger.warning("both -text and -env given, ignoring -env %r", ns.env)
        echo = EchoConfig(kind=EchoKind.TEXT, value=ns.text)
    else:
        echo = EchoConfig(kind=EchoKind.ENV, value=ns.env)
    return ServerConfig(echo=echo, listen=ns.listen)


def configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    configure_logging()
    try:
        config = parse_args(argv)
    except ValidationError as exc:
        logger.critical("invalid configuration: %s", exc)
        return EXIT_FAILURE

    server = EchoServer(create_app(config.echo), config)
    try:
        server.listen()
    except OSError as exc:
        logger.critical("server exited with: %s", exc)
        return EXIT_FAILURE
    return server.serve()
