from __future__ import annotations

from enum import Enum
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_LISTEN = ":5678"
SHUTDOWN_TIMEOUT = 5.0


class EchoKind(str, Enum):
    TEXT = "text"
    ENV = "env"


def parse_listen(listen: str) -> Tuple[str, int]:
    """Split a Go style ``host:port`` listen address.

    An empty host (``":5678"``) means every interface. IPv6 hosts are given
    in brackets, e.g. ``"[::1]:8080"``.
    """
    host, sep, port = listen.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid listen address {listen!r}, expected host:port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    elif ":" in host:
        raise ValueError(f"invalid listen address {listen!r}, IPv6 hosts need brackets")
    number = int(port)
    if number > 65535:
        raise ValueError(f"invalid listen address {listen!r}, port out of range")
    return host, number


# === Configuration objects, fixed at startup ===


class EchoConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: EchoKind
    value: str = Field(min_length=1)


class ServerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    echo: EchoConfig
    listen: str = DEFAULT_LISTEN
    shutdown_timeout: float = Field(default=SHUTDOWN_TIMEOUT, gt=0)

    @field_validator("listen")
    @classmethod
    def check_listen(cls, value: str) -> str:
        parse_listen(value)
        return value

    @property
    def address(self) -> Tuple[str, int]:
        return parse_listen(self.listen)
