import asyncio
import io

import pytest
from fastapi.testclient import TestClient

from echoserver.config import EchoConfig, EchoKind
from echoserver.handlers import http_echo, resolve_env, with_app_headers
from echoserver.main import create_app


def make_client(kind, value):
    return TestClient(create_app(EchoConfig(kind=kind, value=value), access_log=io.StringIO()))


@pytest.mark.parametrize("value", ["hello", "hi there", "ünïcode ✓"])
def test_echo_text(value):
    resp = make_client(EchoKind.TEXT, value).get("/")
    assert resp.status_code == 200
    assert resp.text == value + "\n"
    assert resp.headers["content-type"].startswith("text/plain")


def test_echo_any_path_and_method():
    client = make_client(EchoKind.TEXT, "hello")
    assert client.get("/some/where").text == "hello\n"
    assert client.post("/").text == "hello\n"
    assert client.get("/health/").text == "hello\n"


def test_echo_env(monkeypatch):
    monkeypatch.setenv("HTTP_ECHO_TEST_VALUE", "from env")
    resp = make_client(EchoKind.ENV, "HTTP_ECHO_TEST_VALUE").get("/")
    assert resp.status_code == 200
    assert resp.text == "from env\n"


def test_echo_env_empty_value(monkeypatch):
    monkeypatch.setenv("HTTP_ECHO_TEST_VALUE", "")
    assert make_client(EchoKind.ENV, "HTTP_ECHO_TEST_VALUE").get("/").text == "\n"


def test_echo_env_missing(monkeypatch):
    monkeypatch.delenv("HTTP_ECHO_TEST_MISSING", raising=False)
    resp = make_client(EchoKind.ENV, "HTTP_ECHO_TEST_MISSING").get("/")
    assert resp.status_code == 200
    assert resp.text == "failed resolving env var 'HTTP_ECHO_TEST_MISSING'\n"


def test_echo_env_resolved_per_request(monkeypatch):
    monkeypatch.delenv("HTTP_ECHO_TEST_LATE", raising=False)
    client = make_client(EchoKind.ENV, "HTTP_ECHO_TEST_LATE")
    assert "failed resolving" in client.get("/").text
    monkeypatch.setenv("HTTP_ECHO_TEST_LATE", "now set")
    assert client.get("/").text == "now set\n"


def test_resolve_env(monkeypatch):
    monkeypatch.setenv("HTTP_ECHO_TEST_VALUE", "x")
    assert resolve_env("HTTP_ECHO_TEST_VALUE") == "x"
    monkeypatch.delenv("HTTP_ECHO_TEST_VALUE")
    assert resolve_env("HTTP_ECHO_TEST_VALUE") == "failed resolving env var 'HTTP_ECHO_TEST_VALUE'"


def test_http_echo_rejects_unknown_kind():
    config = EchoConfig.model_construct(kind="bogus", value="x")
    with pytest.raises(ValueError):
        http_echo(config)


def test_app_headers_added():
    sent = []

    async def send(message):
        sent.append(message)

    async def receive():
        return {"type": "http.request", "body": b"", "more_body": False}

    app = with_app_headers(http_echo(EchoConfig(kind=EchoKind.TEXT, value="hi")), {"X-App-Name": "http-echo"})
    scope = {"type": "http", "method": "GET", "path": "/", "headers": []}
    asyncio.run(app(scope, receive, send))

    start = sent[0]
    assert start["type"] == "http.response.start"
    assert (b"x-app-name", b"http-echo") in start["headers"]
    assert sent[1]["body"] == b"hi\n"


def test_app_headers_without_headers_is_passthrough():
    inner = http_echo(EchoConfig(kind=EchoKind.TEXT, value="hi"))
    assert with_app_headers(inner).headers == {}
