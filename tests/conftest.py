# tests/conftest.py
import io
import os
import threading
import time
import types
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
import requests
from freezegun import freeze_time
from requests.structures import CaseInsensitiveDict

from title_finder.lib import config as tf_config
from title_finder.lib.http_client import HttpClient


# ---------------------------------------------------------------------
# Live tests are opt-in: use --live or RUN_LIVE_TESTS=1
# ---------------------------------------------------------------------
def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--live",
        action="store_true",
        default=False,
        help="Run tests marked as 'live' (real network calls).",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "live: marks tests that perform live network calls (skipped by default).",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    run_live = config.getoption("--live") or os.getenv("RUN_LIVE_TESTS") == "1"
    if run_live:
        return
    skip_live = pytest.mark.skip(reason="live tests disabled (use --live or RUN_LIVE_TESTS=1)")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


# ---------------------------------------------------------------------
# Test-wide env defaults (autouse, function-scoped)
# ---------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _env_defaults(monkeypatch, tmp_path):
    # JSONL logs go to a throwaway dir so real logs stay clean (per test)
    monkeypatch.setenv("TITLE_FINDER_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("ACTIVITY_LOG_PREFIX", "activity-test")
    monkeypatch.setenv("ERROR_LOG_PREFIX", "error-test")
    for name in (
        "LOG_DIR",
        "TITLE_FINDER_PROXY",
        "TITLE_FINDER_WORKERS",
        "TITLE_FINDER_TIMEOUT",
        "TITLE_FINDER_VERIFY_TLS",
        "TITLE_FINDER_USER_AGENT",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def frozen_utc():
    with freeze_time("2025-01-01T00:00:00Z"):
        yield


@pytest.fixture
def url_file(tmp_path):
    """Write a URL list and return its path."""

    def _write(lines, name="urls.txt"):
        p = tmp_path / name
        p.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return p

    return _write


@pytest.fixture
def fresh_settings(tmp_path):
    return tf_config.Settings.from_env_and_kwargs({
        "input_path": str(tmp_path / "urls.txt"),
        "workers": 4,
        "timeout": 2,
    })


# ---------------------------------------------------------------------
# Fake HTTP layer: a real requests.Session whose send() never touches the
# network. Routes map request URL -> route options.
# ---------------------------------------------------------------------
class TrackingBody(io.BytesIO):
    """Response body that records when its connection is released."""

    def __init__(self, data: bytes, delay: float = 0.0):
        super().__init__(data)
        self.delay = delay
        self.released = False

    def release_conn(self):
        self.released = True

    def read1(self, size=-1, decode_content=None):
        if self.delay:
            time.sleep(self.delay)
        return super().read1(size)


class FakeSession(requests.Session):
    def __init__(self, routes):
        super().__init__()
        self.routes = routes
        self.sent = []
        self.bodies = []

    def send(self, request, **kwargs):
        self.sent.append(types.SimpleNamespace(url=request.url, headers=dict(request.headers), kwargs=kwargs))
        route = self.routes.get(request.url)
        if route is None:
            raise requests.exceptions.ConnectionError(f"no route to {request.url}")
        if isinstance(route, Exception):
            raise route

        body = route.get("body", b"")
        if isinstance(body, str):
            body = body.encode(route.get("encode_as", "utf-8"))
        raw = TrackingBody(body, delay=route.get("read_delay", 0.0))
        self.bodies.append(raw)

        resp = requests.Response()
        resp.status_code = route.get("status", 200)
        resp.reason = route.get("reason", "OK")
        resp.headers = CaseInsensitiveDict(route.get("headers", {"Content-Type": "text/html; charset=utf-8"}))
        resp.raw = raw
        resp.url = request.url
        resp.request = request
        return resp


@pytest.fixture
def fake_http():
    """
    Build (client, session) pairs over a FakeSession.

        client, session = fake_http({"http://example.com/": {"body": "<title>Hi</title>"}})
    """

    def _make(routes, *, timeout=2.0, proxy=None, verify_tls=False, headers=None):
        session = FakeSession(routes)
        client = HttpClient(
            timeout=timeout,
            headers=headers or {"User-Agent": tf_config.DEFAULT_USER_AGENT},
            proxy=proxy,
            verify_tls=verify_tls,
            session=session,
        )
        return client, session

    return _make


# ---------------------------------------------------------------------
# Real HTTP server on 127.0.0.1 for timing-sensitive tests:
#   /title/<text>  -> 200 page titled <text>
#   /trickle       -> 200 with a large Content-Length, one byte every 50ms
#   /hang          -> accepts the request, never answers
# ---------------------------------------------------------------------
class _SiteHandler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def do_GET(self):
        stop = self.server.stop_event
        try:
            if self.path.startswith("/title/"):
                body = f"<html><head><title>{self.path[len('/title/'):]}</title></head></html>".encode()
                self.send_response(200)
                self.send_header("Content-Type", "text/html; charset=utf-8")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)
            elif self.path == "/trickle":
                self.send_response(200)
                self.send_header("Content-Type", "text/html; charset=utf-8")
                self.send_header("Content-Length", "100000")
                self.end_headers()
                self.wfile.write(b"<html><head><title>slow")
                self.wfile.flush()
                while not stop.wait(0.05):
                    self.wfile.write(b" ")
                    self.wfile.flush()
                self.close_connection = True
            elif self.path == "/hang":
                stop.wait(30)
                self.close_connection = True
            else:
                self.send_error(404)
        except (BrokenPipeError, ConnectionResetError):
            self.close_connection = True

    def log_message(self, format, *args):
        pass


@pytest.fixture
def local_site():
    """Base URL of a throwaway HTTP server; stopped after the test."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), _SiteHandler)
    server.daemon_threads = True
    server.stop_event = threading.Event()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.stop_event.set()
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)
