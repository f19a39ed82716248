"""
pytest configuration and fixtures.
"""

import io
import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, Generator

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from httpkit.client import Response


@pytest.fixture
def uri() -> str:
    """Target URI used across client tests."""
    return "http://localhost:8000/post.php"


@pytest.fixture
def text_file(tmp_path: Path) -> Path:
    """A small text file for file-field tests."""
    path = tmp_path / "test.txt"
    path.write_text("Hello World!")
    return path


@pytest.fixture
def make_environ():
    """Build a WSGI environ, with an optional body."""
    def _make(method: str = "GET", path: str = "/", query: str = "", body: bytes = b"",
              content_type: str = "", **extra: Any) -> Dict[str, Any]:
        environ = {
            "REQUEST_METHOD": method,
            "SCRIPT_NAME": "",
            "PATH_INFO": path,
            "QUERY_STRING": query,
            "SERVER_NAME": "localhost",
            "SERVER_PORT": "8000",
            "HTTP_HOST": "localhost:8000",
            "REMOTE_ADDR": "127.0.0.1",
            "wsgi.url_scheme": "http",
            "wsgi.input": io.BytesIO(body),
            "CONTENT_LENGTH": str(len(body)) if body else "",
            "CONTENT_TYPE": content_type,
        }
        environ.update(extra)
        return environ
    return _make


class FakePromiser:
    """Stands in for a Client: send() hands back a canned response."""

    def __init__(self, response: Response = None):
        self.canned = response
        self.response = None
        self.sends = 0

    def send(self):
        self.sends += 1
        self.response = self.canned
        return self.response

    def is_complete(self) -> bool:
        return self.response is not None and self.response.code is not None

    def is_success(self) -> bool:
        return self.is_complete() and self.response.is_success()

    def is_error(self) -> bool:
        return self.is_complete() and self.response.is_error()


@pytest.fixture
def ok_promiser() -> FakePromiser:
    return FakePromiser(Response(200, body=b"ok"))


@pytest.fixture
def error_promiser() -> FakePromiser:
    return FakePromiser(Response(404, body=b"missing"))


@pytest.fixture
def silent_promiser() -> FakePromiser:
    return FakePromiser(None)


@pytest.fixture
def make_promiser():
    """Build a stand-in client around any response."""
    return FakePromiser


class EchoHandler(BaseHTTPRequestHandler):
    """
    Routes for transfer tests:

        /echo     200, JSON with the method, query and body received
        /cookies  200, two Set-Cookie headers
        anything else 404
    """

    def _reply(self, code: int, body: bytes, headers: Dict[str, Any] = None):
        self.send_response(code)
        for name, value in (headers or {}).items():
            for item in value if isinstance(value, list) else [value]:
                self.send_header(name, item)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    def _route(self):
        path, _, query = self.path.partition("?")
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""

        if path == "/echo":
            payload = {"method": self.command, "query": query, "body": body.decode("utf-8")}
            self._reply(200, json.dumps(payload).encode(), {"Content-Type": "application/json"})
        elif path == "/cookies":
            self._reply(200, b"ok", {"Set-Cookie": ["a=1", "b=2"]})
        else:
            self._reply(404, b"missing", {"Content-Type": "text/plain"})

    do_GET = do_POST = do_PUT = do_DELETE = do_HEAD = _route

    def log_message(self, format, *args):
        pass


class TestServer:
    """A local HTTP server running in a background thread."""

    def __init__(self):
        self.httpd = ThreadingHTTPServer(("127.0.0.1", 0), EchoHandler)
        self.port = self.httpd.server_address[1]
        self._thread: threading.Thread = None

    @property
    def base_uri(self) -> str:
        return f"http://127.0.0.1:{self.port}"

    def start(self):
        self._thread = threading.Thread(target=self.httpd.serve_forever, daemon=True)
        self._thread.start()

    def stop(self):
        self.httpd.shutdown()
        self.httpd.server_close()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def test_server() -> Generator[TestServer, None, None]:
    """Start a local server for real transfers."""
    server = TestServer()
    server.start()
    yield server
    server.stop()
