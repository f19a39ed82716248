"""
=============================================================================
SERVER RESPONSE
=============================================================================

A response for a WSGI application to return.

    ┌─ STATUS LINE ────────────── HTTP/1.1 200 OK\r\n
    ├─ HEADERS ────────────────── Content-Type: application/json\r\n
    │                             Content-Encoding: gzip\r\n
    │                             Content-Length: 31\r\n
    ├─ EMPTY LINE ─────────────── \r\n
    └─ BODY ───────────────────── <gzip bytes>

The body is kept as given; prepare_body() applies the Content-Encoding
(gzip, deflate, base64, ...) when the response is rendered.

    def app(environ, start_response):
        response = ServerResponse(200, {"Content-Type": "text/plain"}, "Hello")
        return response(environ, start_response)

=============================================================================
"""

import logging
from typing import Any, Callable, Dict, Iterable, Optional, Union

from ..http.headers import Header, Headers
from ..http.parser import encode_data
from ..http.status_codes import get_message_from_code as _message_from_code


logger = logging.getLogger("httpkit.server")


class ServerResponse:
    """
    An outgoing response.

    Setters return self so they chain:

        ServerResponse().set_code(201).add_header("Location", "/items/1")
    """

    def __init__(
        self,
        code: int = 200,
        headers: Union[Headers, Dict[str, str], None] = None,
        body: Union[str, bytes, None] = None,
        version: str = "1.1",
        message: Optional[str] = None,
    ):
        self.code = 200
        self.message = "OK"
        self.version = version
        self.headers = headers if isinstance(headers, Headers) else Headers(headers)
        self.body: Union[str, bytes] = body if body is not None else b""
        self.set_code(code, message)

    @staticmethod
    def get_message_from_code(code: int) -> str:
        """
        The reason phrase for a status code.

        Raises:
            ResponseCodeError: If the code is unknown
        """
        return _message_from_code(code)

    @classmethod
    def redirect(cls, url: str, code: int = 302, version: str = "1.1") -> "ServerResponse":
        """
        A redirect response to url.

        Raises:
            ResponseCodeError: If the code is unknown
        """
        return cls(code, {"Location": url}, version=version)

    # =========================================================================
    # SETTERS
    # =========================================================================

    def set_code(self, code: int, message: Optional[str] = None) -> "ServerResponse":
        phrase = self.get_message_from_code(code)
        self.code = code
        self.message = message or phrase
        return self

    def set_version(self, version: str) -> "ServerResponse":
        self.version = version
        return self

    def add_header(self, header: Union[Header, str], value: Optional[str] = None) -> "ServerResponse":
        self.headers.add(header, value)
        return self

    def add_headers(self, headers: Dict[str, str]) -> "ServerResponse":
        self.headers.update(headers)
        return self

    def remove_header(self, name: str) -> "ServerResponse":
        self.headers.remove(name)
        return self

    def has_header(self, name: str) -> bool:
        return self.headers.has(name)

    def get_header_value(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get_value(name, default)

    def set_body(self, body: Union[str, bytes]) -> "ServerResponse":
        self.body = body
        return self

    # =========================================================================
    # STATUS
    # =========================================================================

    def is_success(self) -> bool:
        return 100 <= self.code < 400

    def is_redirect(self) -> bool:
        return 300 <= self.code < 400

    def is_error(self) -> bool:
        return self.code >= 400

    def is_client_error(self) -> bool:
        return 400 <= self.code < 500

    def is_server_error(self) -> bool:
        return self.code >= 500

    # =========================================================================
    # RENDERING
    # =========================================================================

    @property
    def status(self) -> str:
        return f"{self.code} {self.message}"

    def prepare_body(self, length: bool = False) -> bytes:
        """
        The body as it goes on the wire, encoded per Content-Encoding.

        With length on, Content-Length is set to the encoded size.
        """
        body = self.body.encode("utf-8") if isinstance(self.body, str) else self.body

        encoding = self.headers.get_value("Content-Encoding")
        if encoding:
            encoded = encode_data(body, encoding.upper())
            body = encoded.encode("utf-8") if isinstance(encoded, str) else encoded

        if length:
            self.headers.add("Content-Length", str(len(body)))
        return body

    def get_headers_as_string(self, status: Union[bool, str, None] = True, eol: str = "\r\n") -> str:
        """
        The header block, led by the status line when status is True (or
        by status itself when it is a string).
        """
        lines = []
        if status is True:
            lines.append(f"HTTP/{self.version} {self.code} {self.message}")
        elif status:
            lines.append(status)
        lines.extend(str(header) for header in self.headers)
        return "".join(line + eol for line in lines)

    def to_bytes(self) -> bytes:
        body = self.prepare_body(length=True)
        return self.get_headers_as_string(True).encode("latin-1") + b"\r\n" + body

    def __call__(self, environ: Dict[str, Any], start_response: Callable) -> Iterable[bytes]:
        """Serve this response from a WSGI application."""
        body = self.prepare_body(length=True)
        start_response(self.status, [(header.name, header.values_as_strings()) for header in self.headers])
        logger.debug("%s %s -> %s", environ.get("REQUEST_METHOD"), environ.get("PATH_INFO"), self.code)
        if environ.get("REQUEST_METHOD") == "HEAD":
            return [b""]
        return [body]

    def __str__(self) -> str:
        body = self.prepare_body()
        return self.get_headers_as_string(True) + "\r\n" + body.decode("utf-8", "replace")

    def __repr__(self) -> str:
        return f"ServerResponse({self.status})"
