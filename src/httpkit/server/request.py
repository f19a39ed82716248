"""
=============================================================================
SERVER REQUEST
=============================================================================

An incoming request, read from a WSGI environ (PEP 3333).

    def app(environ, start_response):
        request = ServerRequest(environ, base_path="/api")
        if request.is_post():
            name = request.get_post("name")
        ...

=============================================================================
WHERE EACH PART COMES FROM
=============================================================================

    ┌──────────────────┬────────────────────────────────────────────────┐
    │ PART             │ ENVIRON                                        │
    ├──────────────────┼────────────────────────────────────────────────┤
    │ method           │ REQUEST_METHOD                                 │
    │ path / segments  │ SCRIPT_NAME + PATH_INFO, minus the base path   │
    │ query            │ QUERY_STRING                                   │
    │ headers          │ HTTP_* keys, CONTENT_TYPE, CONTENT_LENGTH      │
    │ cookies          │ HTTP_COOKIE                                    │
    │ raw body         │ wsgi.input, CONTENT_LENGTH bytes               │
    │ post / files     │ the body, when it is a form                    │
    │ put/patch/delete │ the body parsed by Content-Type                │
    └──────────────────┴────────────────────────────────────────────────┘

File fields are spooled to temporary files and described the way Upload
expects them: {"name", "type", "size", "tmp_name", "error"}.
=============================================================================
"""

import logging
import os
import tempfile
import xml.etree.ElementTree as ET
from http.cookies import SimpleCookie
from typing import Any, Dict, List, Optional

from ..exceptions import ParseError
from ..http.headers import Headers
from ..http.parser import parse_data_by_content_type, parse_query_string


logger = logging.getLogger("httpkit.server")

FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def _lookup(data: Optional[Dict[str, Any]], key: Optional[str]) -> Any:
    if key is None:
        return data
    if not isinstance(data, dict):
        return None
    return data.get(key)


class ServerRequest:
    """
    A request received by a WSGI application.

    Attributes:
        environ: The WSGI environ
        base_path: Path prefix the application is mounted under
        request_uri: The path relative to the base path ("/" at least)
        headers: Request headers
        raw_data: The body bytes (None when there is no body)
        parsed_data: The body parsed by Content-Type, falling back to the
                     query or form fields
    """

    def __init__(self, environ: Dict[str, Any], base_path: Optional[str] = None):
        self.environ = environ
        self.base_path = base_path.rstrip("/") if base_path else ""
        self.request_uri = "/"
        self.segments: List[str] = []
        self.headers = Headers()
        self.raw_data: Optional[bytes] = None
        self.parsed_data: Any = None
        self.query_data: Any = None

        self.get: Dict[str, Any] = {}
        self.post: Dict[str, Any] = {}
        self.files: Dict[str, Any] = {}
        self.put: Any = {}
        self.patch: Any = {}
        self.delete: Any = {}
        self.cookie: Dict[str, str] = {}

        self._read_headers()
        self.set_request_uri(self._path(), self.base_path)
        self._read_cookies()
        self._parse_data()

    # =========================================================================
    # URI
    # =========================================================================

    def _path(self) -> str:
        path = self.environ.get("SCRIPT_NAME", "") + self.environ.get("PATH_INFO", "")
        return path or "/"

    def set_request_uri(self, uri: str, base_path: Optional[str] = None) -> "ServerRequest":
        """Strip the base path and the query from a path and split it into segments."""
        uri = uri.split("?", 1)[0]
        if base_path:
            if uri == base_path:
                uri = "/"
            elif uri.startswith(base_path + "/"):
                uri = uri[len(base_path):]
        self.request_uri = uri or "/"

        trimmed = self.request_uri.strip("/")
        self.segments = trimmed.split("/") if trimmed else []
        return self

    @property
    def full_request_uri(self) -> str:
        return self.base_path + self.request_uri

    def get_segment(self, i: int) -> Optional[str]:
        return self.segments[i] if 0 <= i < len(self.segments) else None

    # =========================================================================
    # SERVER INFO
    # =========================================================================

    @property
    def method(self) -> str:
        return self.environ.get("REQUEST_METHOD", "GET").upper()

    def is_get(self) -> bool:
        return self.method == "GET"

    def is_head(self) -> bool:
        return self.method == "HEAD"

    def is_post(self) -> bool:
        return self.method == "POST"

    def is_put(self) -> bool:
        return self.method == "PUT"

    def is_delete(self) -> bool:
        return self.method == "DELETE"

    def is_trace(self) -> bool:
        return self.method == "TRACE"

    def is_options(self) -> bool:
        return self.method == "OPTIONS"

    def is_connect(self) -> bool:
        return self.method == "CONNECT"

    def is_patch(self) -> bool:
        return self.method == "PATCH"

    def is_secure(self) -> bool:
        if self.environ.get("wsgi.url_scheme") == "https":
            return True
        if self.environ.get("HTTPS", "").lower() in ("on", "1"):
            return True
        return str(self.environ.get("SERVER_PORT", "")) == "443"

    @property
    def scheme(self) -> str:
        return "https" if self.is_secure() else "http"

    @property
    def port(self) -> Optional[int]:
        port = self.environ.get("SERVER_PORT")
        return int(port) if port else None

    def _raw_host(self) -> str:
        return self.environ.get("HTTP_HOST") or self.environ.get("SERVER_NAME") or ""

    @property
    def host(self) -> str:
        """The host name, without a port."""
        return self._raw_host().split(":", 1)[0]

    @property
    def full_host(self) -> str:
        """The host name with the port (from SERVER_PORT when the Host header has none)."""
        host = self._raw_host()
        if host and ":" not in host and self.port is not None:
            host += f":{self.port}"
        return host

    def get_ip(self, proxy: bool = True) -> Optional[str]:
        """
        The client address.

        With proxy on, Client-IP and the first X-Forwarded-For entry win
        over REMOTE_ADDR.
        """
        if proxy and self.environ.get("HTTP_CLIENT_IP"):
            return self.environ["HTTP_CLIENT_IP"]
        if proxy and self.environ.get("HTTP_X_FORWARDED_FOR"):
            return self.environ["HTTP_X_FORWARDED_FOR"].split(",")[0].strip()
        return self.environ.get("REMOTE_ADDR")

    # =========================================================================
    # HEADERS & COOKIES
    # =========================================================================

    def _read_headers(self) -> None:
        for key, value in self.environ.items():
            if key.startswith("HTTP_"):
                name = "-".join(part.capitalize() for part in key[5:].split("_"))
                self.headers.add(name, value)
            elif key in ("CONTENT_TYPE", "CONTENT_LENGTH") and value:
                name = "-".join(part.capitalize() for part in key.split("_"))
                self.headers.add(name, value)

    def _read_cookies(self) -> None:
        raw = self.environ.get("HTTP_COOKIE")
        if not raw:
            return
        cookies = SimpleCookie()
        cookies.load(raw)
        self.cookie = {name: morsel.value for name, morsel in cookies.items()}

    def has_header(self, name: str) -> bool:
        return self.headers.has(name)

    def get_header_value(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get_value(name, default)

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get_value("Content-Type")

    # =========================================================================
    # DATA
    # =========================================================================

    def _read_body(self) -> Optional[bytes]:
        stream = self.environ.get("wsgi.input")
        if stream is None:
            return None
        try:
            length = int(self.environ.get("CONTENT_LENGTH") or 0)
        except ValueError:
            length = 0
        if length <= 0:
            return None
        return stream.read(length)

    def _parse_data(self) -> None:
        content_type = self.content_type
        encoding = self.headers.get_value("Content-Encoding")
        query_string = self.environ.get("QUERY_STRING", "")

        if query_string:
            self.get = parse_query_string(query_string)
            if content_type and any(t in content_type.lower() for t in ("json", "xml", FORM_TYPES[0])):
                try:
                    self.query_data = parse_data_by_content_type(query_string, content_type, encoding)
                except (ValueError, ET.ParseError) as e:
                    logger.debug("Query string does not match the content type: %s", e)
                    self.query_data = self.get
            else:
                self.query_data = self.get

        self.raw_data = self._read_body()

        if content_type and self.raw_data is not None:
            try:
                self.parsed_data = parse_data_by_content_type(self.raw_data, content_type, encoding)
            except (ValueError, ET.ParseError) as e:
                raise ParseError(f"The request body is not valid {content_type}: {e}") from e

        if isinstance(self.parsed_data, dict) and content_type:
            if "multipart/form-data" in content_type.lower():
                self.post, self.files = self._split_files(self.parsed_data)
                self.parsed_data = dict(self.post)
            elif FORM_TYPES[0] in content_type.lower() and self.is_post():
                self.post = self.parsed_data

        if not self.parsed_data:
            if self.get:
                self.parsed_data = self.get
            elif self.post:
                self.parsed_data = self.post

        if self.is_put():
            self.put = self.parsed_data
        elif self.is_patch():
            self.patch = self.parsed_data
        elif self.is_delete():
            self.delete = self.parsed_data

    def _split_files(self, fields: Dict[str, Any]):
        post: Dict[str, Any] = {}
        files: Dict[str, Any] = {}
        for name, value in fields.items():
            if isinstance(value, dict) and "contents" in value:
                files[name] = self._spool(value)
            elif isinstance(value, list) and value and all(isinstance(v, dict) and "contents" in v for v in value):
                files[name] = [self._spool(v) for v in value]
            else:
                post[name] = value
        return post, files

    @staticmethod
    def _spool(part: Dict[str, Any]) -> Dict[str, Any]:
        with tempfile.NamedTemporaryFile(prefix="httpkit-", delete=False) as f:
            f.write(part["contents"])
        return {
            "name": os.path.basename(part["filename"]),
            "type": part["content_type"],
            "size": len(part["contents"]),
            "tmp_name": f.name,
            "error": 0,
        }

    def has_files(self) -> bool:
        return bool(self.files)

    # =========================================================================
    # LOOKUPS (whole dict when key is None)
    # =========================================================================

    def get_query(self, key: Optional[str] = None) -> Any:
        return _lookup(self.get, key)

    def get_post(self, key: Optional[str] = None) -> Any:
        return _lookup(self.post, key)

    def get_files(self, key: Optional[str] = None) -> Any:
        return _lookup(self.files, key)

    def get_put(self, key: Optional[str] = None) -> Any:
        return _lookup(self.put, key)

    def get_patch(self, key: Optional[str] = None) -> Any:
        return _lookup(self.patch, key)

    def get_delete(self, key: Optional[str] = None) -> Any:
        return _lookup(self.delete, key)

    def get_cookie(self, key: Optional[str] = None) -> Any:
        return _lookup(self.cookie, key)

    def get_server(self, key: Optional[str] = None) -> Any:
        return _lookup(self.environ, key)

    def get_env(self, key: Optional[str] = None) -> Any:
        return _lookup(dict(os.environ), key)

    def get_query_data(self, key: Optional[str] = None) -> Any:
        return _lookup(self.query_data, key)

    def get_parsed_data(self, key: Optional[str] = None) -> Any:
        return _lookup(self.parsed_data, key)

    def __repr__(self) -> str:
        return f"ServerRequest({self.method} {self.full_request_uri})"
