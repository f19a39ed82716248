"""
=============================================================================
CLIENT REQUEST
=============================================================================

What a client is about to send: method, URI, headers, query, data and an
optional raw body.

=============================================================================
REQUEST TYPES
=============================================================================

The request type decides how field data is put on the wire:

    ┌───────────────────────────────────┬────────────────────────────────┐
    │ TYPE                              │ DATA BECOMES                   │
    ├───────────────────────────────────┼────────────────────────────────┤
    │ application/x-www-form-urlencoded │ foo=bar&baz=123                │
    │ application/json                  │ {"foo":"bar","baz":123}        │
    │ application/xml                   │ the XML datums, concatenated   │
    │ multipart/form-data               │ --boundary ... parts ...       │
    │ (none)                            │ a query string                 │
    └───────────────────────────────────┴────────────────────────────────┘

Setting a type also sets the Content-Type header unless told otherwise.
A GET request with untyped or urlencoded data sends it in the URI query
instead of the body; the handlers take care of that.
=============================================================================
"""

import json
import os
from typing import Any, Dict, Optional, Union

from ..http.headers import Header, Headers
from ..http.uri import Uri
from .data import Data, is_file_datum


class Request:
    """
    An outgoing HTTP request.

    Example:
        >>> request = Request("http://localhost:8000/post", "POST")
        >>> _ = request.create_as_json().set_data({"foo": "bar"})
        >>> request.get_data_content()
        '{"foo":"bar"}'
    """

    URLENCODED = "application/x-www-form-urlencoded"
    JSON = "application/json"
    XML = "application/xml"
    MULTIPART = "multipart/form-data"

    def __init__(
        self,
        uri: Union[str, Uri, None] = None,
        method: str = "GET",
        headers: Union[Headers, Dict[str, str], list, None] = None,
        data: Union[Data, Dict[str, Any], str, None] = None,
        request_type: Optional[str] = None,
        body: Union[str, bytes, None] = None,
    ):
        self.uri = Uri()
        self.method = method.upper()
        self.headers = headers if isinstance(headers, Headers) else Headers(headers)
        self.data = data if isinstance(data, Data) else Data(data)
        self.query: Dict[str, Any] = {}
        self.body = body
        self.request_type: Optional[str] = None
        self.boundary: Optional[str] = None

        if uri is not None:
            self.set_uri(uri)
        if request_type is not None:
            self.set_request_type(request_type)

    # ─────────────────────────────────────────────────────────────────────
    # URI & method
    # ─────────────────────────────────────────────────────────────────────

    def set_uri(self, uri: Union[str, Uri]) -> "Request":
        self.uri = uri if isinstance(uri, Uri) else Uri(uri)
        return self

    @property
    def uri_as_string(self) -> str:
        return self.uri.render()

    def set_method(self, method: str) -> "Request":
        self.method = method.upper()
        return self

    # ─────────────────────────────────────────────────────────────────────
    # Headers
    # ─────────────────────────────────────────────────────────────────────

    def add_header(self, header: Union[Header, str], value: Optional[str] = None) -> "Request":
        self.headers.add(header, value)
        return self

    def add_headers(self, headers: Union[Dict[str, str], list]) -> "Request":
        self.headers.update(headers)
        return self

    def has_header(self, name: str) -> bool:
        return self.headers.has(name)

    def get_header(self, name: str) -> Optional[Header]:
        return self.headers.get(name)

    def get_header_value(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get_value(name, default)

    def remove_header(self, name: str) -> "Request":
        self.headers.remove(name)
        return self

    def remove_headers(self) -> "Request":
        self.headers.clear()
        return self

    def get_headers_as_string(self, eol: str = "\r\n") -> str:
        return self.headers.render(eol)

    # ─────────────────────────────────────────────────────────────────────
    # Query, data & body
    # ─────────────────────────────────────────────────────────────────────

    def set_query(self, query: Dict[str, Any]) -> "Request":
        self.query = dict(query)
        return self

    def add_query(self, name: str, value: Any) -> "Request":
        self.query[name] = value
        return self

    def has_query(self) -> bool:
        return bool(self.query)

    def remove_all_query(self) -> "Request":
        self.query = {}
        return self

    def set_data(self, data: Union[Data, Dict[str, Any], str, bytes]) -> "Request":
        self.data = data if isinstance(data, Data) else Data(data)
        return self

    def add_data(self, name: str, value: Any) -> "Request":
        self.data.add_data(name, value)
        return self

    def has_data(self) -> bool:
        return self.data.has_data()

    def remove_all_data(self) -> "Request":
        self.data.remove_all_data()
        return self

    def set_body(self, body: Union[str, bytes]) -> "Request":
        self.body = body
        return self

    def has_body(self) -> bool:
        return self.body is not None and len(self.body) > 0

    def remove_body(self) -> "Request":
        self.body = None
        return self

    # ─────────────────────────────────────────────────────────────────────
    # Request type
    # ─────────────────────────────────────────────────────────────────────

    def set_request_type(self, request_type: str, add_header: bool = True) -> "Request":
        self.request_type = request_type
        if add_header:
            if request_type == self.MULTIPART:
                self.boundary = self.boundary or Data.generate_boundary()
                self.headers.add("Content-Type", f"{self.MULTIPART}; boundary={self.boundary}")
            else:
                self.headers.add("Content-Type", request_type)
        return self

    def create_as_json(self) -> "Request":
        return self.set_request_type(self.JSON)

    def create_as_xml(self) -> "Request":
        return self.set_request_type(self.XML)

    def create_url_encoded(self) -> "Request":
        return self.set_request_type(self.URLENCODED)

    def create_as_multipart(self) -> "Request":
        return self.set_request_type(self.MULTIPART)

    def has_request_type(self) -> bool:
        return self.request_type is not None or self.has_header("Content-Type")

    def _is_type(self, media_type: str) -> bool:
        if self.request_type is not None:
            return self.request_type == media_type
        content_type = self.get_header_value("Content-Type") or ""
        return content_type.lower().startswith(media_type)

    def is_json(self) -> bool:
        return self._is_type(self.JSON)

    def is_xml(self) -> bool:
        return self._is_type(self.XML)

    def is_url_encoded(self) -> bool:
        return self._is_type(self.URLENCODED)

    def is_multipart(self) -> bool:
        return self._is_type(self.MULTIPART)

    # ─────────────────────────────────────────────────────────────────────
    # Wire content
    # ─────────────────────────────────────────────────────────────────────

    def sends_data_in_query(self) -> bool:
        """GET requests carry untyped or urlencoded data in the URI."""
        return self.method == "GET" and (not self.has_request_type() or self.is_url_encoded())

    def get_data_content(self) -> Union[str, bytes, None]:
        """
        Render the data for the request body according to the type.

        Returns None when there is no data.
        """
        if not self.data.has_data():
            return None

        if self.data.raw is not None:
            return self.data.raw

        fields = self.data.to_dict()

        if self.is_multipart():
            if self.boundary is None:
                self.create_as_multipart()
            return self.data.render_multipart(self.boundary)

        if self.is_json():
            files = [v for v in fields.values() if is_file_datum(v)]
            if files and len(files) == len(fields):
                return b"".join(_read_file(f["filename"]) for f in files)
            plain = {k: v for k, v in fields.items() if not is_file_datum(v)}
            return json.dumps(plain, separators=(",", ":"))

        if self.is_xml():
            parts = []
            for value in fields.values():
                if is_file_datum(value):
                    parts.append(_read_file(value["filename"]).decode("utf-8"))
                else:
                    parts.append(str(value))
            return "".join(parts)

        return self.data.get_query_string()

    def get_query_string(self) -> str:
        """The URI query plus any query set on the request."""
        from .data import build_query

        parts = [p for p in (self.uri.query, build_query(self.query)) if p]
        return "&".join(parts)

    def __repr__(self) -> str:
        return f"Request({self.method} {self.uri_as_string})"


def _read_file(path: str) -> bytes:
    with open(os.path.expanduser(path), "rb") as f:
        return f.read()
