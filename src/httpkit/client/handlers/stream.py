"""
Stream handler: sends requests with urllib.request, no libcurl needed.

Transport settings live in context options grouped the way the stream
layer reads them:

    {
        "http": {"method": "POST", "header": "...", "content": "...",
                 "user_agent": "...", "timeout": 10, "protocol_version": "1.1"},
        "ssl":  {"verify_peer": True, "allow_self_signed": False},
    }
"""

import logging
import ssl
import urllib.error
import urllib.request
from typing import Any, Dict, Optional

from ...auth import Auth
from ...exceptions import HandlerError
from ...http.parser import parse_headers
from ..request import Request
from ..response import Response
from .base import AbstractHandler


logger = logging.getLogger("httpkit.client.stream")


class Stream(AbstractHandler):
    """
    A urllib-backed handler.

    Attributes:
        context_options: Grouped transport settings (see module docstring)
        context_params: Extra parameters kept alongside the options
        mode: Open mode of the stream ("r" for reading a response)
        uri: The prepared request URI (None until prepare())
    """

    def __init__(
        self,
        mode: str = "r",
        options: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ):
        super().__init__()
        self.mode = mode
        self.context_options: Dict[str, Any] = {}
        self.context_params: Dict[str, Any] = {}
        self._raw_headers: list = []
        self._body: Optional[bytes] = None

        if options:
            self.set_context_options(options)
        if params:
            for name, param in params.items():
                self.add_context_param(name, param)

    @classmethod
    def create(cls, method: str = "GET", mode: str = "r", options=None, params=None) -> "Stream":
        return cls(mode, options, params).set_method(method)

    # ─────────────────────────────────────────────────────────────────────
    # Context
    # ─────────────────────────────────────────────────────────────────────

    def set_method(self, method: str) -> "Stream":
        self.context_options.setdefault("http", {})["method"] = method.upper()
        return self

    def add_context_option(self, name: str, option: Any) -> "Stream":
        current = self.context_options.get(name)
        if isinstance(current, dict) and isinstance(option, dict):
            current.update(option)
        else:
            self.context_options[name] = dict(option) if isinstance(option, dict) else option

        http = self.context_options.get("http")
        if isinstance(http, dict) and "protocol_version" in http:
            self.http_version = str(http["protocol_version"])
        return self

    def set_context_options(self, options: Dict[str, Any]) -> "Stream":
        for name, option in options.items():
            self.add_context_option(name, option)
        return self

    def get_context_option(self, name: str) -> Any:
        return self.context_options.get(name)

    def has_context_option(self, name: str) -> bool:
        return name in self.context_options

    def add_context_param(self, name: str, param: Any) -> "Stream":
        self.context_params[name] = param
        return self

    def get_context_param(self, name: str) -> Any:
        return self.context_params.get(name)

    def has_context_param(self, name: str) -> bool:
        return name in self.context_params

    def set_mode(self, mode: str) -> "Stream":
        self.mode = mode
        return self

    def set_verify_peer(self, verify: bool = True) -> "Stream":
        return self.add_context_option("ssl", {"verify_peer": bool(verify)})

    def allow_self_signed(self, allow: bool = True) -> "Stream":
        """ssl cannot accept a self-signed chain alone; allowing it turns verification off."""
        return self.add_context_option("ssl", {"allow_self_signed": bool(allow)})

    def is_verify_peer(self) -> bool:
        return bool(self.context_options.get("ssl", {}).get("verify_peer", False))

    def is_allow_self_signed(self) -> bool:
        return bool(self.context_options.get("ssl", {}).get("allow_self_signed", False))

    def _ssl_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        settings = self.context_options.get("ssl", {})
        if settings.get("verify_peer") is False or settings.get("allow_self_signed"):
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    # ─────────────────────────────────────────────────────────────────────
    # Transfer
    # ─────────────────────────────────────────────────────────────────────

    def prepare(self, request: Request, auth: Optional[Auth] = None, clear: bool = True) -> "Stream":
        self.set_method(request.method)
        http = self.context_options["http"]

        if clear:
            http.pop("header", None)

        if auth is not None:
            request.add_header(auth.create_auth_header())

        query = request.get_query_string()

        if request.has_data():
            if request.sends_data_in_query():
                query = "&".join(p for p in (query, request.data.get_query_string()) if p)
                http.pop("content", None)
            else:
                http["content"] = request.get_data_content()
        elif request.has_body():
            request.add_header("Content-Length", str(len(request.body)))
            http["content"] = request.body
        else:
            http.pop("content", None)

        lines = []
        for header in request.headers:
            if request.method == "GET" and header.name.lower() in ("content-length", "content-type"):
                continue
            lines.append(str(header))
        if lines:
            existing = http.get("header")
            http["header"] = (existing + "\r\n" if existing else "") + "\r\n".join(lines) + "\r\n"

        self.uri = request.uri_as_string.split("?", 1)[0]
        if query:
            self.uri += "?" + query

        logger.debug("Prepared %s %s", request.method, self.uri)
        return self

    def send(self) -> Response:
        """
        Open the prepared URI and read the response.

        4xx and 5xx responses are returned, not raised.

        Raises:
            HandlerError: If the handler has not been prepared or the
                          connection fails
        """
        if self.uri is None:
            raise HandlerError("The request handler has not been prepared.")

        http = self.context_options.get("http", {})
        content = http.get("content")
        if isinstance(content, str):
            content = content.encode("utf-8")

        request = urllib.request.Request(self.uri, data=content, method=http.get("method", "GET"))
        for line in (http.get("header") or "").split("\r\n"):
            if ":" in line:
                name, _, value = line.partition(":")
                request.add_header(name.strip(), value.strip())
        if http.get("user_agent") and not request.has_header("User-agent"):
            request.add_header("User-Agent", http["user_agent"])

        uri, self.uri = self.uri, None
        try:
            with urllib.request.urlopen(
                request, timeout=http.get("timeout"), context=self._ssl_context()
            ) as result:
                self._capture(result)
        except urllib.error.HTTPError as e:
            with e:
                self._capture(e)
        except urllib.error.URLError as e:
            raise HandlerError(f"Error: Unable to open {uri}: {e.reason}.") from e

        return self.parse_response()

    def _capture(self, result) -> None:
        version = {10: "1.0", 11: "1.1"}.get(getattr(result, "version", 11), "1.1")
        reason = getattr(result, "reason", "") or ""
        self._raw_headers = [f"HTTP/{version} {result.status} {reason}".strip()]
        self._raw_headers.extend(f"{name}: {value}" for name, value in result.headers.items())
        self._body = result.read()

    def parse_response(self) -> Response:
        response = Response()
        parsed = parse_headers(self._raw_headers)

        if parsed.code is not None:
            response.set_code(parsed.code, parsed.message or None)
        if parsed.version:
            response.version = parsed.version
            self.http_version = parsed.version
        response.headers = parsed.headers
        response.body = self._body

        if response.has_header("Content-Encoding"):
            response.decode_body()

        return response

    def reset(self) -> "Stream":
        self.context_options = {}
        self.context_params = {}
        self._raw_headers = []
        self._body = None
        return self

    def disconnect(self) -> None:
        self.reset()
        self.uri = None
        self.resource = None
