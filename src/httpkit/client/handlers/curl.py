"""
=============================================================================
CURL HANDLER (pycurl)
=============================================================================

Sends requests through libcurl.

Options are kept by libcurl name ("USERAGENT", "SSL_VERIFYPEER") so they
can be listed, compared and turned back into curl command-line flags.
They are resolved to pycurl constants only when the handle is loaded:

    handler = Curl({"USERAGENT": "httpkit/1.0", "TIMEOUT": 10})
    handler.prepare(request)      # options + request → pycurl handle
    response = handler.send()     # perform() → Response

=============================================================================
WHERE REQUEST DATA GOES
=============================================================================

    GET, untyped or urlencoded    → appended to the URL query
    JSON                          → POSTFIELDS '{"a":1}'
    urlencoded (non-GET)          → POSTFIELDS 'a=1&b=2'
    multipart                     → POSTFIELDS multipart body
    anything else                 → POSTFIELDS, urlencoded by default
    raw body                      → POSTFIELDS as is

HEADER is on by default so the status line and headers arrive in front of
the body; HEADER_SIZE tells where they end.
=============================================================================
"""

import logging
from io import BytesIO
from typing import Any, Dict, Optional

import pycurl

from ...auth import Auth
from ...exceptions import HandlerError
from ...http.parser import parse_headers
from ..request import Request
from ..response import Response
from .base import AbstractHandler


logger = logging.getLogger("httpkit.client.curl")

# getinfo() keys reported when no single key is asked for
INFO_KEYS = (
    "EFFECTIVE_URL",
    "RESPONSE_CODE",
    "CONTENT_TYPE",
    "HEADER_SIZE",
    "SIZE_DOWNLOAD",
    "SIZE_UPLOAD",
    "NAMELOOKUP_TIME",
    "CONNECT_TIME",
    "TOTAL_TIME",
    "REDIRECT_COUNT",
)


def option_name(name: str) -> str:
    """Normalize "CURLOPT_USERAGENT" and "useragent" to "USERAGENT"."""
    name = name.upper()
    if name.startswith("CURLOPT_"):
        name = name[len("CURLOPT_"):]
    return name


class Curl(AbstractHandler):
    """
    A pycurl-backed handler.

    Attributes:
        options: Handler options by libcurl name
        resource: The pycurl.Curl handle (created on first use)
        response: Raw bytes received by the last transfer
    """

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        super().__init__()
        self.options: Dict[str, Any] = {"HEADER": True}
        self.response: Optional[bytes] = None
        self._buffer = BytesIO()
        self._request_headers: list = []

        if options:
            self.set_options(options)

    @property
    def curl(self) -> pycurl.Curl:
        if self.resource is None:
            self.resource = pycurl.Curl()
        return self.resource

    # ─────────────────────────────────────────────────────────────────────
    # Options
    # ─────────────────────────────────────────────────────────────────────

    def set_option(self, name: str, value: Any) -> "Curl":
        self.options[option_name(name)] = value
        return self

    def set_options(self, options: Dict[str, Any]) -> "Curl":
        for name, value in options.items():
            self.set_option(name, value)
        return self

    def get_option(self, name: str) -> Any:
        return self.options.get(option_name(name))

    def has_option(self, name: str) -> bool:
        return option_name(name) in self.options

    def has_options(self) -> bool:
        return bool(self.options)

    def remove_option(self, name: str) -> "Curl":
        self.options.pop(option_name(name), None)
        return self

    def is_return_header(self) -> bool:
        return bool(self.options.get("HEADER"))

    def set_verify_peer(self, verify: bool = True) -> "Curl":
        return self.set_option("SSL_VERIFYPEER", int(bool(verify)))

    def allow_self_signed(self, allow: bool = True) -> "Curl":
        return self.set_option("SSL_VERIFYHOST", 0 if allow else 2)

    def is_verify_peer(self) -> bool:
        return bool(self.options.get("SSL_VERIFYPEER", True))

    # ─────────────────────────────────────────────────────────────────────
    # Transfer
    # ─────────────────────────────────────────────────────────────────────

    def prepare(
        self, request: Request, auth: Optional[Auth] = None, force_custom_method: bool = False
    ) -> "Curl":
        """
        Load the handler options and the request into the pycurl handle.

        With force_custom_method the method always goes out as
        CUSTOMREQUEST, even for POST.
        """
        uri = request.uri_as_string

        if auth is not None:
            request.add_header(auth.create_auth_header())

        query = request.get_query_string()
        postfields = None

        if request.has_data():
            if request.sends_data_in_query():
                query = "&".join(p for p in (query, request.data.get_query_string()) if p)
            else:
                postfields = request.get_data_content()
                if not request.has_header("Content-Type"):
                    request.add_header("Content-Type", Request.URLENCODED)
                request.add_header("Content-Length", str(_byte_length(postfields)))
        elif request.has_body():
            postfields = request.body
            request.add_header("Content-Length", str(_byte_length(postfields)))

        if query:
            uri = uri.split("?", 1)[0] + "?" + query
        self.uri = uri

        handle = self.curl
        handle.reset()
        self._buffer = BytesIO()
        self.response = None

        for name, value in self.options.items():
            self._setopt(name, value)

        handle.setopt(pycurl.URL, uri)
        handle.setopt(pycurl.WRITEDATA, self._buffer)

        if force_custom_method:
            handle.setopt(pycurl.CUSTOMREQUEST, request.method)
        elif request.method == "HEAD":
            handle.setopt(pycurl.NOBODY, 1)
        elif request.method == "POST":
            handle.setopt(pycurl.POST, 1)
        elif request.method != "GET":
            handle.setopt(pycurl.CUSTOMREQUEST, request.method)

        if postfields is not None:
            handle.setopt(pycurl.POSTFIELDS, postfields)

        self._request_headers = [str(header) for header in request.headers]
        handle.setopt(pycurl.HTTPHEADER, self._request_headers)

        logger.debug("Prepared %s %s", request.method, uri)
        return self

    def _setopt(self, name: str, value: Any) -> None:
        constant = getattr(pycurl, name, None)
        if constant is None:
            logger.warning("Skipping curl option %s: not supported by pycurl", name)
            return
        if isinstance(value, bool):
            value = int(value)
        # Fractional seconds go to the millisecond variant (TIMEOUT -> TIMEOUT_MS)
        if isinstance(value, float) and hasattr(pycurl, name + "_MS"):
            constant, value = getattr(pycurl, name + "_MS"), int(value * 1000)

        # Numbers parsed from a command may belong to a text option
        candidates = [value, str(value)] if isinstance(value, (int, float)) else [value]
        for candidate in candidates:
            try:
                self.curl.setopt(constant, candidate)
                return
            except (TypeError, ValueError, pycurl.error) as e:
                error = e
        logger.warning("Skipping curl option %s=%r: %s", name, value, error)

    def send(self) -> Response:
        """
        Run the transfer.

        Raises:
            HandlerError: If libcurl reports an error (errno is libcurl's code)
        """
        try:
            self.curl.perform()
        except pycurl.error as e:
            errno = e.args[0]
            message = e.args[1] if len(e.args) > 1 else str(e)
            raise HandlerError(f"Error: {errno} => {message}.", errno=errno) from e

        return self.parse_response()

    def parse_response(self) -> Response:
        """Split the received bytes into status line, headers and body."""
        self.response = self._buffer.getvalue()
        response = Response()

        if self.is_return_header():
            header_size = self.curl.getinfo(pycurl.HEADER_SIZE)
            parsed = parse_headers(self.response[:header_size].decode("iso-8859-1"))
            if parsed.code is not None:
                response.set_code(parsed.code, parsed.message or None)
            response.version = parsed.version
            response.headers = parsed.headers
            response.body = self.response[header_size:]
        else:
            code = self.curl.getinfo(pycurl.RESPONSE_CODE)
            if code:
                response.set_code(code)
            response.body = self.response

        self.http_version = response.version

        if response.has_header("Content-Encoding"):
            response.decode_body()

        return response

    def get_content(self) -> bytes:
        """Bytes received so far by the current transfer."""
        return self._buffer.getvalue()

    def get_info(self, name: Optional[str] = None) -> Any:
        """
        Transfer info by libcurl name ("TOTAL_TIME"), or a dict of the
        common ones.
        """
        if name is not None:
            return self.curl.getinfo(getattr(pycurl, option_name(name)))
        info = {}
        for key in INFO_KEYS:
            constant = getattr(pycurl, key, None)
            if constant is not None:
                info[key.lower()] = self.curl.getinfo(constant)
        return info

    @staticmethod
    def version() -> str:
        return pycurl.version

    def reset(self) -> "Curl":
        self.response = None
        self._buffer = BytesIO()
        self._request_headers = []
        return self

    def disconnect(self) -> None:
        if self.resource is not None:
            self.resource.close()
            self.resource = None


def _byte_length(content) -> int:
    return len(content.encode("utf-8") if isinstance(content, str) else content)
