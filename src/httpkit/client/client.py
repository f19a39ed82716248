"""
=============================================================================
HTTP CLIENT
=============================================================================

The Client ties a Request, a handler and optional Auth together:

    client = Client("http://localhost:8000/post", {
        "method": "POST",
        "type": Request.JSON,
        "data": {"foo": "bar"},
    })
    response = client.send()

=============================================================================
CONSTRUCTOR ARGUMENTS
=============================================================================

Client(*args) sorts its arguments by type, in any order:

    str          → the request URI
    Request      → the request
    Response     → a response (e.g. one kept from an earlier exchange)
    CurlMulti    → the multi handler this client joins
    handler      → the transport (Curl by default)
    Auth         → credentials added as a header when sending
    dict         → client options

=============================================================================
CLIENT OPTIONS
=============================================================================

    ┌────────────────────┬──────────────────────────────────────────────┐
    │ OPTION             │ EFFECT AT prepare()                          │
    ├────────────────────┼──────────────────────────────────────────────┤
    │ base_uri           │ prefixed to URIs that don't start with it    │
    │ method             │ request method                               │
    │ type               │ request type (and Content-Type)              │
    │ headers            │ added to the request                         │
    │ query              │ added to the request query                   │
    │ data / files       │ request data; files become file fields       │
    │ user_agent         │ handler user agent                           │
    │ verify_peer        │ handler TLS verification                     │
    │ allow_self_signed  │ handler self-signed certificate policy       │
    │ timeout            │ whole-transfer timeout, seconds              │
    │ connect_timeout    │ connect timeout, seconds (curl only)         │
    │ follow_location    │ follow redirects                             │
    │ max_redirects      │ redirect limit (curl only)                   │
    │ http_version       │ "1.0", "1.1" or "2"                          │
    │ async              │ send() returns a Promise                     │
    │ auto               │ send() returns the parsed body               │
    │ force_custom_method│ curl sends the method as CUSTOMREQUEST       │
    │ log_format         │ transfer log records as "text" or "json"     │
    └────────────────────┴──────────────────────────────────────────────┘

Options are applied every time the client is prepared, so changing an
option and sending again takes effect on the next transfer.
=============================================================================
"""

import logging
import os
import time
from typing import Any, Dict, List, Optional, Union

from ..auth import Auth
from ..exceptions import RequestError
from ..http.uri import Uri
from ..log import TransferLog, log_transfer
from . import curl_options
from .data import get_mime_type_from_filename
from .handlers import AbstractHandler, Curl, CurlMulti, Stream
from .request import Request
from .response import Response


logger = logging.getLogger("httpkit.client")

_CURL_HTTP_VERSIONS = {
    "1.0": curl_options.HTTP_VERSION_1_0,
    "1.1": curl_options.HTTP_VERSION_1_1,
    "2": curl_options.HTTP_VERSION_2_0,
    "2.0": curl_options.HTTP_VERSION_2_0,
}


class Client:
    """
    An HTTP client.

    Attributes:
        request: The request to send (created on prepare() if missing)
        response: The last response received
        handler: The transport (a Curl handler is created if none is given)
        multi_handler: The CurlMulti this client was added to, if any
        auth: Credentials sent as an auth header
        options: Client options (see module docstring)
    """

    def __init__(self, *args: Any):
        self.request: Optional[Request] = None
        self.response: Optional[Response] = None
        self.handler: Optional[AbstractHandler] = None
        self.multi_handler: Optional[CurlMulti] = None
        self.auth: Optional[Auth] = None
        self.options: Dict[str, Any] = {}
        multi = None

        for arg in args:
            if isinstance(arg, str):
                self.request = Request(arg)
            elif isinstance(arg, Request):
                self.request = arg
            elif isinstance(arg, Response):
                self.response = arg
            elif isinstance(arg, CurlMulti):
                multi = arg
            elif isinstance(arg, AbstractHandler):
                self.handler = arg
            elif isinstance(arg, Auth):
                self.auth = arg
            elif isinstance(arg, dict):
                self.set_options(arg)
            elif arg is not None:
                raise TypeError(f"Unsupported client argument: {type(arg).__name__}")

        if multi is not None:
            self.set_multi_handler(multi)

    @classmethod
    def create_multi(
        cls,
        requests: Union[Dict[str, Any], List[Any]],
        multi: Optional[CurlMulti] = None,
    ) -> CurlMulti:
        """
        Put one client per request on a multi handler.

        Requests may be URI strings, Request objects or Clients. A dict
        names each client by its key.
        """
        if multi is None:
            multi = CurlMulti()
        items = requests.items() if isinstance(requests, dict) else enumerate(requests)
        for name, request in items:
            client = request if isinstance(request, Client) else cls(request)
            client.set_multi_handler(multi, None if isinstance(name, int) else name)
        return multi

    @classmethod
    def from_curl_command(cls, command: str) -> "Client":
        from .curl_command import command_to_request
        return command_to_request(command)

    def to_curl_command(self) -> str:
        from .curl_command import request_to_command
        return request_to_command(self)

    # ─────────────────────────────────────────────────────────────────────
    # Collaborators
    # ─────────────────────────────────────────────────────────────────────

    def set_request(self, request: Request) -> "Client":
        self.request = request
        return self

    def has_request(self) -> bool:
        return self.request is not None

    def set_response(self, response: Response) -> "Client":
        self.response = response
        return self

    def has_response(self) -> bool:
        return self.response is not None

    def set_handler(self, handler: AbstractHandler) -> "Client":
        self.handler = handler
        return self

    def has_handler(self) -> bool:
        return self.handler is not None

    def set_multi_handler(self, multi: CurlMulti, name: Optional[str] = None) -> "Client":
        self.multi_handler = multi
        multi.add_client(self, name)
        return self

    def set_auth(self, auth: Auth) -> "Client":
        self.auth = auth
        return self

    def has_auth(self) -> bool:
        return self.auth is not None

    # ─────────────────────────────────────────────────────────────────────
    # Options
    # ─────────────────────────────────────────────────────────────────────

    def set_options(self, options: Dict[str, Any]) -> "Client":
        self.options = dict(options)
        return self

    def add_options(self, options: Dict[str, Any]) -> "Client":
        self.options.update(options)
        return self

    def set_option(self, name: str, value: Any) -> "Client":
        self.options[name] = value
        return self

    def get_option(self, name: str, default: Any = None) -> Any:
        return self.options.get(name, default)

    def has_option(self, name: str) -> bool:
        return name in self.options

    def remove_option(self, name: str) -> "Client":
        self.options.pop(name, None)
        return self

    def set_method(self, method: str) -> "Client":
        return self.set_option("method", method.upper())

    def set_type(self, request_type: str) -> "Client":
        return self.set_option("type", request_type)

    def set_user_agent(self, user_agent: str) -> "Client":
        return self.set_option("user_agent", user_agent)

    def add_header(self, name: str, value: str) -> "Client":
        self.options.setdefault("headers", {})[name] = value
        return self

    def add_headers(self, headers: Dict[str, str]) -> "Client":
        self.options.setdefault("headers", {}).update(headers)
        return self

    def has_header(self, name: str) -> bool:
        headers = self.options.get("headers") or {}
        return any(key.lower() == name.lower() for key in headers)

    def remove_header(self, name: str) -> "Client":
        headers = self.options.get("headers") or {}
        for key in [k for k in headers if k.lower() == name.lower()]:
            del headers[key]
        return self

    def add_query(self, name: str, value: Any) -> "Client":
        self.options.setdefault("query", {})[name] = value
        return self

    def set_query(self, query: Dict[str, Any]) -> "Client":
        return self.set_option("query", dict(query))

    def set_data(self, data: Union[Dict[str, Any], str, bytes]) -> "Client":
        return self.set_option("data", dict(data) if isinstance(data, dict) else data)

    def add_data(self, name: str, value: Any) -> "Client":
        data = self.options.get("data")
        if not isinstance(data, dict):
            data = self.options["data"] = {}
        data[name] = value
        return self

    def has_data(self) -> bool:
        return bool(self.options.get("data"))

    # ─────────────────────────────────────────────────────────────────────
    # Files & body
    # ─────────────────────────────────────────────────────────────────────

    def set_files(self, files: Union[str, List[str], Dict[str, str]], multipart: bool = True) -> "Client":
        """
        Attach files as data fields.

        A list names the fields file1, file2, ...; a dict uses its keys.

        Raises:
            RequestError: If a file does not exist
        """
        if isinstance(files, str):
            files = [files]
        items = files.items() if isinstance(files, dict) else enumerate(files)
        for _, path in items:
            if not os.path.isfile(path):
                raise RequestError(f"The file '{path}' does not exist.")

        self.options["files"] = dict(files) if isinstance(files, dict) else list(files)
        if multipart:
            self.options["type"] = Request.MULTIPART
        return self

    def add_file(self, file: str, name: Optional[str] = None) -> "Client":
        """
        Attach one more file; unnamed files continue the fileN numbering.

        Raises:
            RequestError: If the file does not exist
        """
        if not os.path.isfile(file):
            raise RequestError(f"The file '{file}' does not exist.")

        files = self.options.get("files") or {}
        if not isinstance(files, dict):
            files = {f"file{i + 1}": path for i, path in enumerate(files)}
        files[name or f"file{len(files) + 1}"] = file
        self.options["files"] = files
        self.options.setdefault("type", Request.MULTIPART)
        return self

    def has_files(self) -> bool:
        return bool(self.options.get("files"))

    def remove_files(self) -> "Client":
        self.options.pop("files", None)
        return self

    def set_body(self, body: Union[str, bytes]) -> "Client":
        """
        Set a raw body on the request.

        Raises:
            RequestError: If there is no request yet
        """
        if self.request is None:
            raise RequestError("The request object has not been created.")
        self.request.set_body(body)
        return self

    def set_body_from_file(self, file: str) -> "Client":
        """
        Set the request body to the contents of a file.

        Raises:
            RequestError: If the file does not exist or there is no request
        """
        if not os.path.isfile(file):
            raise RequestError(f"The file '{file}' does not exist.")
        with open(file, "rb") as f:
            return self.set_body(f.read())

    # ─────────────────────────────────────────────────────────────────────
    # Prepare & send
    # ─────────────────────────────────────────────────────────────────────

    def prepare(self, uri: Optional[str] = None, method: Optional[str] = None) -> "Client":
        """
        Apply the client options to the request and the handler.

        Raises:
            RequestError: If there is no URI to send to
        """
        base_uri = self.options.get("base_uri")

        if self.request is None:
            if uri is None and not base_uri:
                raise RequestError("There is no request URI to send.")
            self.request = Request()

        target = uri if uri is not None else self.request.uri_as_string
        if not target and not base_uri:
            raise RequestError("There is no request URI to send.")
        if base_uri and not target.startswith(base_uri):
            target = base_uri + target
        if uri is not None or target != self.request.uri_as_string:
            self.request.set_uri(target)

        if method is not None:
            self.request.set_method(method)
        elif self.options.get("method"):
            self.request.set_method(self.options["method"])

        self._apply_request_options()
        self._apply_handler_options()
        return self

    def _apply_request_options(self) -> None:
        request = self.request

        if self.options.get("type"):
            request.set_request_type(self.options["type"])

        if self.options.get("headers"):
            request.add_headers(self.options["headers"])

        if self.options.get("query"):
            for name, value in self.options["query"].items():
                request.add_query(name, value)

        data = self.options.get("data")
        files = self.options.get("files")

        if isinstance(data, (str, bytes)):
            request.set_data(data)
        elif data or files:
            fields = dict(data or {})
            items = files.items() if isinstance(files, dict) else enumerate(files or [])
            for key, path in items:
                name = f"file{key + 1}" if isinstance(key, int) else key
                fields[name] = {
                    "filename": path,
                    "content_type": get_mime_type_from_filename(path),
                }
            request.set_data(fields)

    def _apply_handler_options(self) -> None:
        if self.handler is None:
            self.handler = Curl()
        else:
            self.handler.reset()

        handler = self.handler
        options = self.options

        if isinstance(handler, Curl):
            if options.get("user_agent"):
                handler.set_option("USERAGENT", options["user_agent"])
            if options.get("timeout") is not None:
                handler.set_option("TIMEOUT_MS", int(options["timeout"] * 1000))
            if options.get("connect_timeout") is not None:
                handler.set_option("CONNECTTIMEOUT_MS", int(options["connect_timeout"] * 1000))
            if options.get("follow_location") is not None:
                handler.set_option("FOLLOWLOCATION", bool(options["follow_location"]))
            if options.get("max_redirects") is not None:
                handler.set_option("MAXREDIRS", options["max_redirects"])
            if options.get("http_version"):
                handler.set_option("HTTP_VERSION", _CURL_HTTP_VERSIONS[str(options["http_version"])])
        elif isinstance(handler, Stream):
            http: Dict[str, Any] = {}
            if options.get("user_agent"):
                http["user_agent"] = options["user_agent"]
            if options.get("timeout") is not None:
                http["timeout"] = options["timeout"]
            if options.get("follow_location") is not None:
                http["follow_location"] = int(bool(options["follow_location"]))
            if options.get("http_version"):
                http["protocol_version"] = str(options["http_version"])
            if http:
                handler.add_context_option("http", http)

        if not isinstance(handler, CurlMulti):
            if "verify_peer" in options:
                handler.set_verify_peer(bool(options["verify_peer"]))
            if "allow_self_signed" in options:
                handler.allow_self_signed(bool(options["allow_self_signed"]))

    def _prepare_handler(self) -> AbstractHandler:
        if isinstance(self.handler, Curl) and self.options.get("force_custom_method"):
            return self.handler.prepare(self.request, self.auth, force_custom_method=True)
        return self.handler.prepare(self.request, self.auth)

    def send(self, uri: Optional[str] = None, method: Optional[str] = None) -> Any:
        """
        Send the request.

        Returns the Response, the parsed body when the "auto" option is on,
        or a Promise when the "async" option is on.

        Raises:
            RequestError: If there is no URI to send to
            HandlerError: If the transport fails
        """
        if self.options.get("async") is True:
            if uri is not None or method is not None:
                self.prepare(uri, method)
            return self.send_async()
        return self.dispatch(uri, method)

    def dispatch(self, uri: Optional[str] = None, method: Optional[str] = None) -> Any:
        """Send now, whatever the "async" option says."""
        self.prepare(uri, method)
        started = time.time()
        log_format = self.options.get("log_format", "text")

        try:
            self.response = self._prepare_handler().send()
        except Exception:
            log_transfer(TransferLog.create(
                self.request.method, self.handler.uri or self.request.uri_as_string,
                None, 0, started, type(self.handler).__name__,
            ), log_format)
            raise

        log_transfer(TransferLog.create(
            self.request.method,
            self.handler.uri or self.request.uri_as_string,
            self.response.code,
            len(self.response.body or b""),
            started,
            type(self.handler).__name__,
        ), log_format)

        if self.options.get("auto"):
            return self.response.parsed_response
        return self.response

    def send_async(self):
        from ..promise import Promise
        return Promise(self)

    def render(self) -> str:
        """
        The request as it would go on the wire (request line, Host,
        headers, blank line, body).
        """
        self.prepare()
        self._prepare_handler()

        uri = Uri(self.handler.uri or self.request.uri_as_string)
        target = uri.path or "/"
        if uri.has_query():
            target += "?" + uri.query

        version = self.handler.http_version or "1.1"
        rendered = (
            f"{self.request.method} {target} HTTP/{version}\r\n"
            f"Host: {uri.full_host}\r\n"
            f"{self.request.get_headers_as_string()}\r\n"
        )

        content = None
        if self.request.has_data() and not self.request.sends_data_in_query():
            content = self.request.get_data_content()
        elif self.request.has_body():
            content = self.request.body
        if content:
            rendered += content.decode("utf-8", "replace") if isinstance(content, bytes) else content
        return rendered

    def reset(self, data: bool = True, headers: bool = False, clear: bool = False) -> "Client":
        """
        Clear client state.

        data drops query, data and files; headers drops headers and the
        user agent; clear drops everything, options included.
        """
        if clear:
            self.request = None
            self.response = None
            self.handler = None
            self.auth = None
            self.options = {}
            return self

        if data:
            for name in ("query", "data", "files"):
                self.options.pop(name, None)
            if self.request is not None:
                self.request.remove_all_query()
                self.request.remove_all_data()
        if headers:
            for name in ("headers", "user_agent"):
                self.options.pop(name, None)
            if self.request is not None:
                self.request.remove_headers()
        return self

    # ─────────────────────────────────────────────────────────────────────
    # Status
    # ─────────────────────────────────────────────────────────────────────

    def is_complete(self) -> bool:
        return self.response is not None and self.response.code is not None

    def is_success(self) -> bool:
        return self.is_complete() and self.response.is_success()

    def is_error(self) -> bool:
        return self.is_complete() and self.response.is_error()

    # ─────────────────────────────────────────────────────────────────────
    # Verb helpers
    # ─────────────────────────────────────────────────────────────────────

    def get(self, uri: Optional[str] = None) -> Any:
        return self.send(uri, "GET")

    def post(self, uri: Optional[str] = None) -> Any:
        return self.send(uri, "POST")

    def put(self, uri: Optional[str] = None) -> Any:
        return self.send(uri, "PUT")

    def patch(self, uri: Optional[str] = None) -> Any:
        return self.send(uri, "PATCH")

    def delete(self, uri: Optional[str] = None) -> Any:
        return self.send(uri, "DELETE")

    def head(self, uri: Optional[str] = None) -> Any:
        return self.send(uri, "HEAD")

    def options_(self, uri: Optional[str] = None) -> Any:
        return self.send(uri, "OPTIONS")

    def trace(self, uri: Optional[str] = None) -> Any:
        return self.send(uri, "TRACE")

    def connect(self, uri: Optional[str] = None) -> Any:
        return self.send(uri, "CONNECT")

    def _async(self, uri: Optional[str], method: str):
        self.prepare(uri, method)
        return self.send_async()

    def get_async(self, uri: Optional[str] = None):
        return self._async(uri, "GET")

    def post_async(self, uri: Optional[str] = None):
        return self._async(uri, "POST")

    def put_async(self, uri: Optional[str] = None):
        return self._async(uri, "PUT")

    def patch_async(self, uri: Optional[str] = None):
        return self._async(uri, "PATCH")

    def delete_async(self, uri: Optional[str] = None):
        return self._async(uri, "DELETE")

    def head_async(self, uri: Optional[str] = None):
        return self._async(uri, "HEAD")

    def options_async(self, uri: Optional[str] = None):
        return self._async(uri, "OPTIONS")

    def trace_async(self, uri: Optional[str] = None):
        return self._async(uri, "TRACE")

    def connect_async(self, uri: Optional[str] = None):
        return self._async(uri, "CONNECT")

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        target = self.request.uri_as_string if self.request is not None else None
        return f"Client({target!r})"
