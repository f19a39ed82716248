"""
Client-side HTTP response.

Handlers fill one of these in after a transfer; callers read the status
predicates and the body, raw or parsed by content type:

    response = client.get("https://api.example.com/users")
    if response.is_success():
        users = response.parsed_response
"""

import json
from typing import Any, Dict, Optional, Union

from ..http.headers import Header, Headers
from ..http.parser import decode_data, parse_data_by_content_type
from ..http.status_codes import get_message_from_code


class Response:
    """
    A received HTTP response.

    Attributes:
        code: Status code (None until a response has been parsed)
        message: Reason phrase, looked up from the code when not given
        version: Protocol version from the status line ("1.1", "2")
        headers: Response headers
        body: Body as received (bytes from transports, str when built by hand)
    """

    def __init__(
        self,
        code: Optional[int] = None,
        message: Optional[str] = None,
        version: Optional[str] = "1.1",
        headers: Union[Headers, Dict[str, str], None] = None,
        body: Union[str, bytes, None] = None,
    ):
        self.code: Optional[int] = None
        self.message: Optional[str] = message
        self.version = version
        self.headers = headers if isinstance(headers, Headers) else Headers(headers)
        self.body = body

        if code is not None:
            self.set_code(int(code), message)

    def set_code(self, code: int, message: Optional[str] = None) -> "Response":
        """
        Set the status code.

        Raises:
            ResponseCodeError: If the code is not a known HTTP status code
        """
        phrase = get_message_from_code(code)
        self.code = code
        self.message = message or phrase
        return self

    # ─────────────────────────────────────────────────────────────────────
    # Status predicates
    # ─────────────────────────────────────────────────────────────────────

    def is_success(self) -> bool:
        """1xx, 2xx and 3xx all count as success."""
        return self.code is not None and 100 <= self.code < 400

    def is_redirect(self) -> bool:
        return self.code is not None and 300 <= self.code < 400

    def is_error(self) -> bool:
        return self.code is not None and 400 <= self.code < 600

    def is_client_error(self) -> bool:
        return self.code is not None and 400 <= self.code < 500

    def is_server_error(self) -> bool:
        return self.code is not None and 500 <= self.code < 600

    # ─────────────────────────────────────────────────────────────────────
    # Headers
    # ─────────────────────────────────────────────────────────────────────

    def has_header(self, name: str) -> bool:
        return self.headers.has(name)

    def get_header(self, name: str) -> Optional[Header]:
        return self.headers.get(name)

    def get_header_value(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.headers.get_value(name, default)

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get_value("Content-Type")

    # ─────────────────────────────────────────────────────────────────────
    # Body
    # ─────────────────────────────────────────────────────────────────────

    def has_body(self) -> bool:
        return bool(self.body)

    @property
    def text(self) -> str:
        if self.body is None:
            return ""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8", errors="replace")
        return self.body

    def decode_body(self) -> "Response":
        """Decode the body in place according to Content-Encoding."""
        encoding = self.headers.get_value("Content-Encoding")
        if self.body and encoding:
            self.body = decode_data(self.body, encoding)
            self.headers.remove("Content-Encoding")
        return self

    @property
    def parsed_response(self) -> Any:
        """
        The body parsed by content type, or the raw body when the type is
        not one the parser understands.
        """
        if not self.body:
            return self.body

        parsed = parse_data_by_content_type(
            self.body,
            self.content_type,
            self.headers.get_value("Content-Encoding"),
        )
        return self.body if parsed is None else parsed

    def json(self) -> Any:
        return json.loads(self.text)

    def render(self) -> str:
        status = f"HTTP/{self.version} {self.code} {self.message}"
        return f"{status}\r\n{self.headers.render()}\r\n{self.text}"

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"Response(code={self.code!r}, message={self.message!r})"
