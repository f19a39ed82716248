"""
=============================================================================
HTTP HEADERS
=============================================================================

Header value objects shared by client requests, client responses, server
responses and the auth layer.

=============================================================================
ANATOMY OF A HEADER
=============================================================================

    Content-Type: text/html; charset=utf-8
    ────────────  ───────── ─────────────
         │            │           │
         │            │           └── parameters (";" delimited)
         │            └────────────── value
         └─────────────────────────── name (case-insensitive)

    WWW-Authenticate: Digest realm="api", qop="auth", nonce="abc"
                      ────── ──────────────────────────────────
                        │                    │
                        │                    └── parameters ("," delimited)
                        └─────────────────────── scheme

A header line can be folded over several physical lines; continuation
lines start with whitespace and are joined to the previous line with a
single space before parsing (obsolete in RFC 7230, still sent by servers
that format long challenges).
=============================================================================
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Union

from ..exceptions import ParseError


# name=value or name="quoted value" inside a parameter list
PARAMETER_PATTERN = re.compile(r'([\w-]+)\s*=\s*("(?:[^"\\]|\\.)*"|[^,;]*)')

# One ";" delimited parameter segment ("charset=utf-8", "boundary=xyz")
SEGMENT_PATTERN = re.compile(r'^\s*[\w-]+\s*=\s*("[^"]*"|[^,;"]*)\s*$')

# A scheme token followed by name=value parameters ("Digest realm=...")
SCHEME_PATTERN = re.compile(r"^([A-Za-z][\w-]*)\s+([\w-]+\s*=\s*[^=\s].*)$", re.DOTALL)


def unfold(text: str) -> str:
    """Join continuation lines of a folded header into one line."""
    return re.sub(r"\r?\n[ \t]+", " ", text).strip()


def parse_parameters(text: str) -> Dict[str, str]:
    """
    Parse a parameter list into a dict, unquoting quoted values.

        >>> parse_parameters('realm="api", qop="auth,auth-int", nc=00000001')
        {'realm': 'api', 'qop': 'auth,auth-int', 'nc': '00000001'}
    """
    parameters = {}
    for name, value in PARAMETER_PATTERN.findall(text):
        value = value.strip()
        if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
            value = value[1:-1].replace('\\"', '"')
        parameters[name] = value
    return parameters


@dataclass
class HeaderValue:
    """
    A single header value with optional scheme and parameters.

    Attributes:
        value: The main value ("text/html", a token, a base64 blob)
        scheme: Leading scheme including its separator ("Basic ", "api:")
        parameters: Ordered parameters rendered after the value
        delimiter: Parameter delimiter (";" for media types, "," for auth)
        force_quote: Quote every parameter value when rendering
    """

    value: str = ""
    scheme: Optional[str] = None
    parameters: Dict[str, str] = field(default_factory=dict)
    delimiter: str = ";"
    force_quote: bool = False

    @classmethod
    def parse(cls, text: str) -> "HeaderValue":
        text = unfold(text)

        match = SCHEME_PATTERN.match(text)
        if match:
            return cls(
                scheme=match.group(1) + " ",
                parameters=parse_parameters(match.group(2)),
                delimiter=",",
            )

        if ";" in text:
            value, _, rest = text.partition(";")
            segments = rest.split(";")
            if all(SEGMENT_PATTERN.match(s) for s in segments):
                return cls(value=value.strip(), parameters=parse_parameters(rest))

        return cls(value=text)

    def has_parameter(self, name: str) -> bool:
        return name in self.parameters

    def get_parameter(self, name: str) -> Optional[str]:
        return self.parameters.get(name)

    def add_parameter(self, name: str, value: str) -> "HeaderValue":
        self.parameters[name] = value
        return self

    def render(self) -> str:
        parts = []
        for name, value in self.parameters.items():
            value = str(value)
            if self.force_quote or any(c in value for c in ' ,;="'):
                value = '"' + value.replace('"', '\\"') + '"'
            parts.append(f"{name}={value}")

        text = (self.scheme or "") + self.value
        if parts:
            joined = (self.delimiter + " ").join(parts)
            if self.value:
                text += self.delimiter + " " + joined
            else:
                text += joined
        return text

    def __str__(self) -> str:
        return self.render()


class Header:
    """
    A named header holding one or more values.

        >>> header = Header.parse("Content-Type: application/json")
        >>> header.name, header.value_as_string
        ('Content-Type', 'application/json')
        >>> str(header)
        'Content-Type: application/json'
    """

    def __init__(
        self,
        name: str,
        value: Union[str, HeaderValue, List[Union[str, HeaderValue]], None] = None,
    ):
        self.name = name
        self.values: List[HeaderValue] = []

        if isinstance(value, list):
            for item in value:
                self.add_value(item)
        elif value is not None:
            self.add_value(value)

    @classmethod
    def parse(cls, text: str) -> "Header":
        """
        Parse a "Name: value" line (folded lines allowed).

        Raises:
            ParseError: If there is no colon separating name and value
        """
        text = unfold(text)
        if ":" not in text:
            raise ParseError(f"The header '{text}' is not valid.")

        name, _, value = text.partition(":")
        return cls(name.strip(), HeaderValue.parse(value.strip()))

    def add_value(self, value: Union[str, HeaderValue]) -> "Header":
        if not isinstance(value, HeaderValue):
            value = HeaderValue(value=str(value))
        self.values.append(value)
        return self

    @property
    def value(self) -> Optional[HeaderValue]:
        return self.values[0] if self.values else None

    @property
    def value_as_string(self) -> str:
        return str(self.values[0]) if self.values else ""

    def values_as_strings(self, delimiter: str = ", ") -> str:
        return delimiter.join(str(v) for v in self.values)

    def render(self) -> str:
        return f"{self.name}: {self.values_as_strings()}"

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"Header({self.render()!r})"


class Headers:
    """
    Ordered, case-insensitive collection of headers.

    Adding a header whose name already exists replaces it; lookups ignore
    case, rendering keeps the case the header was added with.
    """

    def __init__(self, headers: Union[Dict[str, str], List, None] = None):
        self._headers: Dict[str, Header] = {}
        if headers:
            self.update(headers)

    def add(self, header: Union[Header, str], value: Optional[str] = None) -> "Headers":
        """
        Add a header object, a "Name: value" line, or a name and a value.
        """
        if isinstance(header, Header):
            obj = header
        elif value is None:
            obj = Header.parse(header)
        else:
            obj = Header(header, value if isinstance(value, HeaderValue) else str(value))

        self._headers[obj.name.lower()] = obj
        return self

    def update(self, headers: Union[Dict[str, str], List]) -> "Headers":
        if isinstance(headers, dict):
            for name, value in headers.items():
                self.add(name, value)
        else:
            for header in headers:
                self.add(header)
        return self

    def get(self, name: str) -> Optional[Header]:
        return self._headers.get(name.lower())

    def get_value(self, name: str, default: Optional[str] = None) -> Optional[str]:
        header = self.get(name)
        return header.value_as_string if header is not None else default

    def has(self, name: str) -> bool:
        return name.lower() in self._headers

    def remove(self, name: str) -> "Headers":
        self._headers.pop(name.lower(), None)
        return self

    def clear(self) -> "Headers":
        self._headers.clear()
        return self

    def to_dict(self) -> Dict[str, str]:
        return {h.name: h.values_as_strings() for h in self._headers.values()}

    def render(self, eol: str = "\r\n") -> str:
        return "".join(f"{header}{eol}" for header in self._headers.values())

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    def __iter__(self) -> Iterator[Header]:
        return iter(list(self._headers.values()))

    def __len__(self) -> int:
        return len(self._headers)

    def __bool__(self) -> bool:
        return bool(self._headers)
