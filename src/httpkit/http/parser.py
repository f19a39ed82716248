"""
=============================================================================
HTTP CONTENT PARSER
=============================================================================

Turns raw header blocks and raw bodies into Python values.

The transports (curl, urllib) deliver a header block and a body. What the
body means depends on three headers:

    ┌──────────────────────┬────────────────────────────────────────────┐
    │ HEADER               │ WHAT WE DO                                 │
    ├──────────────────────┼────────────────────────────────────────────┤
    │ Transfer-Encoding    │ "chunked"  → reassemble length-prefixed    │
    │                      │              chunks (decode_chunked_data)  │
    │ Content-Encoding     │ gzip/deflate/base64/... → decode_data()    │
    │ Content-Type         │ json/xml/urlencoded/multipart → Python     │
    │                      │ dicts (parse_data_by_content_type)         │
    └──────────────────────┴────────────────────────────────────────────┘

Order matters: chunking is undone first, then the content coding, then
the media type is interpreted.

=============================================================================
CHUNKED TRANSFER ENCODING
=============================================================================

    4\r\n          ← chunk size in hex (extensions after ";" are ignored)
    Wiki\r\n       ← 4 bytes of data
    5\r\n
    pedia\r\n
    0\r\n          ← zero-length chunk ends the body
    \r\n

decodes to "Wikipedia".
=============================================================================
"""

import base64
import email.policy
import gzip
import json
import quopri
import re
import xml.etree.ElementTree as ET
import zlib
from dataclasses import dataclass, field
from email.parser import BytesParser
from typing import Any, Dict, List, Optional, Union
from urllib.parse import parse_qs, quote, quote_plus, unquote, unquote_plus

from ..exceptions import ParseError
from .headers import Header, Headers, unfold


# Content codings understood by encode_data() / decode_data()
BASE64 = "BASE64"
QUOTED = "QUOTED"
URL = "URL"
RAW_URL = "RAW_URL"
GZIP = "GZIP"
DEFLATE = "DEFLATE"

# HTTP/1.1 200 OK, HTTP/2 404, HTTP/1.0 500 Internal Server Error
STATUS_LINE_PATTERN = re.compile(r"^HTTP/(\d(?:\.\d)?)\s+(\d{3})(?:\s+(.*))?$")


Data = Union[str, bytes]


@dataclass
class ParsedHeaders:
    """Result of parse_headers(): the status line parts and the headers."""

    version: Optional[str] = None
    code: Optional[int] = None
    message: Optional[str] = None
    headers: Headers = field(default_factory=Headers)


def parse_headers(headers: Union[str, List[str]]) -> ParsedHeaders:
    """
    Parse a raw header block (or a list of header lines).

    When a block holds several status lines (a "100 Continue" followed by
    the real response, or a redirect chain followed by the final response)
    the last one wins.

    Example:
        >>> parsed = parse_headers("HTTP/1.1 404 Not Found\\r\\nX-Id: 7\\r\\n")
        >>> parsed.code, parsed.message, parsed.headers.get_value("X-Id")
        (404, 'Not Found', '7')
    """
    if isinstance(headers, str):
        lines = [line.strip() for line in unfold(headers).split("\n")]
    else:
        lines = [line.strip() for line in headers]

    result = ParsedHeaders()

    for line in lines:
        if not line:
            continue

        match = STATUS_LINE_PATTERN.match(line)
        if match:
            result.version = match.group(1)
            result.code = int(match.group(2))
            result.message = (match.group(3) or "").strip()
            # A new status line starts a new header block
            result.headers = Headers()
        elif ":" in line:
            header = Header.parse(line)
            existing = result.headers.get(header.name)
            if existing is not None:
                for value in header.values:
                    existing.add_value(value)
            else:
                result.headers.add(header)

    return result


# =============================================================================
# ENCODING / DECODING
# =============================================================================


def _to_bytes(data: Data) -> bytes:
    return data if isinstance(data, bytes) else data.encode("utf-8")


def _to_text(data: Data) -> str:
    return data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data


def encode_data(data: Data, encoding: Optional[str] = None) -> Data:
    """
    Encode data with a content coding.

    GZIP and DEFLATE return bytes; the text codings return str. An unknown
    or missing encoding returns the data unchanged.
    """
    encoding = encoding.upper() if encoding else None

    if encoding == BASE64:
        return base64.b64encode(_to_bytes(data)).decode("ascii")
    if encoding == QUOTED:
        return quopri.encodestring(_to_bytes(data)).decode("ascii")
    if encoding == URL:
        return quote_plus(_to_text(data))
    if encoding == RAW_URL:
        return quote(_to_text(data), safe="")
    if encoding == GZIP:
        return gzip.compress(_to_bytes(data))
    if encoding == DEFLATE:
        compressor = zlib.compressobj(wbits=-zlib.MAX_WBITS)
        return compressor.compress(_to_bytes(data)) + compressor.flush()
    return data


def decode_data(data: Data, encoding: Optional[str] = None, chunked: bool = False) -> Data:
    """
    Undo chunking (optional) and then a content coding.

    DEFLATE accepts both zlib-wrapped and raw streams: a zlib header is
    recognised by its check bits (first two bytes divisible by 31).
    """
    if chunked:
        data = decode_chunked_data(data)

    encoding = encoding.upper() if encoding else None

    if encoding == BASE64:
        return base64.b64decode(_to_bytes(data))
    if encoding == QUOTED:
        return quopri.decodestring(_to_bytes(data))
    if encoding == URL:
        return unquote_plus(_to_text(data))
    if encoding == RAW_URL:
        return unquote(_to_text(data))
    if encoding == GZIP:
        return gzip.decompress(_to_bytes(data))
    if encoding == DEFLATE:
        raw = _to_bytes(data)
        if len(raw) >= 2 and ((raw[0] << 8) | raw[1]) % 31 == 0:
            return zlib.decompress(raw)
        return zlib.decompress(raw, -zlib.MAX_WBITS)
    return data


def decode_chunked_data(data: Data) -> Data:
    """
    Reassemble a chunked transfer-encoded body.

    Works on str and bytes alike and returns the same type it was given.
    Chunk sizes count bytes, so str input is handled as UTF-8.
    Anything after the zero-length chunk (trailers) is dropped.

    Raises:
        ParseError: If a chunk size line is not hexadecimal
    """
    if isinstance(data, str):
        return decode_chunked_data(data.encode("utf-8")).decode("utf-8", errors="replace")

    decoded = []

    while data:
        lf_pos = data.find(b"\n")
        if lf_pos == -1:
            decoded.append(data)
            break

        chunk_hex = data[:lf_pos].strip()
        sc_pos = chunk_hex.find(b";")
        if sc_pos != -1:
            chunk_hex = chunk_hex[:sc_pos]

        # Blank line between chunks
        if not chunk_hex:
            data = data[lf_pos + 1:]
            continue

        try:
            length = int(chunk_hex, 16)
        except ValueError as e:
            raise ParseError(f"Invalid chunk size: {chunk_hex!r}.") from e
        if length == 0:
            break

        start = lf_pos + 1
        decoded.append(data[start:start + length])
        data = data[start + length:].lstrip(b"\r")

    return b"".join(decoded)


# =============================================================================
# CONTENT-TYPE AWARE PARSING
# =============================================================================


def parse_data_by_content_type(
    raw_data: Data,
    content_type: Optional[str] = None,
    encoding: Optional[str] = None,
    chunked: bool = False,
) -> Any:
    """
    Parse a body according to its media type.

        json                               → dict / list
        xml                                → dict (see xml_to_dict)
        application/x-www-form-urlencoded  → dict
        multipart/form-data                → dict (file parts as dicts)
        anything else with an encoding     → decoded payload

    Returns None when nothing applies.
    """
    content_type = content_type.lower() if content_type else None

    if content_type and "json" in content_type:
        text = _to_text(decode_data(raw_data, encoding, chunked))
        return json.loads(text) if text.strip() else None

    if content_type and "xml" in content_type:
        text = _to_text(decode_data(raw_data, encoding, chunked))
        return xml_to_dict(ET.fromstring(text.strip())) if text.strip() else None

    if content_type and "application/x-www-form-urlencoded" in content_type:
        return parse_query_string(_to_text(decode_data(raw_data, encoding, chunked)))

    if content_type and "multipart/form-data" in content_type:
        return parse_multipart(decode_data(raw_data, None, chunked), content_type)

    if encoding is not None:
        return decode_data(raw_data, encoding, chunked)

    return None


def parse_query_string(query: str) -> Dict[str, Any]:
    """
    Parse a query string, keeping single values as scalars.

        >>> parse_query_string("foo=bar&baz=123&tag=a&tag=b")
        {'foo': 'bar', 'baz': '123', 'tag': ['a', 'b']}

    Keys written as ``name[]`` are always lists, with the brackets removed.
    """
    parsed = parse_qs(query, keep_blank_values=True)
    result: Dict[str, Any] = {}
    for key, values in parsed.items():
        if key.endswith("[]"):
            result[key[:-2]] = values
        else:
            result[key] = values[0] if len(values) == 1 else values
    return result


def xml_to_dict(element: ET.Element) -> Any:
    """
    Convert an element tree into plain dicts, lists and strings.

    Leaf elements become their text, repeated child tags become lists and
    attributes are kept under "@attributes". CDATA sections arrive as
    ordinary text, markup inside them included.
    """
    children = list(element)
    if not children and not element.attrib:
        return (element.text or "").strip()

    result: Dict[str, Any] = {}
    if element.attrib:
        result["@attributes"] = dict(element.attrib)

    for child in children:
        value = xml_to_dict(child)
        if child.tag in result:
            if not isinstance(result[child.tag], list):
                result[child.tag] = [result[child.tag]]
            result[child.tag].append(value)
        else:
            result[child.tag] = value

    if not children and element.text and element.text.strip():
        result["value"] = element.text.strip()

    return result


def parse_multipart(raw_data: Data, content_type: str) -> Dict[str, Any]:
    """
    Parse a multipart/form-data body.

    Text parts map to their string value; file parts map to a dict with
    "filename", "content_type" and "contents" (bytes).
    """
    raw = _to_bytes(raw_data)
    if not raw.lstrip().lower().startswith(b"content-type:"):
        raw = f"Content-Type: {content_type}\r\n\r\n".encode("latin-1") + raw

    message = BytesParser(policy=email.policy.HTTP).parsebytes(raw)
    result: Dict[str, Any] = {}

    if not message.is_multipart():
        return result

    for part in message.iter_parts():
        name = part.get_param("name", header="content-disposition")
        if name is None:
            continue

        payload = part.get_payload(decode=True) or b""
        filename = part.get_filename()
        if filename:
            value: Any = {
                "filename": filename,
                "content_type": part.get_content_type(),
                "contents": payload,
            }
        else:
            charset = part.get_content_charset() or "utf-8"
            value = payload.decode(charset, errors="replace")

        if name.endswith("[]"):
            result.setdefault(name[:-2], []).append(value)
        else:
            result[name] = value

    return result


def parse_response_from_string(response_string: Data):
    """
    Build a client Response from a raw HTTP response message.

    The body is de-chunked when Transfer-Encoding is chunked and decoded
    when a Content-Encoding is present.
    """
    from ..client.response import Response

    raw = _to_bytes(response_string)
    separator = b"\r\n\r\n" if b"\r\n\r\n" in raw else b"\n\n"
    header_block, _, body = raw.partition(separator)

    parsed = parse_headers(header_block.decode("latin-1"))

    encoding = parsed.headers.get_value("Content-Encoding")
    chunked = (parsed.headers.get_value("Transfer-Encoding") or "").lower() == "chunked"
    if encoding or chunked:
        body = decode_data(body, encoding, chunked)

    return Response(
        code=parsed.code,
        message=parsed.message,
        version=parsed.version,
        headers=parsed.headers,
        body=body,
    )
