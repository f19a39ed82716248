"""
Unit tests for header, body and content-type parsing.
"""

import gzip
import json

import pytest

from httpkit.exceptions import ParseError
from httpkit.http.parser import (
    decode_chunked_data,
    decode_data,
    encode_data,
    parse_data_by_content_type,
    parse_headers,
    parse_multipart,
    parse_query_string,
    parse_response_from_string,
)


class TestParseHeaders:
    """Tests for header block parsing."""

    def test_status_and_headers(self):
        """The status line and headers are split apart."""
        parsed = parse_headers(
            "HTTP/1.1 404 Not Found\r\n"
            "Content-Type: text/plain\r\n"
            "X-Id: 7\r\n"
        )
        assert parsed.version == "1.1"
        assert parsed.code == 404
        assert parsed.message == "Not Found"
        assert parsed.headers.get_value("X-Id") == "7"

    def test_http2_without_message(self):
        """HTTP/2 status lines carry no reason phrase."""
        parsed = parse_headers("HTTP/2 200\r\n")
        assert parsed.version == "2"
        assert parsed.code == 200
        assert parsed.message == ""

    def test_last_status_line_wins(self):
        """A 100 Continue block is replaced by the final response."""
        parsed = parse_headers(
            "HTTP/1.1 100 Continue\r\n\r\n"
            "HTTP/1.1 201 Created\r\n"
            "Location: /items/1\r\n"
        )
        assert parsed.code == 201
        assert parsed.headers.get_value("Location") == "/items/1"
        assert len(parsed.headers) == 1

    def test_repeated_header_keeps_values(self):
        """A repeated header collects every value."""
        parsed = parse_headers(["HTTP/1.1 200 OK", "Set-Cookie: a=1", "Set-Cookie: b=2"])
        assert len(parsed.headers.get("Set-Cookie").values) == 2


class TestCodings:
    """Tests for content codings."""

    def test_gzip(self):
        encoded = encode_data("Hello World", "gzip")
        assert gzip.decompress(encoded) == b"Hello World"
        assert decode_data(encoded, "GZIP") == b"Hello World"

    def test_deflate_raw_and_zlib(self):
        """Both raw and zlib-wrapped deflate streams decode."""
        import zlib

        raw = encode_data(b"Hello World", "DEFLATE")
        assert decode_data(raw, "DEFLATE") == b"Hello World"
        assert decode_data(zlib.compress(b"Hello World"), "DEFLATE") == b"Hello World"

    def test_base64(self):
        assert encode_data("Hello", "BASE64") == "SGVsbG8="
        assert decode_data("SGVsbG8=", "BASE64") == b"Hello"

    def test_url(self):
        assert encode_data("a b&c", "URL") == "a+b%26c"
        assert encode_data("a b", "RAW_URL") == "a%20b"
        assert decode_data("a+b%26c", "URL") == "a b&c"

    def test_quoted_printable(self):
        assert decode_data(encode_data("café", "QUOTED"), "QUOTED").decode("utf-8") == "café"

    def test_non_latin_text(self):
        """Text is encoded as UTF-8 before compressing."""
        assert decode_data(encode_data("10 €", "GZIP"), "GZIP").decode("utf-8") == "10 €"

    def test_unknown_is_passthrough(self):
        assert encode_data("data", "UNKNOWN") == "data"
        assert decode_data("data") == "data"


class TestChunked:
    """Tests for chunked transfer decoding."""

    def test_wikipedia(self):
        """The classic example decodes to one word."""
        assert decode_chunked_data("4\r\nWiki\r\n5\r\npedia\r\n0\r\n\r\n") == "Wikipedia"

    def test_bytes_and_extensions(self):
        """Chunk extensions are ignored; bytes in, bytes out."""
        data = b"4;name=value\r\nWiki\r\n5\r\npedia\r\n0\r\n\r\n"
        assert decode_chunked_data(data) == b"Wikipedia"

    def test_chunked_then_gzip(self):
        """Chunking is undone before the content coding."""
        body = gzip.compress(b"payload")
        chunked = f"{len(body):x}\r\n".encode() + body + b"\r\n0\r\n\r\n"
        assert decode_data(chunked, "GZIP", chunked=True) == b"payload"

    def test_multibyte_text(self):
        """Chunk sizes count bytes, not characters."""
        assert decode_chunked_data("5\r\nwiké\r\n0\r\n\r\n") == "wiké"

    def test_bad_size_line(self):
        with pytest.raises(ParseError):
            decode_chunked_data("zz\r\nabc\r\n0\r\n\r\n")


class TestContentType:
    """Tests for content-type aware parsing."""

    def test_json(self):
        assert parse_data_by_content_type('{"a": 1}', "application/json") == {"a": 1}

    def test_json_gzipped(self):
        body = gzip.compress(json.dumps({"a": [1, 2]}).encode())
        assert parse_data_by_content_type(body, "application/json; charset=utf-8", "gzip") == {"a": [1, 2]}

    def test_xml(self):
        xml = "<root><name>Bob</name><tag>a</tag><tag>b</tag><item id=\"1\">x</item></root>"
        parsed = parse_data_by_content_type(xml, "application/xml")
        assert parsed["name"] == "Bob"
        assert parsed["tag"] == ["a", "b"]
        assert parsed["item"] == {"@attributes": {"id": "1"}, "value": "x"}

    def test_urlencoded(self):
        parsed = parse_data_by_content_type("foo=bar&baz=123", "application/x-www-form-urlencoded")
        assert parsed == {"foo": "bar", "baz": "123"}

    def test_unknown_type(self):
        """Types the parser does not know yield None."""
        assert parse_data_by_content_type("hello", "text/plain") is None

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError):
            parse_data_by_content_type("{not json", "application/json")


class TestQueryString:
    """Tests for query string parsing."""

    def test_scalars_and_lists(self):
        assert parse_query_string("foo=bar&tag=a&tag=b") == {"foo": "bar", "tag": ["a", "b"]}

    def test_bracket_keys(self):
        """name[] keys are always lists."""
        assert parse_query_string("ids[]=1") == {"ids": ["1"]}

    def test_blank_values(self):
        assert parse_query_string("empty=") == {"empty": ""}


class TestMultipart:
    """Tests for multipart/form-data parsing."""

    def test_fields_and_file(self):
        body = (
            b"--xyz\r\n"
            b'Content-Disposition: form-data; name="title"\r\n\r\n'
            b"Hello\r\n"
            b"--xyz\r\n"
            b'Content-Disposition: form-data; name="upload"; filename="a.txt"\r\n'
            b"Content-Type: text/plain\r\n\r\n"
            b"file contents\r\n"
            b"--xyz--\r\n"
        )
        parsed = parse_multipart(body, "multipart/form-data; boundary=xyz")

        assert parsed["title"] == "Hello"
        assert parsed["upload"]["filename"] == "a.txt"
        assert parsed["upload"]["content_type"] == "text/plain"
        assert parsed["upload"]["contents"] == b"file contents"


class TestParseResponse:
    """Tests for building a Response from a raw message."""

    def test_plain(self):
        response = parse_response_from_string(
            "HTTP/1.1 200 OK\r\nContent-Type: text/plain\r\n\r\nHello"
        )
        assert response.code == 200
        assert response.message == "OK"
        assert response.body == b"Hello"

    def test_chunked_gzip(self):
        """Chunked, gzipped bodies are decoded."""
        body = gzip.compress(b"Hello World")
        raw = (
            b"HTTP/1.1 200 OK\r\n"
            b"Transfer-Encoding: chunked\r\n"
            b"Content-Encoding: gzip\r\n\r\n"
            + f"{len(body):x}\r\n".encode() + body + b"\r\n0\r\n\r\n"
        )
        assert parse_response_from_string(raw).body == b"Hello World"

    def test_utf8_body(self):
        response = parse_response_from_string(
            'HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n\r\n{"price": "10 €"}'
        )
        assert json.loads(response.body) == {"price": "10 €"}
