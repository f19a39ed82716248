"""
Unit tests for reading requests from a WSGI environ.
"""

import json
import os

import pytest

from httpkit.exceptions import ParseError
from httpkit.server import ServerRequest


class TestRequestLine:
    """Tests for method, path and host information."""

    def test_method(self, make_environ):
        request = ServerRequest(make_environ("post"))
        assert request.method == "POST"
        assert request.is_post()
        assert not request.is_get()

    def test_segments(self, make_environ):
        request = ServerRequest(make_environ(path="/users/42/edit"))
        assert request.request_uri == "/users/42/edit"
        assert request.segments == ["users", "42", "edit"]
        assert request.get_segment(1) == "42"
        assert request.get_segment(5) is None

    def test_base_path(self, make_environ):
        """The base path is stripped before segments are taken."""
        request = ServerRequest(make_environ(path="/api/users/42"), base_path="/api/")
        assert request.request_uri == "/users/42"
        assert request.full_request_uri == "/api/users/42"
        assert request.get_segment(0) == "users"

    def test_base_path_only(self, make_environ):
        request = ServerRequest(make_environ(path="/api"), base_path="/api")
        assert request.request_uri == "/"
        assert request.segments == []

    def test_host(self, make_environ):
        request = ServerRequest(make_environ())
        assert request.host == "localhost"
        assert request.full_host == "localhost:8000"
        assert request.port == 8000

    def test_host_without_port(self, make_environ):
        request = ServerRequest(make_environ(HTTP_HOST="example.com", SERVER_PORT="80"))
        assert request.full_host == "example.com:80"

    def test_secure(self, make_environ):
        assert not ServerRequest(make_environ()).is_secure()
        assert ServerRequest(make_environ(**{"wsgi.url_scheme": "https"})).is_secure()
        assert ServerRequest(make_environ(HTTPS="on")).scheme == "https"

    def test_ip(self, make_environ):
        environ = make_environ(HTTP_X_FORWARDED_FOR="10.0.0.1, 10.0.0.2")
        request = ServerRequest(environ)
        assert request.get_ip() == "10.0.0.1"
        assert request.get_ip(proxy=False) == "127.0.0.1"


class TestHeadersAndCookies:
    """Tests for headers and cookies."""

    def test_headers(self, make_environ):
        request = ServerRequest(make_environ(HTTP_X_REQUEST_ID="abc", HTTP_ACCEPT="text/html"))
        assert request.get_header_value("X-Request-Id") == "abc"
        assert request.has_header("accept")
        assert request.get_header_value("Missing", "none") == "none"

    def test_cookies(self, make_environ):
        request = ServerRequest(make_environ(HTTP_COOKIE="session=xyz; theme=dark"))
        assert request.get_cookie("session") == "xyz"
        assert request.get_cookie() == {"session": "xyz", "theme": "dark"}

    def test_server_lookup(self, make_environ):
        request = ServerRequest(make_environ())
        assert request.get_server("REMOTE_ADDR") == "127.0.0.1"
        assert request.get_server("NOPE") is None


class TestData:
    """Tests for query and body parsing."""

    def test_query(self, make_environ):
        request = ServerRequest(make_environ(query="foo=bar&ids[]=1&ids[]=2"))
        assert request.get_query("foo") == "bar"
        assert request.get_query("ids") == ["1", "2"]
        assert request.get_parsed_data("foo") == "bar"
        assert request.get_query_data("foo") == "bar"

    def test_no_body(self, make_environ):
        request = ServerRequest(make_environ())
        assert request.raw_data is None
        assert request.get_query() == {}

    def test_urlencoded_post(self, make_environ):
        request = ServerRequest(make_environ(
            "POST", body=b"name=Bob&age=30", content_type="application/x-www-form-urlencoded"
        ))
        assert request.get_post("name") == "Bob"
        assert request.get_post() == {"name": "Bob", "age": "30"}
        assert request.raw_data == b"name=Bob&age=30"

    def test_json_put(self, make_environ):
        body = json.dumps({"title": "New"}).encode()
        request = ServerRequest(make_environ("PUT", body=body, content_type="application/json"))
        assert request.get_put("title") == "New"
        assert request.get_parsed_data() == {"title": "New"}
        assert request.get_post() == {}

    def test_json_patch_and_delete(self, make_environ):
        body = b'{"id": 1}'
        assert ServerRequest(make_environ("PATCH", body=body, content_type="application/json")).get_patch("id") == 1
        assert ServerRequest(make_environ("DELETE", body=body, content_type="application/json")).get_delete("id") == 1

    def test_invalid_json(self, make_environ):
        with pytest.raises(ParseError):
            ServerRequest(make_environ("POST", body=b"{oops", content_type="application/json"))

    def test_multipart_files(self, make_environ):
        """File fields are spooled to temporary files."""
        body = (
            b"--xyz\r\n"
            b'Content-Disposition: form-data; name="title"\r\n\r\n'
            b"Hello\r\n"
            b"--xyz\r\n"
            b'Content-Disposition: form-data; name="upload"; filename="notes.txt"\r\n'
            b"Content-Type: text/plain\r\n\r\n"
            b"file contents\r\n"
            b"--xyz--\r\n"
        )
        request = ServerRequest(make_environ(
            "POST", body=body, content_type="multipart/form-data; boundary=xyz"
        ))

        assert request.get_post("title") == "Hello"
        assert request.has_files()
        upload = request.get_files("upload")
        try:
            assert upload["name"] == "notes.txt"
            assert upload["type"] == "text/plain"
            assert upload["size"] == len(b"file contents")
            assert upload["error"] == 0
            with open(upload["tmp_name"], "rb") as f:
                assert f.read() == b"file contents"
        finally:
            os.remove(upload["tmp_name"])
