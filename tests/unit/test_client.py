"""
Unit tests for the HTTP client.

Nothing here touches the network: requests are prepared and rendered,
never sent.
"""

import pytest

from httpkit.auth import Auth
from httpkit.client import Client, Curl, Request, Response, Stream
from httpkit.exceptions import RequestError


class TestConstruction:
    """Tests for building a client from mixed arguments."""

    def test_sorts_arguments(self, uri):
        """Arguments are recognized by type."""
        auth = Auth.create_bearer("123456789")
        response = Response(200)
        handler = Stream()
        client = Client(uri, auth, response, handler, {"method": "POST"})

        assert client.request.uri_as_string == uri
        assert client.auth is auth
        assert client.response is response
        assert client.handler is handler
        assert client.get_option("method") == "POST"

    def test_request_object(self, uri):
        request = Request(uri, "PUT")
        assert Client(request).request is request

    def test_unsupported_argument(self):
        with pytest.raises(TypeError):
            Client(123)

    def test_status_without_response(self, uri):
        client = Client(uri)
        assert not client.is_complete()
        assert not client.is_success()
        assert not client.is_error()

    def test_status_from_response(self, uri):
        client = Client(uri, Response(404))
        assert client.is_complete()
        assert client.is_error()


class TestOptions:
    """Tests for client option helpers."""

    def test_option_helpers(self, uri):
        client = Client(uri)
        client.set_method("post").set_type(Request.JSON).set_user_agent("agent/1.0")
        assert client.get_option("method") == "POST"
        assert client.get_option("type") == Request.JSON
        assert client.get_option("user_agent") == "agent/1.0"
        client.remove_option("user_agent")
        assert not client.has_option("user_agent")

    def test_headers(self, uri):
        client = Client(uri).add_header("X-One", "1").add_headers({"X-Two": "2"})
        assert client.has_header("x-one")
        client.remove_header("X-ONE")
        assert not client.has_header("X-One")
        assert client.has_header("X-Two")

    def test_data(self, uri):
        client = Client(uri).add_data("foo", "bar")
        assert client.has_data()
        assert client.get_option("data") == {"foo": "bar"}
        client.set_data("raw")
        assert client.get_option("data") == "raw"

    def test_set_files(self, uri, text_file):
        """Files are named file1, file2, ... and switch to multipart."""
        client = Client(uri).set_files([str(text_file)])
        assert client.has_files()
        assert client.get_option("type") == Request.MULTIPART

        client.prepare()
        datum = client.request.data.get_data("file1")
        assert datum["filename"] == str(text_file)
        assert datum["content_type"] == "text/plain"

    def test_add_file(self, uri, text_file):
        client = Client(uri).add_file(str(text_file)).add_file(str(text_file), "second")
        assert set(client.get_option("files")) == {"file1", "second"}

    def test_missing_file(self, uri, tmp_path):
        with pytest.raises(RequestError):
            Client(uri).set_files(str(tmp_path / "missing.txt"))

    def test_body_from_file(self, uri, text_file):
        client = Client(uri).set_body_from_file(str(text_file))
        assert client.request.body == b"Hello World!"

    def test_body_needs_request(self):
        with pytest.raises(RequestError):
            Client().set_body("text")


class TestPrepare:
    """Tests for applying options to the request and handler."""

    def test_no_uri(self):
        with pytest.raises(RequestError, match="There is no request URI to send."):
            Client().prepare()

    def test_base_uri(self):
        client = Client("/post.php", {"base_uri": "http://localhost:8000"})
        client.prepare()
        assert client.request.uri_as_string == "http://localhost:8000/post.php"

    def test_base_uri_not_doubled(self, uri):
        client = Client(uri, {"base_uri": "http://localhost:8000"})
        client.prepare()
        assert client.request.uri_as_string == uri

    def test_default_handler(self, uri):
        client = Client(uri).prepare()
        assert isinstance(client.handler, Curl)

    def test_method_argument_wins(self, uri):
        client = Client(uri, {"method": "POST"}).prepare(method="DELETE")
        assert client.request.method == "DELETE"

    def test_request_options(self, uri):
        client = Client(uri, {
            "method": "POST",
            "type": Request.JSON,
            "headers": {"Accept": "application/json"},
            "query": {"page": 2},
            "data": {"foo": "bar"},
        }).prepare()

        request = client.request
        assert request.is_json()
        assert request.get_header_value("Accept") == "application/json"
        assert request.get_query_string() == "page=2"
        assert request.data.to_dict() == {"foo": "bar"}

    def test_curl_handler_options(self, uri):
        client = Client(uri, {
            "user_agent": "agent/1.0",
            "timeout": 2.5,
            "verify_peer": False,
            "http_version": "2",
        }).prepare()

        handler = client.handler
        assert handler.get_option("USERAGENT") == "agent/1.0"
        assert handler.get_option("TIMEOUT_MS") == 2500
        assert handler.get_option("SSL_VERIFYPEER") == 0
        assert handler.get_option("HTTP_VERSION") == 3

    def test_stream_handler_options(self, uri):
        client = Client(uri, Stream(), {"user_agent": "agent/1.0", "timeout": 5}).prepare()
        http = client.handler.get_context_option("http")
        assert http["user_agent"] == "agent/1.0"
        assert http["timeout"] == 5


class TestRender:
    """Tests for rendering the request as it goes on the wire."""

    def test_post(self, uri):
        client = Client(uri, {"method": "POST", "data": {"foo": "bar"}})
        assert client.render() == (
            "POST /post.php HTTP/1.1\r\n"
            "Host: localhost:8000\r\n"
            "Content-Type: application/x-www-form-urlencoded\r\n"
            "Content-Length: 7\r\n"
            "\r\n"
            "foo=bar"
        )

    def test_get_puts_data_in_query(self, uri):
        client = Client(uri, {"data": {"foo": "bar"}})
        assert client.render() == "GET /post.php?foo=bar HTTP/1.1\r\nHost: localhost:8000\r\n\r\n"

    def test_auth_header(self, uri):
        client = Client(uri, Auth.create_bearer("123456789"))
        assert "Authorization: Bearer 123456789\r\n" in str(client)


class TestReset:
    """Tests for clearing client state."""

    def test_reset_data(self, uri):
        client = Client(uri, {"data": {"foo": "bar"}, "query": {"a": 1}, "headers": {"X": "1"}})
        client.prepare().reset()
        assert not client.has_option("data")
        assert not client.has_option("query")
        assert client.has_option("headers")
        assert not client.request.has_data()

    def test_reset_headers(self, uri):
        client = Client(uri, {"headers": {"X": "1"}, "user_agent": "a"})
        client.prepare().reset(headers=True)
        assert not client.has_option("headers")
        assert not client.has_option("user_agent")
        assert not client.request.headers

    def test_clear(self, uri):
        client = Client(uri, Auth.create_bearer("x"), {"method": "POST"}).reset(clear=True)
        assert client.request is None
        assert client.auth is None
        assert client.options == {}
