"""
Unit tests for client requests and request data.
"""

import json

from httpkit.client import Data, Request
from httpkit.client.data import build_query, is_file_datum


class TestRequest:
    """Tests for the Request class."""

    def test_defaults(self, uri):
        """A request defaults to GET with no data."""
        request = Request(uri)
        assert request.method == "GET"
        assert request.uri_as_string == uri
        assert not request.has_data()
        assert not request.has_request_type()

    def test_method_uppercased(self, uri):
        assert Request(uri, "post").method == "POST"
        assert Request(uri).set_method("patch").method == "PATCH"

    def test_request_type_sets_header(self, uri):
        """Setting a type sets Content-Type."""
        request = Request(uri).create_as_json()
        assert request.is_json()
        assert request.get_header_value("Content-Type") == "application/json"

    def test_request_type_without_header(self, uri):
        request = Request(uri).set_request_type(Request.XML, add_header=False)
        assert request.is_xml()
        assert not request.has_header("Content-Type")

    def test_type_from_header(self, uri):
        """Without a type, the Content-Type header decides."""
        request = Request(uri, headers={"Content-Type": "application/json; charset=utf-8"})
        assert request.is_json()
        assert not request.is_xml()

    def test_multipart_boundary(self, uri):
        request = Request(uri).create_as_multipart()
        assert request.is_multipart()
        assert request.get_header_value("Content-Type") == f"multipart/form-data; boundary={request.boundary}"

    def test_headers(self, uri):
        request = Request(uri).add_headers({"A": "1", "B": "2"})
        request.remove_header("a")
        assert not request.has_header("A")
        assert request.get_headers_as_string() == "B: 2\r\n"
        request.remove_headers()
        assert not request.headers


class TestDataContent:
    """Tests for rendering data by request type."""

    def test_urlencoded(self, uri):
        request = Request(uri, "POST", data={"foo": "bar", "baz": 123})
        assert request.get_data_content() == "foo=bar&baz=123"

    def test_json(self, uri):
        request = Request(uri, "POST", data={"foo": "bar", "baz": 123}, request_type=Request.JSON)
        assert request.get_data_content() == '{"foo":"bar","baz":123}'

    def test_json_from_file(self, uri, tmp_path):
        """A JSON request whose only datum is a file sends the file."""
        path = tmp_path / "data.json"
        path.write_text(json.dumps({"a": 1}))
        request = Request(uri, "POST", data={"file1": {"filename": str(path)}}, request_type=Request.JSON)
        assert json.loads(request.get_data_content()) == {"a": 1}

    def test_xml(self, uri):
        request = Request(uri, "POST", data={"doc": "<a>1</a>"}, request_type=Request.XML)
        assert request.get_data_content() == "<a>1</a>"

    def test_multipart(self, uri, text_file):
        request = Request(uri, "POST", request_type=Request.MULTIPART)
        request.set_data({"title": "hi", "upload": {"filename": str(text_file)}})
        body = request.get_data_content()

        assert body.startswith(f"--{request.boundary}\r\n".encode())
        assert b'name="title"\r\n\r\nhi\r\n' in body
        assert b'filename="test.txt"' in body
        assert b"Hello World!" in body
        assert body.endswith(f"--{request.boundary}--\r\n".encode())

    def test_raw(self, uri):
        """Raw data is sent as is."""
        request = Request(uri, "POST", data="raw payload")
        assert request.get_data_content() == "raw payload"

    def test_no_data(self, uri):
        assert Request(uri).get_data_content() is None

    def test_get_sends_data_in_query(self, uri):
        request = Request(uri, data={"foo": "bar"})
        assert request.sends_data_in_query()
        assert not request.set_method("POST").sends_data_in_query()

    def test_get_json_sends_body(self, uri):
        """Typed GET data (other than urlencoded) goes in the body."""
        request = Request(uri, data={"foo": "bar"}, request_type=Request.JSON)
        assert not request.sends_data_in_query()


class TestQuery:
    """Tests for the request query."""

    def test_uri_query_and_added_query(self):
        request = Request("http://localhost/?a=1")
        request.add_query("b", "2")
        assert request.has_query()
        assert request.get_query_string() == "a=1&b=2"

    def test_remove_all_query(self):
        request = Request("http://localhost/").set_query({"a": 1})
        request.remove_all_query()
        assert request.get_query_string() == ""


class TestData:
    """Tests for the Data payload."""

    def test_fields(self):
        data = Data({"a": 1}).add_data("b", 2)
        assert data.get_data("b") == 2
        assert data.has_data("a")
        assert data.to_dict() == {"a": 1, "b": 2}
        data.remove_data("a")
        assert not data.has_data("a")

    def test_raw_then_fields(self):
        """Adding a field to raw data switches to fields."""
        data = Data("raw")
        assert data.raw == "raw"
        data.add_data("a", 1)
        assert data.raw is None
        assert data.get_data() == {"a": 1}

    def test_files(self):
        data = Data({"f": {"filename": "/tmp/x.txt"}, "a": "b"})
        assert data.has_files()
        assert is_file_datum(data.get_data("f"))
        assert not is_file_datum("b")

    def test_empty(self):
        data = Data()
        assert not data
        data.set_data({"a": 1}).remove_all_data()
        assert not data.has_data()

    def test_build_query_nested(self):
        """Nested dicts and lists use bracket keys."""
        query = build_query({"a": {"b": "c"}, "tag": ["x", "y"], "on": True})
        assert query == "a%5Bb%5D=c&tag%5B%5D=x&tag%5B%5D=y&on=1"
