"""
Unit tests for translating between clients and curl commands.
"""

import pytest

from httpkit.auth import Auth
from httpkit.client import Client, Curl, Request, Stream
from httpkit.client import curl_options
from httpkit.client.curl_command import (
    add_quotes,
    command_to_request,
    extract_command_option_values,
    parse_command_options,
    trim_quotes,
)
from httpkit.exceptions import CommandError


class TestQuoting:
    """Tests for quote helpers."""

    def test_trim_quotes(self):
        assert trim_quotes('"value"') == "value"
        assert trim_quotes("'value'") == "value"
        assert trim_quotes("'value\"") == "'value\""

    def test_add_quotes(self):
        assert add_quotes("value") == '"value"'
        assert add_quotes('"value"') == '"value"'


class TestToCommand:
    """Tests for rendering a client as a curl command."""

    def test_post_data(self, uri):
        client = Client(uri, {"method": "POST", "data": {"foo": "bar", "baz": 123}})
        assert client.to_curl_command() == f'curl -i -X POST --data "foo=bar&baz=123" "{uri}"'

    def test_insecure(self, uri):
        client = Client(uri, {"verify_peer": False})
        assert client.to_curl_command() == f'curl -i -X GET --insecure "{uri}"'

    def test_basic_auth(self, uri):
        client = Client(uri, Auth.create_basic("username", "password"))
        assert client.to_curl_command() == f'curl -i -X GET --basic -u "username:password" "{uri}"'

    def test_bearer_auth_as_header(self, uri):
        client = Client(uri, Auth.create_bearer("123456789"))
        assert client.to_curl_command() == (
            f'curl -i -X GET --header "Authorization: Bearer 123456789" "{uri}"'
        )

    def test_header(self, uri):
        client = Client(uri, {"headers": {"Content-Type": "application/json"}})
        assert client.to_curl_command() == (
            f'curl -i -X GET --header "Content-Type: application/json" "{uri}"'
        )

    def test_json(self, uri):
        client = Client(uri, {"method": "POST", "type": Request.JSON, "data": {"foo": "bar", "baz": 123}})
        assert client.to_curl_command() == (
            f'curl -i -X POST --header "Content-Type: application/json" '
            f"--data '{{\"foo\":\"bar\",\"baz\":123}}' \"{uri}\""
        )

    def test_multipart(self, uri):
        """Multipart fields become -F flags; the boundary header is left out."""
        client = Client(uri, {"method": "POST", "type": Request.MULTIPART, "data": {"foo": "bar", "baz": 123}})
        assert client.to_curl_command() == f'curl -i -X POST -F "foo=bar" -F "baz=123" "{uri}"'

    def test_multipart_file(self, uri, text_file):
        client = Client(uri, {"method": "POST"}).set_files([str(text_file)])
        assert f'-F "file1=@{text_file}"' in client.to_curl_command()

    def test_body(self, uri):
        """Single quotes in a body are closed, escaped and reopened for the shell."""
        client = Client(uri, {"method": "POST"}).set_body("This is the page's text body")
        assert client.to_curl_command() == (
            f"curl -i -X POST --data 'This is the page'\\''s text body' \"{uri}\""
        )

    def test_handler_options(self, uri):
        client = Client(uri, Curl({"APPEND": 1, "USERAGENT": "httpkit-test 1.0"}))
        assert client.to_curl_command() == f'curl -i -X GET -a -A "httpkit-test 1.0" "{uri}"'

    def test_http_version_flag(self, uri):
        client = Client(uri, {"http_version": "2"})
        assert client.to_curl_command() == f'curl -i -X GET --http2 "{uri}"'

    def test_query_kept(self):
        client = Client("http://localhost:8000/get.php?page=1")
        assert client.to_curl_command().endswith('"http://localhost:8000/get.php?page=1"')

    def test_auth_header_not_repeated(self, uri):
        """A rendered request already carries the auth header; it is emitted once."""
        client = Client(uri, Auth.create_bearer("abc"))
        client.render()
        assert client.to_curl_command().count("Authorization: Bearer abc") == 1

    def test_stream_handler_rejected(self, uri):
        with pytest.raises(CommandError):
            Client(uri, Stream()).to_curl_command()


class TestFromCommand:
    """Tests for building a client from a curl command."""

    def test_not_curl(self):
        with pytest.raises(CommandError, match="The command isn't a valid cURL command."):
            command_to_request("wget http://localhost/")

    def test_uri_only(self, uri):
        client = Client.from_curl_command(f"curl {uri}")
        assert client.request.uri_as_string == uri
        assert client.request.method == "GET"
        assert isinstance(client.handler, Curl)

    def test_method_headers_and_data(self, uri):
        client = command_to_request(
            f'curl -i -X POST -H "Accept: text/html" -d "foo=bar" "{uri}"'
        )
        request = client.request
        assert request.method == "POST"
        assert request.get_header_value("Accept") == "text/html"
        assert request.data.to_dict() == {"foo": "bar"}

    def test_repeated_data_merges(self, uri):
        client = command_to_request(f'curl -X POST -d "foo=bar" -d "baz=123" "{uri}"')
        assert client.request.data.to_dict() == {"foo": "bar", "baz": "123"}

    def test_head_switch(self, uri):
        assert command_to_request(f'curl -I "{uri}"').request.method == "HEAD"

    def test_basic_user(self, uri):
        client = command_to_request(f'curl -u "username:password" "{uri}"')
        assert client.auth.is_basic()
        assert client.auth.username == "username"
        assert client.auth.password == "password"

    def test_digest_user(self, uri):
        """With --digest the credentials stay on the handler."""
        client = command_to_request(f'curl --digest -u "username:password" "{uri}"')
        assert client.auth is None
        assert client.handler.get_option("HTTPAUTH") == curl_options.AUTH_DIGEST
        assert client.handler.get_option("USERPWD") == "username:password"

    def test_insecure(self, uri):
        client = command_to_request(f'curl -k "{uri}"')
        assert client.handler.get_option("SSL_VERIFYPEER") == 0
        assert client.handler.get_option("SSL_VERIFYHOST") == 0

    def test_json_data(self, uri):
        """A JSON body with an '=' inside is not treated as fields."""
        client = command_to_request(
            f'curl -X POST -H "Content-Type: application/json" -d \'{{"a":"x=y"}}\' "{uri}"'
        )
        assert client.request.data.to_dict() == {"a": "x=y"}

    def test_user_agent_option(self, uri):
        client = command_to_request(f'curl -A "agent/1.0" "{uri}"')
        assert client.handler.get_option("USERAGENT") == "agent/1.0"

    def test_negated_option(self, uri):
        client = command_to_request(f'curl --no-sessionid "{uri}"')
        name = curl_options.get_command_option("--no-sessionid")
        assert client.handler.get_option(name if isinstance(name, str) else name[0]) == 0

    def test_form_file(self, uri, text_file, monkeypatch):
        monkeypatch.chdir(text_file.parent)
        client = command_to_request(f'curl -X POST -F "title=hi" -F "upload=@test.txt" "{uri}"')
        request = client.request
        assert request.is_multipart()
        assert request.data.get_data("title") == "hi"
        assert request.data.get_data("upload")["filename"] == str(text_file)

    def test_header_aliases_merge(self, uri):
        client = command_to_request(f'curl -H "A: 1" --header "B: 2" "{uri}"')
        assert client.request.get_header_value("A") == "1"
        assert client.request.get_header_value("B") == "2"

    def test_data_aliases_merge(self, uri):
        client = command_to_request(f'curl -X POST -d "foo=bar" --data "baz=123" "{uri}"')
        assert client.request.data.to_dict() == {"foo": "bar", "baz": "123"}

    def test_json_flag_carries_data(self, uri):
        """--json sets the JSON headers, the body and POST."""
        client = command_to_request(f'curl --json \'{{"a":1}}\' "{uri}"')
        request = client.request
        assert request.method == "POST"
        assert request.get_header_value("Content-Type") == "application/json"
        assert request.get_header_value("Accept") == "application/json"
        assert request.data.to_dict() == {"a": 1}

    def test_json_flag_keeps_explicit_method(self, uri):
        client = command_to_request(f'curl -X PUT --json \'{{"a":1}}\' "{uri}"')
        assert client.request.method == "PUT"

    def test_numeric_values(self, uri):
        """Numeric flag values become numbers the handle accepts."""
        client = command_to_request(f'curl --max-redirs 3 --connect-timeout 5 "{uri}"')
        handler = client.handler
        assert handler.get_option("MAXREDIRS") == 3
        assert handler.get_option("CONNECTTIMEOUT") == 5

        client.prepare()
        handler.prepare(client.request)

    def test_rendered_numeric_option_parses_back(self, uri):
        command = Client(uri, Curl({"MAXREDIRS": 10})).to_curl_command()
        assert command_to_request(command).handler.get_option("MAXREDIRS") == 10

    def test_quoted_body_round_trip(self, uri):
        client = Client(uri, {"method": "POST"}).set_body("it's here")
        parsed = command_to_request(client.to_curl_command())
        assert parsed.request.data.get_data() == "it's here"

    def test_round_trip(self, uri):
        command = f'curl -i -X POST --header "Content-Type: application/json" --data \'{{"foo":"bar"}}\' "{uri}"'
        assert command_to_request(command).to_curl_command() == command


class TestOptionParsing:
    """Tests for splitting and reading command options."""

    def test_parse_command_options(self):
        assert parse_command_options(' -X POST --header "Accept: */*"') == [
            "-X POST", '--header "Accept: */*"',
        ]

    def test_extract_values(self):
        values = extract_command_option_values(["-X POST", "-H \"A: 1\"", "-H \"B: 2\"", "-i"])
        assert values["-X"] == "POST"
        assert values["-H"] == ['"A: 1"', '"B: 2"']
        assert values["-i"] is None
