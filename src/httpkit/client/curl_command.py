"""
=============================================================================
CURL COMMAND TRANSLATOR
=============================================================================

Turns a Client into the equivalent curl command line and back.

    >>> client = Client("http://localhost:8000/post.php", {
    ...     "method": "POST", "data": {"foo": "bar", "baz": 123}})
    >>> request_to_command(client)
    'curl -i -X POST --data "foo=bar&baz=123" "http://localhost:8000/post.php"'

    >>> client = command_to_request('curl -X POST -d "foo=bar" https://example.com/')
    >>> client.request.method, client.request.data.to_dict()
    ('POST', {'foo': 'bar'})

=============================================================================
PARSING A COMMAND
=============================================================================

    curl -X POST -H "Accept: text/html" -d "a=1" "https://example.com/"
        │              │                     │              │
        │   options are split on whitespace followed by - or --
        │              │                     │              │
        ▼              ▼                     ▼              ▼
    ["-X POST", "-H \"Accept: text/html\"", "-d \"a=1\""]   URI (last token)

    extract_command_option_values() then builds {flag: value}:

        {"-X": "POST", "-H": "\"Accept: text/html\"", "-d": {"a": "1"}}

    A repeated flag collects its values in a list (or a merged dict for
    -d/-F fields).

Method, TLS, header, auth, JSON, data and form flags are turned into
request state. Every other known flag becomes a Curl handler option by
its libcurl name; flags curl knows but this table doesn't are dropped.
=============================================================================
"""

import json
import logging
import os
import re
from typing import Any, Dict, List, Optional, Tuple

from ..auth import Auth
from ..exceptions import CommandError
from ..http.parser import parse_query_string
from . import curl_options
from .data import build_query, get_mime_type_from_filename, is_file_datum
from .handlers import Curl
from .request import Request


logger = logging.getLogger("httpkit.command")

# whitespace followed by - or --
_OPTION_START = re.compile(r"\s-{1,2}")


# =============================================================================
# QUOTING
# =============================================================================

def trim_quotes(value: str) -> str:
    """Strip one pair of matching single or double quotes."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def add_quotes(value: Any, quote: str = '"') -> str:
    """Wrap a value in quotes unless it already starts or ends with one."""
    value = str(value)
    if value[:1] in ("'", '"') or value[-1:] in ("'", '"'):
        return value
    return f"{quote}{value}{quote}"


def _escape_single(value: str) -> str:
    return value.replace("'", "'\\''")


# =============================================================================
# CLIENT → COMMAND
# =============================================================================

def request_to_command(client) -> str:
    """
    Render a client's request as a curl command.

    Raises:
        CommandError: If the client does not use a Curl handler
    """
    client.prepare()
    handler = client.handler
    if not isinstance(handler, Curl):
        raise CommandError("Error: The client object must use a Curl handler.")

    request = client.request
    parts = ["curl"]

    if handler.is_return_header():
        parts.append("-i")
    parts.append(f"-X {request.method}")

    if _is_insecure(client, handler):
        parts.append("--insecure")

    if client.auth is not None:
        if client.auth.is_basic():
            parts.append(f'--basic -u "{client.auth.username}:{client.auth.password}"')
            request.remove_header("Authorization")
        else:
            parts.append(f'--header "{client.auth.create_auth_header()}"')

    for header in request.headers:
        if "multipart/form-data" in header.value_as_string or header.name.lower() == "content-length":
            continue
        if client.auth is not None and header.name.lower() == "authorization":
            continue
        parts.append(f'--header "{header}"')

    if request.has_data():
        parts.extend(_data_options(request))

    if request.has_body():
        body = request.body.decode("utf-8") if isinstance(request.body, bytes) else request.body
        parts.append(f"--data '{_escape_single(body)}'")

    parts.extend(_handler_options(handler))

    uri = request.uri_as_string.split("?", 1)[0]
    query = request.get_query_string()
    if query:
        uri += "?" + query
    parts.append(add_quotes(uri))

    command = " ".join(parts)
    logger.debug("Rendered curl command: %s", command)
    return command


def _is_insecure(client, handler: Curl) -> bool:
    if client.options.get("verify_peer") is False or client.options.get("allow_self_signed"):
        return True
    for name in ("SSL_VERIFYHOST", "SSL_VERIFYPEER"):
        if handler.has_option(name) and not handler.get_option(name):
            return True
    return False


def _data_options(request: Request) -> List[str]:
    if request.data.raw is not None:
        raw = request.data.raw
        raw = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        return [f"--data '{_escape_single(raw)}'"]

    fields = request.data.to_dict()
    parts = []

    if request.is_multipart():
        for key, value in fields.items():
            if is_file_datum(value) and os.path.isfile(value["filename"]):
                parts.append(f'-F "{key}=@{value["filename"]}"')
            else:
                parts.append(f'-F "{build_query({key: value})}"')
        return parts

    if request.is_json() or request.is_xml():
        plain = {}
        for key, value in fields.items():
            if is_file_datum(value):
                if os.path.isfile(value["filename"]):
                    parts.append(f'--data @{value["filename"]}')
            else:
                plain[key] = value
        if plain and request.is_json():
            parts.append(f"--data '{_escape_single(json.dumps(plain, separators=(',', ':')))}'")
        elif plain:
            parts.extend(f"--data '{_escape_single(str(datum))}'" for datum in plain.values())
        return parts

    if request.method == "GET" or request.is_url_encoded() or not request.has_request_type():
        parts.append(f'--data "{request.data.get_query_string()}"')
    return parts


def _handler_options(handler: Curl) -> List[str]:
    parts = []
    for name, value in handler.options.items():
        if curl_options.is_omit_option(name):
            continue
        if name == "HTTPAUTH":
            if value == curl_options.AUTH_DIGEST:
                parts.append("--digest")
            continue

        flags = curl_options.get_client_option(name)
        if flags is None:
            logger.debug("No curl flag for option %s", name)
            continue
        flag = flags[0] if isinstance(flags, tuple) else flags

        if curl_options.is_value_option(name):
            constants = curl_options.get_value_option(name)
            if constants:
                implied = curl_options.get_flag_for_value(name, value)
                if implied is not None:
                    parts.append(implied)
                    continue
            if value is None or value == "":
                parts.append(flag)
            else:
                parts.append(f"{flag} {add_quotes(value)}")
        elif curl_options.is_negated_option(flag):
            if not value:
                parts.append(flag)
        elif value:
            parts.append(flag)
    return parts


# =============================================================================
# COMMAND → CLIENT
# =============================================================================

def command_to_request(command: str):
    """
    Build a Client from a curl command.

    Raises:
        CommandError: If the command does not start with "curl"
    """
    from .client import Client

    command = command.strip()
    if not command.startswith("curl"):
        raise CommandError("Error: The command isn't a valid cURL command.")

    command = command[4:]
    options: List[str] = []

    if "-" not in command:
        uri = command.strip()
    else:
        option_string, _, uri = command.rpartition(" ")
        options = parse_command_options(option_string)

    request = Request(trim_quotes(uri))
    curl = Curl()
    auth, files = None, []

    if options:
        auth, files = convert_command_options(options, curl, request)

    client = Client(request, curl)
    if auth is not None:
        client.set_auth(auth)
    if files:
        client.set_files(files, multipart=False)

    logger.debug("Parsed curl command into %s %s", request.method, request.uri_as_string)
    return client


def parse_command_options(option_string: str) -> List[str]:
    """
    Split the option part of a command into one string per flag.

        >>> parse_command_options(' -X POST --header "Accept: */*"')
        ['-X POST', '--header "Accept: */*"']
    """
    starts = [match.start() for match in _OPTION_START.finditer(option_string)]
    options = []
    for n, start in enumerate(starts):
        end = starts[n + 1] if n + 1 < len(starts) else len(option_string)
        options.append(option_string[start + 1:end])
    return options


def _split_option(option: str) -> Tuple[str, Optional[str]]:
    if option.startswith("--"):
        flag, sep, value = option.partition(" ")
        return flag, value if sep else None
    if len(option) > 2:
        return option[:2], option[3:] if option[2] == " " else option[2:]
    return option, None


def _is_field_data(value: str) -> bool:
    return "=" in value and "<?xml" not in value and not value.lstrip().startswith(("{", "["))


def extract_command_option_values(options: List[str]) -> Dict[str, Any]:
    """
    Map each flag to its value (None for switches).

    -d/--data and -F/--form values holding fields ("a=1&b=2") are parsed
    into dicts; repeated field flags merge their dicts.
    """
    values: Dict[str, Any] = {}

    for option in options:
        flag, value = _split_option(option.strip())
        if value is not None:
            value = value.strip()

        if flag in ("-d", "--data", "-F", "--form") and value is not None:
            value = trim_quotes(value).replace("'\\''", "'")
            if _is_field_data(value):
                value = parse_query_string(value)

        if flag not in values:
            values[flag] = value
            continue

        current = values[flag]
        if isinstance(current, dict) and isinstance(value, dict):
            current.update(value)
        elif isinstance(current, list):
            current.append(value)
        else:
            values[flag] = [current, value]

    return values


def _pop_all(values: Dict[str, Any], *flags: str) -> Tuple[bool, Any]:
    """Pop a flag and its aliases, merging their values like a repeated flag."""
    found, merged = False, None
    for flag in flags:
        if flag not in values:
            continue
        value = values.pop(flag)
        if not found:
            found, merged = True, value
        elif isinstance(merged, dict) and isinstance(value, dict):
            merged = {**merged, **value}
        else:
            merged = (merged if isinstance(merged, list) else [merged]) + (
                value if isinstance(value, list) else [value]
            )
    return found, merged


def convert_command_options(
    options: List[str], curl: Curl, request: Request
) -> Tuple[Optional[Auth], List[str]]:
    """
    Apply parsed flags to the request and the curl handler.

    Returns the Basic auth found (or None) and the files named by
    "-d @file" data.
    """
    values = extract_command_option_values(options)
    auth = None
    files: List[str] = []

    method_given = True
    if "-G" in values or "--get" in values:
        _pop_all(values, "-G", "--get")
        request.set_method("GET")
    elif "-I" in values or "--head" in values:
        _pop_all(values, "-I", "--head")
        request.set_method("HEAD")
    else:
        found, method = _pop_all(values, "-X", "--request")
        method_given = bool(found and method)
        if method_given:
            request.set_method(trim_quotes(_last(method)))

    if "-k" in values or "--insecure" in values:
        curl.set_option("SSL_VERIFYHOST", 0)
        curl.set_option("SSL_VERIFYPEER", 0)

    found, headers = _pop_all(values, "-H", "--header")
    if found and headers:
        headers = headers if isinstance(headers, list) else [headers]
        request.add_headers([trim_quotes(h) for h in headers if h])

    basic_allowed = "--digest" not in values or "--basic" in values or "--anyauth" in values
    user = values.get("-u", values.get("--user"))
    if basic_allowed and isinstance(user, str) and ":" in user:
        username, _, password = trim_quotes(user).partition(":")
        auth = Auth.create_basic(username, password)
        _pop_all(values, "-u", "--user")
        values.pop("--basic", None)

    if "--digest" in values and auth is None:
        values.pop("--digest")
        curl.set_option("HTTPAUTH", curl_options.AUTH_DIGEST)

    found, data = _pop_all(values, "-d", "--data")

    # --json carries the body and implies POST
    if "--json" in values:
        json_data = values.pop("--json")
        request.add_headers({"Content-Type": Request.JSON, "Accept": Request.JSON})
        if json_data is not None and not found:
            parts = json_data if isinstance(json_data, list) else [json_data]
            found, data = True, "".join(trim_quotes(p.strip()) for p in parts if p)
        if not method_given:
            request.set_method("POST")

    if found and data is not None:
        _apply_data(request, data, files)

    found, form = _pop_all(values, "-F", "--form")
    if found:
        fields = {}
        for key, datum in (form if isinstance(form, dict) else {}).items():
            if isinstance(datum, str) and datum.startswith("@"):
                path = datum[1:]
                fields[key] = {
                    "filename": os.path.join(os.getcwd(), path),
                    "content_type": get_mime_type_from_filename(path),
                }
            else:
                fields[key] = datum
        request.set_data(fields)
        request.set_request_type(Request.MULTIPART)

    _apply_handler_options(values, curl)
    return auth, files


def _apply_data(request: Request, data: Any, files: List[str]) -> None:
    if isinstance(data, list):
        data = "&".join(build_query(d) if isinstance(d, dict) else str(d) for d in data if d is not None)
        if _is_field_data(data):
            data = parse_query_string(data)

    content_type = request.get_header_value("Content-Type")
    if content_type and isinstance(data, str):
        if data.startswith("@"):
            path = data[1:]
            if not os.path.isabs(path):
                path = os.path.join(os.getcwd(), path)
            if os.path.isfile(path):
                files.append(path)
            else:
                logger.warning("Data file %s does not exist", path)
        elif content_type == Request.JSON:
            try:
                data = json.loads(data)
            except ValueError:
                logger.debug("Data is not valid JSON, keeping it raw")
        elif content_type == Request.URLENCODED:
            data = parse_query_string(data)

    request.set_data(data)


def _last(value: Any) -> Any:
    return value[-1] if isinstance(value, list) else value


_INTEGER = re.compile(r"^-?\d+$")
_DECIMAL = re.compile(r"^-?\d*\.\d+$")


def _to_number(value: str) -> Any:
    # "3" -> 3, "2.5" -> 2.5
    if _INTEGER.match(value):
        return int(value)
    if _DECIMAL.match(value):
        return float(value)
    return value


def _apply_handler_options(values: Dict[str, Any], curl: Curl) -> None:
    for flag, value in values.items():
        if curl_options.is_omit_option(flag):
            continue

        names = curl_options.get_command_option(flag)
        if names is None:
            logger.debug("Ignoring unsupported curl flag %s", flag)
            continue
        names = names if isinstance(names, tuple) else (names,)

        if curl_options.is_negated_option(flag):
            for name in names:
                curl.set_option(name, 0)
            continue

        if curl_options.is_value_option(flag):
            option_value = curl_options.get_value_option(flag)
            if option_value is None:
                value = _last(value)
                option_value = _to_number(trim_quotes(value)) if isinstance(value, str) else value
        else:
            option_value = True

        curl.set_option(names[0], option_value)
