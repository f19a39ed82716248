"""
=============================================================================
HTTPKIT - HTTP Client, Auth and Server Helpers
=============================================================================

An HTTP toolkit with two sides: a client that sends requests over libcurl
(or urllib) and translates to and from curl command lines, and a set of
helpers for the server side of a WSGI application.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    httpkit/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m httpkit)
    ├── config.py            # ClientConfig dataclass
    ├── exceptions.py        # HttpError hierarchy
    ├── log.py               # Transfer log records
    ├── promise.py           # Deferred sends with callbacks
    ├── auth/                # Authorization headers
    │   ├── auth.py          # Basic, Bearer, API key, Digest
    │   └── digest.py        # RFC 2617 challenge/response
    ├── client/              # Client side
    │   ├── client.py        # Client (options, prepare, send)
    │   ├── request.py       # Outgoing request
    │   ├── response.py      # Received response
    │   ├── data.py          # Form/JSON/multipart payloads
    │   ├── curl_command.py  # Client <-> curl command line
    │   ├── curl_options.py  # curl flag tables
    │   └── handlers/        # Transports (Curl, CurlMulti, Stream)
    ├── http/                # Shared protocol pieces
    │   ├── headers.py       # Header / Headers
    │   ├── uri.py           # URI parsing
    │   ├── parser.py        # Body codecs and parsers
    │   ├── status_codes.py  # Reason phrases
    │   └── mime_types.py    # MIME type lookup
    └── server/              # Server side (WSGI)
        ├── request.py       # ServerRequest
        ├── response.py      # ServerResponse
        └── upload.py        # Upload checks and moves

=============================================================================
QUICK START
=============================================================================

    from httpkit import Client, Auth, Request

    client = Client("http://localhost:8000/api/items", {
        "method": "POST",
        "type": Request.JSON,
        "data": {"name": "widget"},
    }, Auth.create_bearer("my-token"))

    response = client.send()
    print(response.code, response.parsed_response)

    print(client.to_curl_command())
    # curl -i -X POST --header "Authorization: Bearer my-token" ...

=============================================================================
"""

__version__ = "1.0.0"

from .auth import Auth, Digest
from .client import Client, Data, Request, Response
from .client.handlers import Curl, CurlMulti, Stream
from .config import ClientConfig
from .exceptions import HttpError
from .promise import Promise
from .server import ServerRequest, ServerResponse, Upload

__all__ = [
    "Auth",
    "Digest",
    "Client",
    "ClientConfig",
    "Curl",
    "CurlMulti",
    "Data",
    "HttpError",
    "Promise",
    "Request",
    "Response",
    "ServerRequest",
    "ServerResponse",
    "Stream",
    "Upload",
    "__version__",
]
