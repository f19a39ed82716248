"""
=============================================================================
HTTPKIT EXCEPTIONS
=============================================================================

Every error raised by httpkit derives from HttpError, so callers can catch
the whole family in one place:

    try:
        client.send()
    except HttpError as e:
        logger.error("request failed: %s", e)

Subclasses carry extra metadata where it is useful (an errno from the
transport, the status code that could not be resolved), the same way a
parse error carries the status code a server should answer with.

    ┌──────────────────────────────────────────────────────────────────┐
    │                       EXCEPTION HIERARCHY                        │
    ├──────────────────────────────────────────────────────────────────┤
    │                                                                  │
    │   HttpError                                                      │
    │    ├── ParseError                 malformed header / URI / data  │
    │    ├── IncompleteCredentialError  auth preconditions not met     │
    │    ├── CommandError               curl command translation       │
    │    ├── HandlerError               transport failures (errno)     │
    │    ├── RequestError               missing request, URI or file   │
    │    ├── ResponseCodeError          unknown HTTP status code       │
    │    └── PromiseError               bad state, missing callbacks   │
    │                                                                  │
    └──────────────────────────────────────────────────────────────────┘
=============================================================================
"""

from typing import Optional


class HttpError(Exception):
    """Base class for all httpkit errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ParseError(HttpError):
    """Raised when a header, URI or payload cannot be parsed."""


class IncompleteCredentialError(HttpError):
    """
    Raised when an auth header cannot be built from what is set.

    Basic needs a username and a password, Bearer and key schemes need a
    token, and Digest needs every field its qop and algorithm require.
    """


class CommandError(HttpError):
    """Raised when a curl command cannot be translated either way."""


class HandlerError(HttpError):
    """
    Raised when a transport handler fails.

    The errno is the libcurl error number for the curl handler and None
    for the stream handler.
    """

    def __init__(self, message: str, errno: Optional[int] = None):
        super().__init__(message)
        self.errno = errno


class RequestError(HttpError):
    """Raised when a client has no request, no URI or a missing file."""


class ResponseCodeError(HttpError):
    """Raised for a status code outside the known table."""

    def __init__(self, code: int):
        super().__init__(f"The HTTP response code {code} is not valid.")
        self.code = code


class PromiseError(HttpError):
    """Raised for invalid promise states and failed unwraps."""
