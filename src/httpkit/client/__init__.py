"""
HTTP client: requests, responses, transports and the curl translator.
"""

from .client import Client
from .data import Data
from .handlers import AbstractHandler, Curl, CurlMulti, Stream
from .request import Request
from .response import Response

__all__ = [
    "Client",
    "Data",
    "Request",
    "Response",
    "AbstractHandler",
    "Curl",
    "CurlMulti",
    "Stream",
]
