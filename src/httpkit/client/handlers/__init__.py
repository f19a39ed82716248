"""Client transports."""

from .base import AbstractHandler
from .curl import Curl
from .curl_multi import CurlMulti
from .stream import Stream

__all__ = ["AbstractHandler", "Curl", "CurlMulti", "Stream"]
