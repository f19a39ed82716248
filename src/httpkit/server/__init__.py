"""
Server side of an exchange: the incoming request, the outgoing response
and file uploads, for WSGI applications.
"""

from .request import ServerRequest
from .response import ServerResponse
from .upload import Upload

__all__ = ["ServerRequest", "ServerResponse", "Upload"]
