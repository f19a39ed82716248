"""
=============================================================================
HANDLER INTERFACE
=============================================================================

A handler is the transport under a Client. The client builds a Request,
the handler puts it on the wire and turns what comes back into a Response.

    ┌────────┐  prepare(request, auth)  ┌─────────┐   bytes   ┌────────┐
    │ Client │ ───────────────────────► │ Handler │ ────────► │ Server │
    │        │  send() → Response       │         │ ◄──────── │        │
    └────────┘ ◄─────────────────────── └─────────┘           └────────┘

Every handler follows the same four-step contract:

    prepare()     Copy the request (and the auth header) into transport
                  state. No I/O.
    send()        Run the transfer and return a Response.
    reset()       Forget request state so the handler can be reused.
    disconnect()  Release the transport resource.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from ...auth import Auth
from ..request import Request


class AbstractHandler(ABC):
    """Base class for client transports."""

    def __init__(self):
        self.resource: Any = None
        self.http_version: Optional[str] = None
        self.uri: Optional[str] = None

    def has_resource(self) -> bool:
        return self.resource is not None

    @abstractmethod
    def prepare(self, request: Request, auth: Optional[Auth] = None) -> "AbstractHandler":
        """Load the request into the transport."""

    @abstractmethod
    def send(self) -> Any:
        """Run the transfer."""

    @abstractmethod
    def set_verify_peer(self, verify: bool = True) -> "AbstractHandler":
        """Turn TLS certificate verification on or off."""

    @abstractmethod
    def allow_self_signed(self, allow: bool = True) -> "AbstractHandler":
        """Accept self-signed TLS certificates."""

    @abstractmethod
    def reset(self) -> "AbstractHandler":
        """Clear request state."""

    @abstractmethod
    def disconnect(self) -> None:
        """Release the transport resource."""
