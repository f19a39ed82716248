"""
=============================================================================
CURL MULTI HANDLER
=============================================================================

Runs several clients' transfers at once on one pycurl.CurlMulti handle.

    multi = CurlMulti()
    multi.add_clients({
        "users": Client("https://api.example.com/users"),
        "posts": Client("https://api.example.com/posts"),
    })

    running = multi.send()
    while running:
        multi.set_wait()
        running = multi.send()

    responses = multi.get_all_responses()     # {"users": Response, ...}

send() does one round of work and returns how many transfers are still
running; the caller decides how to wait between rounds. A Promise wrapped
around a CurlMulti runs exactly this loop.
=============================================================================
"""

import logging
from typing import Any, Dict, List, Optional, Union

import pycurl

from ...auth import Auth
from ...exceptions import HandlerError
from ..request import Request
from ..response import Response
from .base import AbstractHandler


logger = logging.getLogger("httpkit.client.curl")


class CurlMulti(AbstractHandler):
    """
    A set of named clients whose curl handles share one multi handle.

    Clients added without a name are keyed by their position ("0", "1", ...).
    """

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        super().__init__()
        self.resource = pycurl.CurlMulti()
        self.clients: Dict[str, Any] = {}
        self.errors: Dict[str, HandlerError] = {}
        self.options: Dict[str, Any] = {}
        self._running = 0
        self._sent = False

        if options:
            for name, value in options.items():
                self.set_option(name, value)

    def set_option(self, name: str, value: Any) -> "CurlMulti":
        key = name.upper().replace("CURLMOPT_", "")
        constant = getattr(pycurl, key if key.startswith("M_") else "M_" + key, None)
        if constant is None:
            logger.warning("Skipping curl multi option %s: not supported by pycurl", name)
            return self
        self.options[name] = value
        self.resource.setopt(constant, value)
        return self

    # ─────────────────────────────────────────────────────────────────────
    # Clients
    # ─────────────────────────────────────────────────────────────────────

    def add_client(self, client, name: Optional[str] = None) -> "CurlMulti":
        """
        Prepare a client and attach its curl handle.

        Raises:
            HandlerError: If the client does not use a Curl handler
        """
        from .curl import Curl

        if name is None:
            name = str(len(self.clients))

        client.prepare()
        if not isinstance(client.handler, Curl):
            raise HandlerError("The client object must use a Curl handler.")

        client.handler.prepare(client.request, client.auth)
        self.clients[name] = client
        self.resource.add_handle(client.handler.curl)
        return self

    def add_clients(self, clients: Union[Dict[str, Any], List[Any]]) -> "CurlMulti":
        if isinstance(clients, dict):
            for name, client in clients.items():
                self.add_client(client, name)
        else:
            for client in clients:
                self.add_client(client)
        return self

    def get_client(self, name: str):
        return self.clients.get(name)

    def has_client(self, name: str) -> bool:
        return name in self.clients

    def get_clients(self) -> Dict[str, Any]:
        return self.clients

    def remove_client(self, name: Optional[str] = None, client=None) -> "CurlMulti":
        """
        Detach a client by name or by object.

        Raises:
            HandlerError: If neither a name nor a client is given
        """
        if name is not None and name in self.clients:
            client = self.clients.pop(name)
        elif client is not None:
            for key in [k for k, c in self.clients.items() if c is client]:
                del self.clients[key]
        else:
            raise HandlerError("You must pass at least a name or client parameter.")

        if client is not None and client.handler is not None and client.handler.has_resource():
            self.resource.remove_handle(client.handler.curl)
        return self

    def _resolve(self, client):
        if isinstance(client, str):
            return self.clients.get(client)
        return client

    def get_client_content(self, client) -> Optional[bytes]:
        """The raw bytes a client's transfer has received so far."""
        client = self._resolve(client)
        if client is None or client.handler is None:
            return None
        return client.handler.get_content()

    def process_response(self, client) -> Optional[Response]:
        """Parse a finished transfer into the client's response."""
        client = self._resolve(client)
        if client is None:
            return None
        client.response = client.handler.parse_response()
        return client.response

    # ─────────────────────────────────────────────────────────────────────
    # Transfer
    # ─────────────────────────────────────────────────────────────────────

    def prepare(self, request: Request, auth: Optional[Auth] = None) -> "CurlMulti":
        return self

    def set_verify_peer(self, verify: bool = True) -> "CurlMulti":
        for client in self.clients.values():
            client.handler.set_verify_peer(verify)
        return self

    def allow_self_signed(self, allow: bool = True) -> "CurlMulti":
        for client in self.clients.values():
            client.handler.allow_self_signed(allow)
        return self

    def send(self) -> int:
        """
        Do one round of work on every attached transfer.

        Returns the number of transfers still running. Finished transfers
        are parsed into their clients' responses as they complete.
        """
        self._sent = True
        while True:
            ret, self._running = self.resource.perform()
            if ret != pycurl.E_CALL_MULTI_PERFORM:
                break

        self._collect_finished()
        return self._running

    def _collect_finished(self) -> None:
        while True:
            queued, succeeded, failed = self.resource.info_read()
            for handle in succeeded:
                name = self._name_for_handle(handle)
                if name is not None:
                    self.process_response(name)
            for handle, errno, message in failed:
                name = self._name_for_handle(handle)
                if name is not None:
                    logger.error("Transfer %s failed: %s %s", name, errno, message)
                    self.errors[name] = HandlerError(f"Error: {errno} => {message}.", errno=errno)
            if not queued:
                break

    def _name_for_handle(self, handle) -> Optional[str]:
        for name, client in self.clients.items():
            if client.handler.resource is handle:
                return name
        return None

    def get_info(self):
        """Messages about finished transfers: (queued, succeeded, failed)."""
        return self.resource.info_read()

    def set_wait(self, timeout: float = 1.0) -> int:
        return self.resource.select(timeout)

    # ─────────────────────────────────────────────────────────────────────
    # Results
    # ─────────────────────────────────────────────────────────────────────

    def is_complete(self) -> bool:
        return self._sent and self._running == 0

    def is_error(self) -> bool:
        if self.errors:
            return True
        return any(c.response is not None and c.response.is_error() for c in self.clients.values())

    def is_success(self) -> bool:
        return self.is_complete() and not self.is_error()

    def get_all_responses(self) -> Dict[str, Optional[Response]]:
        return {name: client.response for name, client in self.clients.items()}

    def reset(self) -> "CurlMulti":
        self.errors = {}
        self._running = 0
        self._sent = False
        return self

    def disconnect(self) -> None:
        for name in list(self.clients):
            self.remove_client(name)
        self.resource.close()
