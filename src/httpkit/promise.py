"""
=============================================================================
PROMISE
=============================================================================
A deferred send over a Client or a CurlMulti handler.

    promise = client.send_async()
    promise.then(lambda response: print(response.code))
    promise.catch(lambda response: print("failed", response.code))
    promise.resolve()

or, to block for the result:

    response = client.send_async().wait()

=============================================================================
STATES
=============================================================================

    ┌─────────┐  resolve()/wait()  ┌───────────┐
    │ PENDING │ ─────────────────► │ FULFILLED │   complete, no error
    │         │ ─────────────────► │ REJECTED  │   complete, error response
    │         │ ─────────────────► │ CANCELLED │   cancel()
    └─────────┘                    └───────────┘

Cancelling only changes the state; a transfer already running is not
interrupted.

=============================================================================
CHAINING
=============================================================================

Success callbacks run in order, each receiving the previous result (the
first one gets the response). A callback that returns a Promise hands the
remaining callbacks over to it:

    client.send_async() \\
        .then(lambda r: other_client.send_async()) \\
        .then(lambda r: print("second response", r.code))   # runs on other

=============================================================================
"""

import logging
from typing import Any, Callable, List, Optional

from .client import Client
from .client.handlers import CurlMulti
from .exceptions import PromiseError


logger = logging.getLogger("httpkit.promise")


class Promise:
    """A promise over a Client or CurlMulti (the promiser)."""

    PENDING = "PENDING"
    FULFILLED = "FULFILLED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"

    STATES = (PENDING, FULFILLED, REJECTED, CANCELLED)

    def __init__(self, promiser: Any):
        self.promiser = promiser
        self.state = self.PENDING
        self.success: List[Callable] = []
        self.failure: Optional[Callable] = None
        self.cancel_callback: Optional[Callable] = None
        self.finally_callback: Optional[Callable] = None

    def set_state(self, state: str) -> "Promise":
        """
        Raises:
            PromiseError: If the state is not one of STATES
        """
        if state not in self.STATES:
            raise PromiseError("That state is not allowed.")
        self.state = state
        return self

    def is_pending(self) -> bool:
        return self.state == self.PENDING

    def is_fulfilled(self) -> bool:
        return self.state == self.FULFILLED

    def is_rejected(self) -> bool:
        return self.state == self.REJECTED

    def is_cancelled(self) -> bool:
        return self.state == self.CANCELLED

    def is_multi(self) -> bool:
        return isinstance(self.promiser, CurlMulti)

    # =========================================================================
    # CALLBACKS
    # =========================================================================

    def set_success(self, callback: Callable) -> "Promise":
        """
        Append a success callback.

        Raises:
            PromiseError: If the callback is not callable
        """
        if not callable(callback):
            raise PromiseError("The success callback must be callable.")
        self.success.append(callback)
        return self

    def set_failure(self, callback: Callable) -> "Promise":
        if not callable(callback):
            raise PromiseError("The failure callback must be callable.")
        self.failure = callback
        return self

    def set_cancel(self, callback: Callable) -> "Promise":
        if not callable(callback):
            raise PromiseError("The cancel callback must be callable.")
        self.cancel_callback = callback
        return self

    def set_finally(self, callback: Callable) -> "Promise":
        if not callable(callback):
            raise PromiseError("The finally callback must be callable.")
        self.finally_callback = callback
        return self

    def has_success(self) -> bool:
        return bool(self.success)

    def has_failure(self) -> bool:
        return self.failure is not None

    def has_cancel(self) -> bool:
        return self.cancel_callback is not None

    def has_finally(self) -> bool:
        return self.finally_callback is not None

    def then(self, callback: Callable, resolve: bool = False) -> "Promise":
        self.set_success(callback)
        if resolve:
            self.resolve()
        return self

    def catch(self, callback: Callable, resolve: bool = False) -> "Promise":
        self.set_failure(callback)
        if resolve:
            self.resolve()
        return self

    def finally_(self, callback: Callable, resolve: bool = False) -> "Promise":
        self.set_finally(callback)
        if resolve:
            self.resolve()
        return self

    def forward(self, next_promise: "Promise", i: int = 0) -> "Promise":
        """Move success callbacks from index i onwards to another promise."""
        for callback in self.success[i:]:
            next_promise.then(callback)
        del self.success[i:]
        return next_promise

    # =========================================================================
    # SENDING
    # =========================================================================

    def _send(self) -> None:
        if self.is_multi():
            running = self.promiser.send()
            while running:
                self.promiser.set_wait()
                running = self.promiser.send()
        elif isinstance(self.promiser, Client):
            self.promiser.dispatch()
        else:
            self.promiser.send()

    def _responses(self) -> Any:
        if self.is_multi():
            return self.promiser.get_all_responses()
        return self.promiser.response

    def wait(self, unwrap: bool = True) -> Any:
        """
        Send and block until the transfer completes.

        Returns the response (a dict of responses for a multi handler),
        or None when the transfer failed and unwrap is False.

        Raises:
            PromiseError: If unwrap is True and the transfer failed or did
                          not complete
        """
        if self.is_fulfilled() and self.promiser.is_complete():
            return self._responses()

        self.set_state(self.PENDING)
        self._send()

        if self.promiser.is_complete():
            if self.promiser.is_error():
                self.set_state(self.REJECTED)
                if unwrap:
                    if self.is_multi():
                        raise PromiseError("Error: There was an error with one of the multiple requests.")
                    response = self.promiser.response
                    raise PromiseError(f"Error: {response.code} {response.message}")
            else:
                self.set_state(self.FULFILLED)
                return self._responses()
        elif unwrap:
            raise PromiseError("Error: Unable to complete request.")

        return None

    def resolve(self) -> "Promise":
        """
        Send and run the callbacks for the outcome.

        Does nothing unless the promise is pending.

        Raises:
            PromiseError: If the outcome has no callback to handle it
        """
        if not self.is_pending():
            return self

        self._send()

        if self.promiser.is_complete():
            response = self._responses()
            if self.promiser.is_success():
                if not self.has_success():
                    raise PromiseError("Error: The success callback has not been set.")

                result = response
                for i, callback in enumerate(self.success):
                    if isinstance(result, Promise):
                        self.forward(result, i)
                        break
                    result = callback(result)

                self.set_state(self.FULFILLED)
                if isinstance(result, Promise):
                    result.resolve()
            elif self.promiser.is_error():
                if not self.has_failure():
                    raise PromiseError("Error: The failure callback has not been set.")
                self.set_state(self.REJECTED)
                self.failure(response)

            if self.has_finally():
                self.finally_callback(self)
        else:
            logger.warning("Promise resolved before its transfer completed")

        return self

    def cancel(self) -> "Promise":
        """
        Cancel a pending promise.

        Raises:
            PromiseError: If no cancel callback has been set
        """
        if not self.is_pending():
            return self
        if not self.has_cancel():
            raise PromiseError("Error: The cancel callback has not been set.")
        self.set_state(self.CANCELLED)
        self.cancel_callback(self)
        return self

    def __repr__(self) -> str:
        return f"Promise({self.state})"
