"""
Unit tests for promises over a stand-in client.
"""

import pytest

from httpkit.client import Response
from httpkit.exceptions import PromiseError
from httpkit.promise import Promise


class TestState:
    """Tests for promise state handling."""

    def test_starts_pending(self, ok_promiser):
        promise = Promise(ok_promiser)
        assert promise.is_pending()
        assert not promise.is_multi()

    def test_invalid_state(self, ok_promiser):
        with pytest.raises(PromiseError, match="That state is not allowed."):
            Promise(ok_promiser).set_state("DONE")

    def test_callbacks_must_be_callable(self, ok_promiser):
        promise = Promise(ok_promiser)
        with pytest.raises(PromiseError):
            promise.then("not callable")
        with pytest.raises(PromiseError):
            promise.catch(None)


class TestResolve:
    """Tests for resolve() and the callbacks it runs."""

    def test_success(self, ok_promiser):
        seen = []
        promise = Promise(ok_promiser).then(lambda response: seen.append(response.code), resolve=True)
        assert promise.is_fulfilled()
        assert seen == [200]

    def test_success_chain_passes_results(self, ok_promiser):
        seen = []
        Promise(ok_promiser) \
            .then(lambda response: response.body) \
            .then(seen.append) \
            .resolve()
        assert seen == [b"ok"]

    def test_failure(self, error_promiser):
        seen = []
        promise = Promise(error_promiser).catch(lambda response: seen.append(response.code), resolve=True)
        assert promise.is_rejected()
        assert seen == [404]

    def test_missing_success_callback(self, ok_promiser):
        with pytest.raises(PromiseError, match="The success callback has not been set."):
            Promise(ok_promiser).resolve()

    def test_missing_failure_callback(self, error_promiser):
        with pytest.raises(PromiseError, match="The failure callback has not been set."):
            Promise(error_promiser).then(lambda r: r).resolve()

    def test_finally_runs(self, error_promiser):
        seen = []
        Promise(error_promiser) \
            .catch(lambda r: None) \
            .finally_(lambda promise: seen.append(promise.state), resolve=True)
        assert seen == [Promise.REJECTED]

    def test_resolve_only_once(self, ok_promiser):
        promise = Promise(ok_promiser).then(lambda r: r, resolve=True)
        promise.resolve()
        assert ok_promiser.sends == 1

    def test_incomplete_stays_pending(self, silent_promiser):
        promise = Promise(silent_promiser).then(lambda r: r).resolve()
        assert promise.is_pending()

    def test_returned_promise_takes_remaining_callbacks(self, ok_promiser, make_promiser):
        """Callbacks after one that returns a Promise run on that promise."""
        second = make_promiser(Response(201))
        seen = []
        first = Promise(ok_promiser) \
            .then(lambda response: Promise(second)) \
            .then(lambda response: seen.append(response.code))
        first.resolve()

        assert first.is_fulfilled()
        assert second.sends == 1
        assert seen == [201]


class TestWait:
    """Tests for blocking on a promise."""

    def test_returns_response(self, ok_promiser):
        promise = Promise(ok_promiser)
        assert promise.wait().code == 200
        assert promise.is_fulfilled()

    def test_fulfilled_does_not_resend(self, ok_promiser):
        promise = Promise(ok_promiser)
        promise.wait()
        promise.wait()
        assert ok_promiser.sends == 1

    def test_error_unwrapped(self, error_promiser):
        with pytest.raises(PromiseError, match="Error: 404 Not Found"):
            Promise(error_promiser).wait()

    def test_error_not_unwrapped(self, error_promiser):
        promise = Promise(error_promiser)
        assert promise.wait(unwrap=False) is None
        assert promise.is_rejected()

    def test_incomplete(self, silent_promiser):
        with pytest.raises(PromiseError, match="Error: Unable to complete request."):
            Promise(silent_promiser).wait()


class TestCancel:
    """Tests for cancelling a promise."""

    def test_cancel(self, ok_promiser):
        seen = []
        promise = Promise(ok_promiser).set_cancel(seen.append).cancel()
        assert promise.is_cancelled()
        assert seen == [promise]

    def test_cancel_needs_callback(self, ok_promiser):
        with pytest.raises(PromiseError, match="The cancel callback has not been set."):
            Promise(ok_promiser).cancel()

    def test_cancelled_is_not_resolved(self, ok_promiser):
        promise = Promise(ok_promiser).set_cancel(lambda p: None).cancel()
        promise.then(lambda r: r).resolve()
        assert ok_promiser.sends == 0
