import time

import pytest


class StubClient(object):
    """
    Streaming client which replays canned records.

    *records* are yielded in order.  An exception instance in *records* is
    raised when reached.  *error* makes *open* fail with ConnectionError.
    """
    def __init__(self, records=(), error=None):
        self.records = list(records)
        self.error = error
        self.calls = []

    async def open(self, endpoint, package, module_name, token, start, stop):
        self.calls.append((endpoint, package, module_name, token, start, stop))
        if self.error is not None:
            raise ConnectionError(self.error)
        return self._replay()

    async def _replay(self):
        for record in self.records:
            if isinstance(record, Exception):
                raise record
            yield record


@pytest.fixture
def stub_client():
    return StubClient


def wait_until(condition, timeout=5.0):
    """
    Poll *condition* until it returns true, failing after *timeout* seconds.
    """
    deadline = time.time() + timeout
    while not condition():
        if time.time() > deadline:
            raise AssertionError("timed out waiting for %r" % condition)
        time.sleep(0.01)


@pytest.fixture
def wait():
    return wait_until
