import asyncio
from collections import deque

import pytest

from ecg_monitor.serial_device import TransportReadError


class ScriptedSource:
    """ByteSource that replays fixed chunks, optionally failing afterwards."""

    def __init__(self, chunks, fail_at_end=False):
        self._chunks = deque(chunks)
        self._fail_at_end = fail_at_end
        self.closed = False

    def feed(self, chunk):
        self._chunks.append(chunk)

    def has_available_data(self):
        return bool(self._chunks) or self._fail_at_end

    def read(self, size):
        if not self._chunks:
            raise TransportReadError("link dropped")
        return self._chunks.popleft()

    def close(self):
        self.closed = True


async def wait_until(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    end = loop.time() + timeout
    while not predicate():
        if loop.time() > end:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.001)


@pytest.fixture
def make_source():
    return ScriptedSource


@pytest.fixture(name="wait_until")
def wait_until_fixture():
    return wait_until
