"""Shared fixtures: an in-memory socket transport and polling helpers."""

import asyncio

import pytest

_CLOSE = object()


class FakeSocket:
    """In-memory stand-in for a relay WebSocket connection."""

    def __init__(self, url, *, supports_heartbeat=False, preload=()):
        self.url = url
        self.supports_heartbeat = supports_heartbeat
        self.sent = []
        self.close_codes = []
        self.terminated = False
        self.closed = False
        self.ping_handler = None
        self._incoming = asyncio.Queue()
        for frame in preload:
            self._incoming.put_nowait(frame)

    # -- Driven by tests --

    def feed(self, data):
        self._incoming.put_nowait(data)

    def fail(self, exc):
        """Make the read side raise, like an abnormal close."""
        self.closed = True
        self._incoming.put_nowait(exc)

    def drop(self):
        """Server side closes the connection normally."""
        self.closed = True
        self._incoming.put_nowait(_CLOSE)

    def ping(self):
        if self.ping_handler is not None:
            self.ping_handler()

    # -- SocketTransport --

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self._incoming.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item

    async def send(self, data):
        self.sent.append(data)

    async def close(self, code=1000):
        self.close_codes.append(code)
        if not self.closed:
            self.closed = True
            self._incoming.put_nowait(_CLOSE)

    def terminate(self):
        self.terminated = True
        if not self.closed:
            self.closed = True
            self._incoming.put_nowait(ConnectionResetError("terminated"))

    def set_ping_handler(self, handler):
        self.ping_handler = handler


class FakeSocketFactory:
    """Socket factory recording every connection it opens.

    Attributes:
        failures: Exceptions raised by the next connect attempts, in order.
        hold: When set, connect attempts wait on this event first.
    """

    def __init__(self, *, supports_heartbeat=False, preload=()):
        self.supports_heartbeat = supports_heartbeat
        self.preload = list(preload)
        self.sockets = []
        self.failures = []
        self.attempts = 0
        self.hold = None
        self.configs = []

    async def __call__(self, url, config):
        self.attempts += 1
        self.configs.append(config)
        if self.hold is not None:
            await self.hold.wait()
        if self.failures:
            raise self.failures.pop(0)
        sock = FakeSocket(
            url, supports_heartbeat=self.supports_heartbeat, preload=self.preload
        )
        self.sockets.append(sock)
        return sock

    @property
    def current(self):
        return self.sockets[-1]


@pytest.fixture
def socket_factory():
    return FakeSocketFactory()


@pytest.fixture
def heartbeat_factory():
    return FakeSocketFactory(supports_heartbeat=True)


@pytest.fixture
def wait_until():
    """Poll *predicate* until it holds or *timeout* seconds pass."""

    async def _wait(predicate, timeout=1.0):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met in time")
            await asyncio.sleep(0.005)

    return _wait


@pytest.fixture
def make_socket_factory():
    return FakeSocketFactory
