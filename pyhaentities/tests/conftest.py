"""Pytest configuration and fixtures."""
import asyncio
import json

import pytest

from pyhaentities import wsapi
from pyhaentities.connection import ConnectionResolver
from pyhaentities.exceptions import CallCancelledError
from pyhaentities.host import NodeRegistry
from pyhaentities.registry import Registry


class FakeSocket:
    """Scripted WebSocket: recv() returns frames in order, then never answers."""

    def __init__(self, frames):
        self.frames = list(frames)
        self.sent = []
        self.closed = 0
        self.url = None

    async def recv(self):
        if not self.frames:
            await asyncio.Event().wait()
        frame = self.frames.pop(0)
        if isinstance(frame, Exception):
            raise frame
        return frame if isinstance(frame, str) else json.dumps(frame)

    async def send(self, data):
        self.sent.append(json.loads(data))

    async def close(self):
        self.closed += 1


class FakeClient:
    """WSAPI stand-in answering by command type, optionally after a delay."""

    def __init__(self, responses=None, delays=None):
        self.responses = dict(responses or {})
        self.delays = dict(delays or {})
        self.calls = []
        self.cancels = []
        self.in_flight = 0

    async def call(self, socket_url, token, request, timeout=None, cancel=None):
        self.calls.append((socket_url, token, request["type"]))
        self.cancels.append(cancel)
        self.in_flight += 1
        try:
            delay = self.delays.get(request["type"])
            if delay:
                waiters = [asyncio.ensure_future(asyncio.sleep(delay))]
                if cancel is not None:
                    waiters.append(asyncio.ensure_future(cancel.wait()))
                await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
                for task in waiters:
                    task.cancel()
                await asyncio.gather(*waiters, return_exceptions=True)
            if cancel is not None and cancel.cancelled:
                raise CallCancelledError("call cancelled")
            value = self.responses.get(request["type"], [])
            if isinstance(value, Exception):
                raise value
            return value
        finally:
            self.in_flight -= 1


@pytest.fixture(autouse=True)
def no_supervisor(monkeypatch):
    """Tests never run as a Supervisor add-on unless they say so."""
    monkeypatch.delenv("SUPERVISOR_TOKEN", raising=False)


@pytest.fixture
def fake_socket(monkeypatch):
    """Install a FakeSocket behind websockets.connect."""
    def install(frames, delay=0):
        sock = FakeSocket(frames)

        async def connect(url, **kwargs):
            if delay:
                await asyncio.sleep(delay)
            sock.url = url
            return sock

        monkeypatch.setattr(wsapi.websockets, "connect", connect)
        return sock
    return install


@pytest.fixture
def fake_client():
    return FakeClient


@pytest.fixture
def nodes():
    registry = NodeRegistry()
    registry.create_node({"id": "home", "type": "server", "url": "http://ha.local:8123", "token": "TOKEN"})
    return registry


@pytest.fixture
def make_registry(nodes):
    def build(responses=None, directory=None, environ=None, delays=None):
        client = FakeClient(responses, delays)
        resolver = ConnectionResolver(nodes if directory is None else directory, environ=environ or {})
        return Registry(resolver, client), client
    return build
