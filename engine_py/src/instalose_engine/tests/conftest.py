"""
Pytest fixtures shared by the engine tests.
"""

import asyncio

import orjson
import pytest


class FakeClock:
    """Settable clock; tests move `now` forward by hand."""

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class FakeConnection:
    """
    Push endpoint that records every message it is sent.

    `error` is raised on send when set, `delay` slows each send down, and
    `gate`, when given, holds each send until the event is set.
    """

    def __init__(self, error=None, delay=0.0, gate=None):
        self.messages = []
        self.error = error
        self.delay = delay
        self.gate = gate

    async def send_text(self, data):
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.messages.append(orjson.loads(data))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_connection():
    """Factory for recording connections: fake_connection(error=..., delay=..., gate=...)."""
    return FakeConnection
