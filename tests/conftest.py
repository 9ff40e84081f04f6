"""Pytest configuration and fixtures."""

import asyncio
from typing import AsyncIterator

import pytest

from dapclient.lib import oj
from dapclient.protocol.framing import StreamDecoder, encode_message
from dapclient.transport.base import Transport, TransportError
from dapclient.transport.types import TransportConfig


class LoopbackTransport(Transport):
    """
    In-memory transport.

    Records every frame the client writes and lets tests push inbound
    bytes as if the adapter had sent them.
    """

    def __init__(self):
        super().__init__(TransportConfig())
        self.sent: list[bytes] = []
        self.connect_count = 0
        self.disconnect_count = 0
        self._inbound: asyncio.Queue[bytes | None] = asyncio.Queue()
        self._connected = False

    async def connect(self) -> None:
        self._connected = True
        self.connect_count += 1
        self._inbound = asyncio.Queue()

    async def disconnect(self) -> None:
        if self._connected:
            self._connected = False
            self.disconnect_count += 1
            self._inbound.put_nowait(None)

    async def send(self, data: bytes) -> None:
        if not self._connected:
            raise TransportError("Transport not connected")
        self.sent.append(data)

    async def receive(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self._inbound.get()
            if chunk is None:
                break
            yield chunk

    def is_connected(self) -> bool:
        return self._connected

    def inject(self, data: bytes) -> None:
        """Queue inbound bytes."""
        self._inbound.put_nowait(data)

    def inject_message(self, message: dict) -> None:
        """Queue one framed inbound message."""
        self.inject(encode_message(message))

    def close_stream(self) -> None:
        """Simulate the adapter closing its end."""
        self._inbound.put_nowait(None)

    def sent_messages(self) -> list[dict]:
        """Decode everything written so far."""
        decoder = StreamDecoder()
        return [oj.loads(body) for body in decoder.feed(b"".join(self.sent))]

    async def wait_for_sent(self, count: int, timeout: float = 1.0) -> list[dict]:
        """Wait until at least ``count`` messages have been written."""

        async def poll():
            while len(self.sent) < count:
                await asyncio.sleep(0)

        await asyncio.wait_for(poll(), timeout)
        return self.sent_messages()


async def _settle(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def settle():
    """Coroutine function that lets pending tasks run."""
    return _settle


@pytest.fixture
def transport():
    return LoopbackTransport()


@pytest.fixture
def stopped_event():
    """A typical ``stopped`` event message."""
    return {
        "seq": 7,
        "type": "event",
        "event": "stopped",
        "body": {"reason": "breakpoint", "threadId": 1},
    }
