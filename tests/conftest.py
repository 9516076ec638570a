"""Shared fakes: an in-memory WebSocket transport and helpers to drive the receive loop."""

import asyncio
from typing import Callable, Optional, Union

import pytest

from hakushi_chat.errors import SendError, TransportReceiveError


class FakeTransport:
    """Frames pushed with push() are returned by receive(); exceptions pushed are raised."""

    def __init__(self) -> None:
        self.inbox: asyncio.Queue = asyncio.Queue()
        self.sent: list[str] = []
        self.opened_url: Optional[str] = None
        self.closed = False
        self.open_gate: Optional[asyncio.Event] = None
        self.fail_send: Optional[str] = None

    async def open(self, url: str) -> None:
        self.opened_url = url
        if self.open_gate is not None:
            await self.open_gate.wait()

    async def receive(self) -> Union[str, bytes]:
        item = await self.inbox.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def send(self, text: str) -> None:
        if self.fail_send:
            raise SendError(self.fail_send)
        self.sent.append(text)

    async def close(self) -> None:
        self.closed = True

    def push(self, frame: Union[str, bytes]) -> None:
        self.inbox.put_nowait(frame)

    def drop(self, reason: str = "connection reset") -> None:
        self.inbox.put_nowait(TransportReceiveError(reason))


class TransportFactory:
    def __init__(self) -> None:
        self.created: list[FakeTransport] = []
        self.gate_open = False

    def __call__(self) -> FakeTransport:
        transport = FakeTransport()
        if self.gate_open:
            transport.open_gate = asyncio.Event()
        self.created.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


async def wait_until(predicate: Callable[[], bool], rounds: int = 200) -> None:
    """Let the event loop run until ``predicate`` holds."""
    for _ in range(rounds):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


async def settle(rounds: int = 20) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def factory() -> TransportFactory:
    return TransportFactory()
