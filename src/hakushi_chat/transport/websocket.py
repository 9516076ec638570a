"""
WebSocket transport for the chat party: wss://{host}/parties/chat/{room}.

The session controller only sees the ``Transport`` protocol; tests swap in an
in-memory fake. Every failure on open or receive surfaces as
TransportReceiveError, the one signal that the connection is dead.
"""

import asyncio
import logging
from typing import Optional, Protocol, Union

import aiohttp

from hakushi_chat.errors import SendError, TransportReceiveError

logger = logging.getLogger(__name__)

Frame = Union[str, bytes]


class Transport(Protocol):
    async def open(self, url: str) -> None: ...

    async def receive(self) -> Frame: ...

    async def send(self, text: str) -> None: ...

    async def close(self) -> None: ...


class AiohttpTransport:
    def __init__(self, heartbeat: Optional[float] = 20.0):
        self._heartbeat = heartbeat
        self._session: Optional[aiohttp.ClientSession] = None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None

    @property
    def is_open(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def open(self, url: str) -> None:
        self._session = aiohttp.ClientSession()
        try:
            self._ws = await self._session.ws_connect(url, heartbeat=self._heartbeat)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            await self.close()
            raise TransportReceiveError(f"Could not open {url}: {e}")

    async def receive(self) -> Frame:
        if self._ws is None:
            raise TransportReceiveError("WebSocket not open")
        try:
            msg = await self._ws.receive()
        except (aiohttp.ClientError, OSError) as e:
            raise TransportReceiveError(str(e))

        if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
            return msg.data
        if msg.type == aiohttp.WSMsgType.ERROR:
            raise TransportReceiveError(f"WebSocket error: {self._ws.exception()}")
        raise TransportReceiveError(f"Connection closed (code {self._ws.close_code})")

    async def send(self, text: str) -> None:
        if self._ws is None or self._ws.closed:
            raise SendError("WebSocket not open")
        try:
            await self._ws.send_str(text)
        except (aiohttp.ClientError, ConnectionResetError) as e:
            raise SendError(str(e))

    async def close(self) -> None:
        ws, session = self._ws, self._session
        self._ws = None
        self._session = None
        if ws is not None and not ws.closed:
            await ws.close(code=aiohttp.WSCloseCode.GOING_AWAY)
        if session is not None:
            await session.close()
