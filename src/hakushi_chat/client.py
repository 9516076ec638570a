"""
HakushiChat — main client. Wires settings, the room session and the uploader.
"""

import asyncio
import uuid
from typing import Any, AsyncGenerator, Callable, Optional, Sequence

import httpx

from hakushi_chat.attachments import AttachmentUploader
from hakushi_chat.drawing import Stroke, export_svg
from hakushi_chat.message_log import UpdatePolicy
from hakushi_chat.models.message import AttachmentRef, ChatMessage
from hakushi_chat.session import SessionController, SessionEvent
from hakushi_chat.settings import Settings, SettingsStore
from hakushi_chat.transport.http import HttpClient
from hakushi_chat.transport.websocket import AiohttpTransport, Transport


class HakushiChat:
    """Async chat client for one room at a time."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        settings_store: Optional[SettingsStore] = None,
        transport_factory: Callable[[], Transport] = AiohttpTransport,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        update_policy: str = UpdatePolicy.IGNORE,
    ):
        if settings is None:
            settings_store = settings_store or SettingsStore()
            settings = settings_store.load()
        self.settings = settings

        self.http = HttpClient(base_url=settings.api_url, transport=http_transport)
        self.uploader = AttachmentUploader(self.http)
        self.session = SessionController(
            room=settings.room,
            user_name=settings.user_name,
            ws_url=settings.ws_url,
            transport_factory=transport_factory,
            settings_store=settings_store,
            update_policy=update_policy,
        )

    async def __aenter__(self) -> "HakushiChat":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    @property
    def connected(self) -> bool:
        return self.session.is_connected

    @property
    def room(self) -> str:
        return self.session.room

    @property
    def user_name(self) -> str:
        return self.session.user_name

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return self.session.messages

    @property
    def last_error(self) -> Optional[str]:
        return self.session.last_error

    async def connect(self, wait: bool = False, timeout: float = 15.0) -> bool:
        """Connect to the current room. With ``wait``, block until the first frame arrives."""
        await self.session.connect()
        if wait:
            return await self.session.wait_connected(timeout)
        return self.session.is_connected

    async def disconnect(self) -> None:
        await self.session.disconnect()

    async def close(self) -> None:
        await self.session.disconnect()
        await self.http.close()

    async def set_room(self, room: str) -> None:
        await self.session.set_room(room)

    async def create_new_room(self) -> str:
        return await self.session.create_new_room()

    def set_user_name(self, name: str) -> None:
        self.session.set_user_name(name)

    def subscribe(self) -> AsyncGenerator[SessionEvent, None]:
        return self.session.subscribe()

    async def send(
        self,
        content: str,
        attachments: Optional[Sequence[AttachmentRef]] = None,
        message_id: Optional[str] = None,
    ) -> str:
        """Send a message (fire-and-forget). Returns its id."""
        return await self.session.send(content, attachments=attachments, message_id=message_id)

    async def upload_svg(self, data: bytes, filename: str, message_id: str) -> AttachmentRef:
        """Upload one SVG for ``message_id``; returns once the file is reachable."""
        return await self.uploader.upload(
            data, filename,
            room=self.session.room,
            author=self.session.user_name,
            message_id=message_id,
        )

    async def send_svgs(
        self,
        files: Sequence[tuple[str, bytes]],
        content: str = "",
        message_id: Optional[str] = None,
    ) -> str:
        """Upload ``(filename, data)`` pairs concurrently, then send one message carrying them.

        Nothing is sent if any upload fails; the error propagates.
        """
        message_id = message_id or str(uuid.uuid4())
        attachments = await asyncio.gather(
            *(self.upload_svg(data, filename, message_id) for filename, data in files)
        )
        return await self.send(content, attachments=attachments, message_id=message_id)

    async def send_drawing(
        self,
        strokes: Sequence[Stroke],
        width: float,
        height: float,
        content: str = "",
    ) -> str:
        """Export strokes to SVG, upload it and send it as a message."""
        message_id = str(uuid.uuid4())
        svg = export_svg(strokes, width, height)
        filename = f"drawing-{message_id[:8]}.svg"
        return await self.send_svgs([(filename, svg.encode("utf-8"))], content, message_id)
