"""
Session controller — connection lifecycle and message reconciliation.

State machine::

    disconnected --connect()--> connecting --first frame--> connected
         ^                          |                          |
         +---- receive failure / disconnect() -----------------+

The receive loop is an asyncio task on the caller's event loop, which is the
single consumer context: every state and log mutation happens there, and
listeners are invoked there. ``disconnect()`` cancels the task at its
pending ``receive()``.
"""

import asyncio
import logging
import time
import uuid
from typing import Any, AsyncGenerator, Callable, Optional, Sequence

import httpx

from hakushi_chat.errors import DecodeError, InvalidAddressError, SendError, TransportReceiveError
from hakushi_chat.message_log import MessageLog, UpdatePolicy
from hakushi_chat.models.message import AttachmentRef, ChatMessage
from hakushi_chat.settings import DEFAULT_USER_NAME, DEFAULT_WS_URL, SettingsStore, new_room_id
from hakushi_chat.transport.envelope import (
    EnvelopeKind,
    HistoryEvent,
    InboundEvent,
    MessageEvent,
    build_add_envelope,
    classify,
    decode_envelope,
    encode_envelope,
)
from hakushi_chat.transport.websocket import AiohttpTransport, Frame, Transport

PARTY_PATH = "/parties/chat/"
_ROOM_FORBIDDEN = set("/?#")

logger = logging.getLogger(__name__)


class SessionStatus:
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class SessionEventType:
    STATE = "state"        # data: new SessionStatus value
    ERROR = "error"        # data: new last_error (may be None)
    MESSAGES = "messages"  # data: tuple of messages added or replaced
    ROOM = "room"          # data: new room id; the log was cleared


class SessionEvent:
    __slots__ = ("type", "data")

    def __init__(self, type: str, data: Any):
        self.type = type
        self.data = data

    def __repr__(self) -> str:
        return f"SessionEvent(type={self.type!r}, data={self.data!r})"


Listener = Callable[[SessionEvent], None]


class SessionController:
    def __init__(
        self,
        room: str,
        user_name: str = DEFAULT_USER_NAME,
        ws_url: str = DEFAULT_WS_URL,
        transport_factory: Callable[[], Transport] = AiohttpTransport,
        settings_store: Optional[SettingsStore] = None,
        update_policy: str = UpdatePolicy.IGNORE,
        clock: Callable[[], float] = time.time,
    ):
        self._room = room
        self._user_name = user_name
        self._ws_url = ws_url
        self._transport_factory = transport_factory
        self._settings_store = settings_store
        self._update_policy = update_policy
        self._clock = clock

        self._log = MessageLog()
        self._state = SessionStatus.DISCONNECTED
        self._last_error: Optional[str] = None
        self._transport: Optional[Transport] = None
        self._task: Optional[asyncio.Task[None]] = None
        self._listeners: list[Listener] = []

    # -- observable state -------------------------------------------------

    @property
    def state(self) -> str:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == SessionStatus.CONNECTED

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def room(self) -> str:
        return self._room

    @property
    def user_name(self) -> str:
        return self._user_name

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return self._log.snapshot()

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register a state-change listener. Returns a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
        return remove

    async def subscribe(self) -> AsyncGenerator[SessionEvent, None]:
        """Yield every SessionEvent until the consumer stops iterating."""
        queue: asyncio.Queue[SessionEvent] = asyncio.Queue()
        remove = self.add_listener(queue.put_nowait)
        try:
            while True:
                yield await queue.get()
        finally:
            remove()

    async def wait_connected(self, timeout: float = 15.0) -> bool:
        """Wait until the session is connected or drops back to disconnected."""
        if self._state != SessionStatus.CONNECTING:
            return self.is_connected
        settled = asyncio.Event()

        def on_event(event: SessionEvent) -> None:
            if event.type == SessionEventType.STATE and event.data != SessionStatus.CONNECTING:
                settled.set()

        remove = self.add_listener(on_event)
        try:
            await asyncio.wait_for(settled.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            pass
        finally:
            remove()
        return self.is_connected

    def _emit(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Session listener failed on %r", event)

    def _set_state(self, state: str) -> None:
        if state != self._state:
            self._state = state
            self._emit(SessionEvent(SessionEventType.STATE, state))

    def _set_error(self, error: Optional[str]) -> None:
        if error != self._last_error:
            self._last_error = error
            self._emit(SessionEvent(SessionEventType.ERROR, error))

    # -- lifecycle --------------------------------------------------------

    def session_url(self) -> str:
        """WebSocket address for the current room. Raises InvalidAddressError."""
        room = self._room
        if not room or any(c.isspace() or c in _ROOM_FORBIDDEN for c in room):
            raise InvalidAddressError(f"Invalid room id: {room!r}", details={"room": room})
        try:
            base = httpx.URL(self._ws_url)
        except httpx.InvalidURL as e:
            raise InvalidAddressError(f"Invalid WebSocket URL {self._ws_url!r}: {e}")
        if base.scheme not in ("ws", "wss") or not base.host:
            raise InvalidAddressError(f"Invalid WebSocket URL: {self._ws_url!r}")
        return f"{self._ws_url.rstrip('/')}{PARTY_PATH}{room}"

    async def connect(self) -> None:
        """Open a session for the current room and start receiving.

        No-op unless disconnected. The state becomes ``connected`` only once
        the first frame arrives.
        """
        if self._state != SessionStatus.DISCONNECTED:
            logger.debug("connect() ignored while %s", self._state)
            return
        try:
            url = self.session_url()
        except InvalidAddressError as e:
            self._set_error(str(e))
            raise

        logger.info("Connecting to %s", url)
        transport = self._transport_factory()
        self._transport = transport
        self._set_state(SessionStatus.CONNECTING)
        self._task = asyncio.create_task(self._receive_loop(transport, url))

    async def disconnect(self) -> None:
        """Stop the session. Idempotent; keeps ``last_error``."""
        task, transport = self._task, self._transport
        self._task = None
        self._transport = None
        self._set_state(SessionStatus.DISCONNECTED)
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        if transport is not None:
            await transport.close()
            logger.info("Disconnected from room %s", self._room)

    async def set_room(self, room: str) -> None:
        """Switch rooms: clear the log and error, persist, then reconnect from scratch."""
        self._log.clear()
        self._set_error(None)
        self._room = room
        self._emit(SessionEvent(SessionEventType.ROOM, room))
        if self._settings_store is not None:
            self._settings_store.update(room=room)
        await self.disconnect()
        await self.connect()

    async def create_new_room(self) -> str:
        room = new_room_id()
        await self.set_room(room)
        return room

    def set_user_name(self, name: str) -> None:
        self._user_name = name
        if self._settings_store is not None:
            self._settings_store.update(user_name=name)

    async def _receive_loop(self, transport: Transport, url: str) -> None:
        task = asyncio.current_task()
        try:
            await transport.open(url)
            while True:
                frame = await transport.receive()
                if self._task is not task:
                    return
                if self._state != SessionStatus.CONNECTED:
                    logger.info("Connected to room %s", self._room)
                    self._set_state(SessionStatus.CONNECTED)
                    self._set_error(None)
                self._handle_frame(frame)
        except asyncio.CancelledError:
            if self._task is task:
                logger.info("Receive loop for room %s cancelled", self._room)
                self._task = None
                self._transport = None
                self._set_state(SessionStatus.DISCONNECTED)
                await transport.close()
            raise
        except TransportReceiveError as e:
            await transport.close()
            if self._task is not task:
                return
            logger.warning("Connection to room %s lost: %s", self._room, e)
            self._task = None
            self._transport = None
            self._set_error(f"Disconnected: {e}")
            self._set_state(SessionStatus.DISCONNECTED)

    # -- inbound ----------------------------------------------------------

    def _handle_frame(self, frame: Frame) -> None:
        logger.debug("Frame received: %.100r", frame)
        try:
            envelope = decode_envelope(frame)
        except DecodeError as e:
            logger.warning("Dropping malformed frame: %s", e)
            return
        self._reconcile(classify(envelope, self._clock))

    def _reconcile(self, event: InboundEvent) -> None:
        if isinstance(event, HistoryEvent):
            changed = self._log.merge_all(event.messages)
            logger.debug("History: %d messages, %d new, %d skipped",
                         len(event.messages), len(changed), event.skipped)
        elif isinstance(event, MessageEvent):
            changed = self._apply_message(event)
        else:
            logger.debug("Control frame ignored: type=%s", event.kind)
            return
        if changed:
            self._emit(SessionEvent(SessionEventType.MESSAGES, tuple(changed)))

    def _apply_message(self, event: MessageEvent) -> list[ChatMessage]:
        message = event.message
        if event.kind == EnvelopeKind.UPDATE and message.id in self._log:
            if self._update_policy == UpdatePolicy.REPLACE and self._log.replace(message):
                return [message]
            logger.debug("Edit of %s ignored (policy=%s)", message.id, self._update_policy)
            return []
        return [message] if self._log.merge(message) else []

    # -- outbound ---------------------------------------------------------

    async def send(
        self,
        content: str,
        attachments: Optional[Sequence[AttachmentRef]] = None,
        message_id: Optional[str] = None,
    ) -> str:
        """Fire-and-forget an ``add`` envelope. Returns the message id.

        A failed write is recorded in ``last_error``; the connection state is
        left alone.
        """
        message_id = message_id or str(uuid.uuid4())
        envelope = build_add_envelope(
            content,
            self._user_name,
            message_id=message_id,
            attachments=attachments,
            timestamp=self._clock(),
        )
        transport = self._transport
        try:
            if transport is None:
                raise SendError("Not connected")
            await transport.send(encode_envelope(envelope))
        except SendError as e:
            logger.warning("Send of %s failed: %s", message_id, e)
            self._set_error(f"Send failed: {e}")
        return message_id
