"""
Envelope encoding, decoding and classification.

Frames are decoded into the loose ``WireEnvelope`` first, then classified
into one of three typed events so reconciliation never inspects optional
wire fields directly:

- ``MessageEvent``  a single message (add / update / init / unknown kinds)
- ``HistoryEvent``  the ``all`` bulk history snapshot
- ``ControlEvent``  anything without ``id`` + ``user`` (heartbeats etc.)
"""

import time
import uuid
from typing import Callable, Optional, Sequence, Union

from pydantic import ValidationError

from hakushi_chat.errors import DecodeError
from hakushi_chat.models.envelope import WireEnvelope
from hakushi_chat.models.message import AttachmentRef, ChatMessage

DEFAULT_ROLE = "user"


class EnvelopeKind:
    ADD = "add"
    UPDATE = "update"
    INIT = "init"
    ALL = "all"
    UNKNOWN = "unknown"


class MessageEvent:
    __slots__ = ("kind", "message")

    def __init__(self, kind: str, message: ChatMessage):
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"MessageEvent(kind={self.kind!r}, id={self.message.id!r})"


class HistoryEvent:
    __slots__ = ("messages", "skipped")

    def __init__(self, messages: list[ChatMessage], skipped: int = 0):
        self.messages = messages
        self.skipped = skipped

    def __repr__(self) -> str:
        return f"HistoryEvent(messages={len(self.messages)}, skipped={self.skipped})"


class ControlEvent:
    __slots__ = ("kind",)

    def __init__(self, kind: str):
        self.kind = kind

    def __repr__(self) -> str:
        return f"ControlEvent(kind={self.kind!r})"


InboundEvent = Union[MessageEvent, HistoryEvent, ControlEvent]


def decode_envelope(frame: Union[str, bytes]) -> WireEnvelope:
    """Decode one text or binary frame. Raises DecodeError if it is not a JSON envelope."""
    try:
        return WireEnvelope.model_validate_json(frame)
    except ValidationError as e:
        raise DecodeError(f"Malformed envelope: {e.error_count()} error(s), first: {e.errors()[0]['msg']}")


def encode_envelope(envelope: WireEnvelope) -> str:
    """Serialize with absent fields omitted (never emitted as null)."""
    return envelope.model_dump_json(exclude_none=True)


def build_add_envelope(
    content: str,
    user: str,
    message_id: Optional[str] = None,
    attachments: Optional[Sequence[AttachmentRef]] = None,
    role: str = DEFAULT_ROLE,
    timestamp: Optional[float] = None,
) -> WireEnvelope:
    return WireEnvelope(
        type=EnvelopeKind.ADD,
        id=message_id or str(uuid.uuid4()),
        content=content,
        user=user,
        role=role,
        timestamp=timestamp if timestamp is not None else time.time(),
        svgs=list(attachments) if attachments else None,
    )


def to_message(envelope: WireEnvelope, now: Callable[[], float] = time.time) -> Optional[ChatMessage]:
    """Build a ChatMessage from an envelope carrying both id and user, else None."""
    if envelope.id is None or envelope.user is None:
        return None
    return ChatMessage(
        id=envelope.id,
        content=envelope.content if envelope.content is not None else "",
        author=envelope.user,
        role=envelope.role if envelope.role is not None else DEFAULT_ROLE,
        timestamp=envelope.timestamp if envelope.timestamp is not None else now(),
        attachments=tuple(envelope.svgs or ()),
    )


def classify(envelope: WireEnvelope, now: Callable[[], float] = time.time) -> InboundEvent:
    if envelope.kind == EnvelopeKind.ALL:
        messages: list[ChatMessage] = []
        skipped = 0
        for nested in envelope.messages or ():
            message = to_message(nested, now)
            if message is None:
                skipped += 1
            else:
                messages.append(message)
        return HistoryEvent(messages, skipped)

    message = to_message(envelope, now)
    if message is None:
        return ControlEvent(envelope.kind)
    return MessageEvent(envelope.kind, message)
