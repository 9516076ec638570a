"""
hakushi-chat — Hakushi drawing chat client for Python.

WebSocket + REST client for Hakushi chat rooms: live message log,
SVG attachment upload, and a `hakushi` CLI.
"""

from hakushi_chat.client import HakushiChat
from hakushi_chat.session import SessionController, SessionEvent, SessionEventType, SessionStatus
from hakushi_chat.message_log import MessageLog, UpdatePolicy
from hakushi_chat.attachments import AttachmentUploader, resolve_url
from hakushi_chat.models.message import AttachmentRef, ChatMessage
from hakushi_chat.settings import Settings, SettingsStore
from hakushi_chat.errors import (
    HakushiError,
    InvalidAddressError,
    TransportReceiveError,
    DecodeError,
    SendError,
    UploadFailedError,
    AttachmentNotReachableError,
)

__version__ = "0.1.0"
__all__ = [
    "HakushiChat",
    "SessionController",
    "SessionEvent",
    "SessionEventType",
    "SessionStatus",
    "MessageLog",
    "UpdatePolicy",
    "AttachmentUploader",
    "resolve_url",
    "AttachmentRef",
    "ChatMessage",
    "Settings",
    "SettingsStore",
    "HakushiError",
    "InvalidAddressError",
    "TransportReceiveError",
    "DecodeError",
    "SendError",
    "UploadFailedError",
    "AttachmentNotReachableError",
]
