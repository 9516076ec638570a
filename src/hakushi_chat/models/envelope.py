"""
Wire envelope: the JSON object exchanged with the chat party.

Every field is optional and unknown keys are ignored. ``None`` means the
key was absent (or null) on the wire, which is distinct from ``""`` / ``0``.
"""

from typing import Optional

from pydantic import BaseModel

from hakushi_chat.models.message import AttachmentRef


class WireEnvelope(BaseModel):
    type: Optional[str] = None       # "add" | "update" | "init" | "all"
    id: Optional[str] = None
    content: Optional[str] = None
    user: Optional[str] = None       # author display name
    role: Optional[str] = None
    timestamp: Optional[float] = None
    svgs: Optional[list[AttachmentRef]] = None
    messages: Optional[list["WireEnvelope"]] = None  # history payload of "all"

    @property
    def kind(self) -> str:
        return self.type or "unknown"
