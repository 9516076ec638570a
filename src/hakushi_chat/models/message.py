"""
Chat message models, the records held by the message log.
"""

from pydantic import BaseModel, ConfigDict


class AttachmentRef(BaseModel):
    """Uploaded SVG descriptor. Two refs are equal when their ids match."""

    model_config = ConfigDict(frozen=True)

    id: str
    filename: str
    url: str  # relative to the API base, or absolute

    def __eq__(self, other: object) -> bool:
        if isinstance(other, AttachmentRef):
            return self.id == other.id
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.id)


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    content: str = ""
    author: str
    role: str = "user"
    timestamp: float
    attachments: tuple[AttachmentRef, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.content and not self.attachments
