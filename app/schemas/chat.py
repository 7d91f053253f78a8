"""Pitch-room chat frame schemas."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatMessageIn(_CamelModel):
    """Payload of an inbound ``message`` frame."""
    sender_id: str
    content: str
    room_id: Optional[str] = None


class InboundFrame(_CamelModel):
    """``{"type": "message", "data": {...}}`` sent by a client."""
    type: Literal["message"]
    data: ChatMessageIn


class ChatMessageOut(_CamelModel):
    """A persisted message as broadcast to the room."""
    id: str
    sender_id: str
    sender_name: str
    sender_avatar: Optional[str] = None
    sender_role: str
    content: str
    room_id: str
    timestamp: str
