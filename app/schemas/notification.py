"""Notification inbox schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class NotificationOut(BaseModel):
    id: str
    message: str
    link: Optional[str] = None
    is_read: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class InboxOut(BaseModel):
    unread_count: int
    notifications: List[NotificationOut]

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReadOut(BaseModel):
    ok: bool = True
    link: Optional[str] = None
    updated: int = 0
