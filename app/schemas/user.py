"""User Pydantic schemas — marketplace profiles."""

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.models.user import UserRole


class UserOut(BaseModel):
    """Public profile of a founder or investor."""
    id: str
    username: str
    name: str
    role: UserRole
    avatar: Optional[str] = None
    bio: Optional[str] = None
    company: Optional[str] = None
    title: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class MeOut(UserOut):
    """The signed-in user, with the marketplace profile their actions are keyed on."""
    email: str
    startup_id: Optional[str] = None
    investor_id: Optional[str] = None
