from datetime import datetime
from typing import Optional
from uuid import uuid4
from enum import Enum

from pydantic import BaseModel, Field

from dota_cup.models.bracket_model import utcnow


class FriendshipStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    BLOCKED = "blocked"


class Friendship(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    requester_id: str
    addressee_id: str
    status: FriendshipStatus = FriendshipStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True
        use_enum_values = True

    def involves(self, user_id: str) -> bool:
        return user_id in (self.requester_id, self.addressee_id)

    def other(self, user_id: str) -> Optional[str]:
        if user_id == self.requester_id:
            return self.addressee_id
        if user_id == self.addressee_id:
            return self.requester_id
        return None


class FriendView(BaseModel):
    """A friend as shown to the current user."""
    friendship_id: str
    user_id: str
    username: str
    steam_id: Optional[str] = None
    avatar: Optional[str] = None
    status: FriendshipStatus
    since: datetime

    class Config:
        use_enum_values = True
