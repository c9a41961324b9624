from datetime import datetime, timedelta
from typing import Optional, List, Literal
from uuid import uuid4
from enum import Enum

from pydantic import BaseModel, Field, validator

from dota_cup.models.bracket_model import utcnow


class TeamMember(BaseModel):
    user_id: str
    username: str
    steam_id: Optional[str] = None
    rank_tier: Optional[int] = None
    total_matches: Optional[int] = None
    is_captain: bool = False
    joined_at: datetime = Field(default_factory=utcnow)


class TeamModel(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = Field(min_length=3, max_length=20)
    tag: str = Field(min_length=2, max_length=5)
    captain_id: str  # References User.id
    members: List[TeamMember] = Field(default_factory=list)
    status: Literal["active", "disbanded"] = "active"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True

    @validator('name')
    def strip_name(cls, v):
        return v.strip()

    @validator('tag')
    def upper_tag(cls, v):
        return v.strip().upper()

    def get_member(self, user_id: str) -> Optional[TeamMember]:
        for member in self.members:
            if member.user_id == user_id:
                return member
        return None

    def is_member(self, user_id: str) -> bool:
        return self.get_member(user_id) is not None


class InviteStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class TeamInvite(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    team_id: str
    team_name: str
    team_tag: str
    invited_user_id: str
    invited_by_user_id: str
    status: InviteStatus = InviteStatus.PENDING
    message: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime
    responded_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        use_enum_values = True

    @classmethod
    def expiring_in(cls, days: int, **data) -> "TeamInvite":
        return cls(expires_at=utcnow() + timedelta(days=days), **data)

    @property
    def is_expired(self) -> bool:
        return utcnow() > self.expires_at
