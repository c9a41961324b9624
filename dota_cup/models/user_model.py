from datetime import datetime
from typing import Optional, List
from uuid import uuid4
from enum import Enum

from pydantic import BaseModel, Field, EmailStr

from dota_cup.models.bracket_model import utcnow


class UserRole(str, Enum):
    PLAYER = "player"
    ORGANIZER = "organizer"
    ADMIN = "admin"


class SteamConnection(BaseModel):
    steam_id: str
    username: str
    avatar: Optional[str] = None
    profile_url: Optional[str] = None
    is_verified: bool = False
    rank_tier: Optional[int] = None
    rank_name: Optional[str] = None
    total_matches: Optional[int] = None
    connected_at: datetime = Field(default_factory=utcnow)


class UserModel(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    email: EmailStr
    username: str = Field(min_length=3, max_length=20)
    hashed_password: str
    role: UserRole = UserRole.PLAYER
    is_active: bool = True
    steam_connections: List[SteamConnection] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True
        use_enum_values = True

    @property
    def steam_connection(self) -> Optional[SteamConnection]:
        return self.steam_connections[0] if self.steam_connections else None

    @property
    def has_steam(self) -> bool:
        return bool(self.steam_connections)


class PublicUser(BaseModel):
    """User as returned by the API, without credentials."""
    id: str
    email: EmailStr
    username: str
    role: UserRole
    steam_connections: List[SteamConnection] = Field(default_factory=list)
    created_at: datetime

    class Config:
        from_attributes = True
        use_enum_values = True
