from typing import Optional

from pydantic import BaseModel


class SteamProfile(BaseModel):
    steam_id: str
    username: str
    avatar: Optional[str] = None  # full size
    avatar_small: Optional[str] = None
    avatar_medium: Optional[str] = None
    profile_url: Optional[str] = None


class PlayerVerification(BaseModel):
    steam_id: str
    account_id: str
    profile: Optional[SteamProfile] = None
    rank_tier: Optional[int] = None
    rank_name: str = "Unranked"
    medal: str = "Unranked"
    stars: int = 0
    total_matches: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    has_rank_data: bool = False
    meets_rank: bool = False
    meets_matches: bool = False
    is_eligible: bool = False
    message: Optional[str] = None
