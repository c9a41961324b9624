from datetime import datetime, timedelta
from typing import Optional, List, Literal
from uuid import uuid4
from enum import Enum

from pydantic import BaseModel, Field, validator

from dota_cup.models.bracket_model import BracketTeam, SeriesType, utcnow

CHECKIN_WINDOW = timedelta(minutes=30)


class TournamentStatus(str, Enum):
    DRAFT = "draft"
    REGISTRATION = "registration"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SeedingStrategy(str, Enum):
    RANDOM = "random"
    RANKED = "ranked"
    MANUAL = "manual"


class MatchRules(BaseModel):
    series_type: SeriesType = SeriesType.BO1
    final_series_type: SeriesType = SeriesType.BO3
    allow_ties: bool = False
    seeding: SeedingStrategy = SeedingStrategy.RANDOM

    class Config:
        use_enum_values = True


class TournamentRules(BaseModel):
    max_rank_tier: int = Field(default=65, ge=11, le=80)
    min_matches: int = Field(default=100, ge=0)
    format: Literal["single-elimination"] = "single-elimination"
    match_rules: MatchRules = Field(default_factory=MatchRules)


class TournamentSchedule(BaseModel):
    registration_start: Optional[datetime] = None
    registration_end: Optional[datetime] = None
    tournament_start: Optional[datetime] = None
    checkin_time: Optional[datetime] = None

    @validator('tournament_start')
    def start_after_registration(cls, v, values, **kwargs):
        end = values.get('registration_end')
        if v and end and end > v:
            raise ValueError('Registration must end before the tournament starts')
        return v

    @validator('checkin_time', always=True)
    def default_checkin(cls, v, values, **kwargs):
        if v is None and values.get('tournament_start'):
            return values['tournament_start'] - CHECKIN_WINDOW
        return v


class PrizeShare(BaseModel):
    place: int = Field(ge=1)
    amount: float = Field(ge=0)
    currency: str = "USD"


class PrizePool(BaseModel):
    total: float = Field(default=0, ge=0)
    distribution: List[PrizeShare] = Field(default_factory=list)


class RegisteredTeam(BracketTeam):
    joined_at: datetime = Field(default_factory=utcnow)
    status: Literal["registered", "checked-in", "disqualified"] = "registered"


class TournamentConfig(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = Field(min_length=3, max_length=100)
    description: str = ""
    organizer_id: str  # References User.id
    max_teams: int = Field(default=16, ge=2, le=128)
    status: TournamentStatus = TournamentStatus.DRAFT
    rules: TournamentRules = Field(default_factory=TournamentRules)
    schedule: TournamentSchedule = Field(default_factory=TournamentSchedule)
    prize_pool: Optional[PrizePool] = None
    teams: List[RegisteredTeam] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True
        use_enum_values = True

    @property
    def current_teams(self) -> int:
        return len(self.teams)

    @property
    def is_full(self) -> bool:
        return len(self.teams) >= self.max_teams

    def get_team(self, team_id: str) -> Optional[RegisteredTeam]:
        for team in self.teams:
            if team.id == team_id:
                return team
        return None
