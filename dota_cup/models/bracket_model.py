from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4
from enum import Enum

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MatchStatus(str, Enum):
    SCHEDULED = "scheduled"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SeriesType(str, Enum):
    BO1 = "bo1"
    BO2 = "bo2"
    BO3 = "bo3"
    BO5 = "bo5"


MAX_GAMES = {"bo1": 1, "bo2": 2, "bo3": 3, "bo5": 5}
WINS_NEEDED = {"bo1": 1, "bo2": 2, "bo3": 2, "bo5": 3}


def max_games(series_type: str) -> int:
    return MAX_GAMES[SeriesType(series_type).value]


def wins_needed(series_type: str) -> int:
    return WINS_NEEDED[SeriesType(series_type).value]


class BracketPlayer(BaseModel):
    steam_id: str
    username: str
    is_captain: bool = False


class BracketTeam(BaseModel):
    """Snapshot of a team as it was seated into the bracket."""
    id: str
    name: str
    tag: str
    players: List[BracketPlayer] = Field(default_factory=list)
    rating: Optional[float] = None  # mean rank tier, used by ranked seeding

    @property
    def captain_steam_id(self) -> Optional[str]:
        for player in self.players:
            if player.is_captain:
                return player.steam_id
        return None


class GameModel(BaseModel):
    game_number: int
    winner_team_id: Optional[str] = None
    status: MatchStatus = MatchStatus.COMPLETED
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    class Config:
        use_enum_values = True


class LobbyModel(BaseModel):
    lobby_name: str
    password: str
    game_mode: str = "Captains Mode"
    server_region: str = "Europe West"
    series_type: SeriesType
    connect_url: str = "steam://run/570"
    instructions: List[str] = Field(default_factory=list)
    created_by: str
    created_at: datetime = Field(default_factory=utcnow)

    class Config:
        use_enum_values = True


class MatchModel(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    tournament_id: str
    round_number: int
    position: int

    team_a: Optional[BracketTeam] = None
    team_b: Optional[BracketTeam] = None

    winner_team_id: Optional[str] = None
    status: MatchStatus = MatchStatus.SCHEDULED
    series_type: SeriesType = SeriesType.BO1

    next_match_id: Optional[str] = None
    games: List[GameModel] = Field(default_factory=list)
    lobby: Optional[LobbyModel] = None

    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True
        use_enum_values = True

    @property
    def seated_team_ids(self) -> List[str]:
        return [team.id for team in (self.team_a, self.team_b) if team is not None]

    @property
    def is_ready(self) -> bool:
        return self.team_a is not None and self.team_b is not None

    @property
    def is_bye(self) -> bool:
        return len(self.seated_team_ids) == 1

    def team_by_id(self, team_id: str) -> Optional[BracketTeam]:
        for team in (self.team_a, self.team_b):
            if team is not None and team.id == team_id:
                return team
        return None


class BracketModel(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    tournament_id: str
    rounds: List[int] = Field(default_factory=list)
    matches: List[MatchModel] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Config:
        from_attributes = True
        use_enum_values = True

    def get_match(self, match_id: str) -> Optional[MatchModel]:
        for match in self.matches:
            if match.id == match_id:
                return match
        return None

    def matches_in_round(self, round_number: int) -> List[MatchModel]:
        return sorted(
            (m for m in self.matches if m.round_number == round_number),
            key=lambda m: m.position,
        )

    def match_at(self, round_number: int, position: int) -> Optional[MatchModel]:
        for match in self.matches:
            if match.round_number == round_number and match.position == position:
                return match
        return None

    @property
    def final_match(self) -> Optional[MatchModel]:
        if not self.rounds:
            return None
        return self.match_at(self.rounds[-1], 1)

    @property
    def champion_id(self) -> Optional[str]:
        final = self.final_match
        if final is None or final.status != MatchStatus.COMPLETED:
            return None
        return final.winner_team_id
