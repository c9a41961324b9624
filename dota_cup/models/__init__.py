# Import all models here so they can be used as dota_cup.models.X
from .bracket_model import (
    BracketModel,
    BracketPlayer,
    BracketTeam,
    GameModel,
    LobbyModel,
    MatchModel,
    MatchStatus,
    SeriesType,
)
from .tournament_model import (
    MatchRules,
    RegisteredTeam,
    SeedingStrategy,
    TournamentConfig,
    TournamentRules,
    TournamentSchedule,
    TournamentStatus,
)
from .user_model import PublicUser, SteamConnection, UserModel, UserRole
from .team_model import InviteStatus, TeamInvite, TeamMember, TeamModel
from .friend_model import FriendView, Friendship, FriendshipStatus
from .player_model import PlayerVerification, SteamProfile
