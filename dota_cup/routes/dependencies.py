from functools import lru_cache

from fastapi import Depends, HTTPException, Path, Request

from dota_cup.models.tournament_model import TournamentConfig
from dota_cup.models.user_model import UserModel
from dota_cup.services.bracket_service import BracketService
from dota_cup.services.friends_service import FriendsService
from dota_cup.services.opendota_service import OpenDotaService
from dota_cup.services.steam_service import SteamService
from dota_cup.services.team_invite_service import TeamInviteService
from dota_cup.services.team_service import TeamService
from dota_cup.services.tournament_service import TournamentService
from dota_cup.services.user_service import UserService

# Services are created on first use so importing the app does not touch the data directory.


@lru_cache()
def get_user_service() -> UserService:
    return UserService()


@lru_cache()
def get_team_service() -> TeamService:
    return TeamService(user_service=get_user_service())


@lru_cache()
def get_team_invite_service() -> TeamInviteService:
    return TeamInviteService(team_service=get_team_service(), user_service=get_user_service())


@lru_cache()
def get_friends_service() -> FriendsService:
    return FriendsService(user_service=get_user_service())


@lru_cache()
def get_tournament_service() -> TournamentService:
    return TournamentService(user_service=get_user_service(), team_service=get_team_service())


@lru_cache()
def get_bracket_service() -> BracketService:
    return BracketService(tournament_service=get_tournament_service(), user_service=get_user_service())


@lru_cache()
def get_opendota_service() -> OpenDotaService:
    return OpenDotaService()


@lru_cache()
def get_steam_service() -> SteamService:
    return SteamService(opendota_service=get_opendota_service())


# --- Authentication and Authorization Dependencies ---

async def get_current_user_id(request: Request) -> str:
    """
    Retrieves user_id from session.
    Raises HTTPException if user is not authenticated.
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user_id


async def get_current_user(
    current_user_id: str = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service),
) -> UserModel:
    user = service.get_user_by_id(current_user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


async def get_tournament_or_404(
    tournament_id: str = Path(..., description="The ID of the tournament"),
    service: TournamentService = Depends(get_tournament_service),
) -> TournamentConfig:
    tournament = service.get_tournament_by_id(tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


async def get_tournament_if_organizer(
    tournament: TournamentConfig = Depends(get_tournament_or_404),
    current_user_id: str = Depends(get_current_user_id),
) -> TournamentConfig:
    """
    Dependency to get a tournament and verify the current user organizes it.
    Raises HTTPException if tournament not found or user is not the organizer.
    """
    if tournament.organizer_id != current_user_id:
        raise HTTPException(status_code=403, detail="User is not authorized to perform this action on this tournament")
    return tournament
