import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query
from pydantic import BaseModel, Field

from dota_cup.bracket.errors import BracketError, BracketLocked, MatchNotFound
from dota_cup.models.bracket_model import BracketModel, LobbyModel, MatchModel, MatchStatus
from dota_cup.models.tournament_model import (
    PrizePool,
    RegisteredTeam,
    TournamentConfig,
    TournamentRules,
    TournamentSchedule,
    TournamentStatus,
)
from dota_cup.routes.dependencies import (
    get_bracket_service,
    get_current_user_id,
    get_tournament_if_organizer,
    get_tournament_or_404,
    get_tournament_service,
)
from dota_cup.services.bracket_service import BracketService
from dota_cup.services.tournament_service import TournamentService

logger = logging.getLogger(__name__)

router = APIRouter()


# --- DTOs (Data Transfer Objects) for request bodies ---

class TournamentCreationRequest(BaseModel):
    name: str = Field(..., min_length=3, max_length=100, description="Name of the tournament")
    description: str = Field("", max_length=2000, description="Free text shown on the tournament page")
    max_teams: int = Field(16, ge=2, le=128, description="Registration closes once this many teams joined")
    rules: Optional[TournamentRules] = Field(None, description="Rank limit, match count and series formats")
    registration_start: Optional[datetime] = None
    registration_end: Optional[datetime] = None
    tournament_start: Optional[datetime] = None
    prize_pool: Optional[PrizePool] = None


class RegisterTeamRequest(BaseModel):
    """Payload for registering a team into a tournament."""
    team_id: str = Field(..., description="ID of the team; the caller must be its captain.")


class BracketGenerationRequest(BaseModel):
    manual_order: Optional[List[str]] = Field(
        None, description="Team IDs in seed order, required when the tournament uses manual seeding."
    )


class MatchResultPayload(BaseModel):
    winner_team_id: Optional[str] = Field(None, description="ID of the team that won the series")
    status: Optional[MatchStatus] = Field(
        None, description="New match status; defaults to completed with a winner, scheduled without."
    )


class GameResultPayload(BaseModel):
    winner_team_id: str = Field(..., description="ID of the team that won the game")


def bracket_http_error(e: BracketError) -> HTTPException:
    if isinstance(e, MatchNotFound):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, BracketLocked):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


def _match_or_404(bracket_service: BracketService, tournament_id: str, match_id: str) -> MatchModel:
    match = bracket_service.get_match(tournament_id, match_id)
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")
    return match


# --- Tournament Endpoints ---

@router.get("", response_model=List[TournamentConfig], summary="List tournaments")
async def list_tournaments(
    status: Optional[TournamentStatus] = Query(None, description="Only tournaments in this status"),
    service: TournamentService = Depends(get_tournament_service),
):
    """
    Fetches all tournaments, newest first. This endpoint is publicly accessible.
    """
    return service.get_all_tournaments(status.value if status else None)


@router.get("/{tournament_id}", response_model=TournamentConfig, summary="Get Specific Tournament Details")
async def get_specific_tournament(tournament: TournamentConfig = Depends(get_tournament_or_404)):
    return tournament


@router.post("", response_model=TournamentConfig, status_code=201, summary="Create New Tournament")
async def create_tournament(
    tournament_data: TournamentCreationRequest,
    current_user_id: str = Depends(get_current_user_id),
    service: TournamentService = Depends(get_tournament_service),
):
    """
    Creates a new tournament organized by the authenticated user and opens
    registration. The organizer needs a linked Steam account.

    - **name**: Name of the tournament (must be 3-100 characters).
    - **max_teams**: Team cap, 16 by default.
    - **rules**: Series formats default to bo1, with a bo3 final.
    - **tournament_start** (optional): Check-in opens 30 minutes before it.
    """
    try:
        tournament_config = TournamentConfig(
            name=tournament_data.name,
            description=tournament_data.description,
            organizer_id=current_user_id,
            max_teams=tournament_data.max_teams,
            rules=tournament_data.rules or TournamentRules(),
            schedule=TournamentSchedule(
                registration_start=tournament_data.registration_start,
                registration_end=tournament_data.registration_end,
                tournament_start=tournament_data.tournament_start,
            ),
            prize_pool=tournament_data.prize_pool,
        )
    except ValueError as e:  # Pydantic validation error
        raise HTTPException(status_code=422, detail=str(e))

    try:
        return service.create_tournament(tournament_config)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{tournament_id}/register", response_model=TournamentConfig, summary="Register a team")
async def register_team(
    payload: RegisterTeamRequest,
    tournament: TournamentConfig = Depends(get_tournament_or_404),
    current_user_id: str = Depends(get_current_user_id),
    service: TournamentService = Depends(get_tournament_service),
):
    """
    Registers the caller's team. Registration must be open and the tournament
    not full; the team needs at least two members, all with Steam linked and
    within the rank limit.
    """
    try:
        return service.register_team(tournament.id, payload.team_id, current_user_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{tournament_id}/teams", response_model=List[RegisteredTeam], summary="List registered teams")
async def list_teams(tournament: TournamentConfig = Depends(get_tournament_or_404)):
    return tournament.teams


@router.post("/{tournament_id}/start-registration", response_model=TournamentConfig, summary="Open registration")
async def start_registration(
    tournament: TournamentConfig = Depends(get_tournament_if_organizer),
    current_user_id: str = Depends(get_current_user_id),
    service: TournamentService = Depends(get_tournament_service),
):
    try:
        return service.open_registration(tournament.id, current_user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{tournament_id}/cancel", response_model=TournamentConfig, summary="Cancel the tournament")
async def cancel_tournament(
    tournament: TournamentConfig = Depends(get_tournament_if_organizer),
    current_user_id: str = Depends(get_current_user_id),
    service: TournamentService = Depends(get_tournament_service),
):
    try:
        return service.cancel_tournament(tournament.id, current_user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# --- Bracket Endpoints ---

@router.post("/{tournament_id}/generate-bracket", response_model=BracketModel, summary="Generate bracket for the tournament")
async def generate_tournament_bracket(
    payload: Optional[BracketGenerationRequest] = Body(None),
    current_tournament: TournamentConfig = Depends(get_tournament_if_organizer),
    bracket_service: BracketService = Depends(get_bracket_service),
):
    """
    Generates the single-elimination bracket from the registered teams.
    Only the organizer can do this, and only while registration is open.
    The tournament moves to "ongoing".
    """
    manual_order = payload.manual_order if payload else None
    try:
        return bracket_service.create_bracket_for_tournament(current_tournament.id, manual_order=manual_order)
    except BracketError as e:
        raise bracket_http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{tournament_id}/regenerate-bracket", response_model=BracketModel, summary="Regenerate the bracket")
async def regenerate_tournament_bracket(
    payload: Optional[BracketGenerationRequest] = Body(None),
    current_tournament: TournamentConfig = Depends(get_tournament_if_organizer),
    bracket_service: BracketService = Depends(get_bracket_service),
):
    """
    Replaces the bracket with a freshly seeded one. Refused with 409 once any
    match has started.
    """
    manual_order = payload.manual_order if payload else None
    try:
        return bracket_service.regenerate_bracket(current_tournament.id, manual_order=manual_order)
    except BracketError as e:
        raise bracket_http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{tournament_id}/bracket", response_model=BracketModel, summary="Get the tournament bracket")
async def get_bracket(
    tournament: TournamentConfig = Depends(get_tournament_or_404),
    bracket_service: BracketService = Depends(get_bracket_service),
):
    bracket = bracket_service.get_bracket_by_tournament_id(tournament.id)
    if not bracket:
        raise HTTPException(status_code=404, detail="Bracket has not been generated yet")
    return bracket


@router.get("/{tournament_id}/matches/{match_id}", response_model=MatchModel, summary="Get a match")
async def get_match(
    match_id: str = Path(..., description="The ID of the match"),
    tournament: TournamentConfig = Depends(get_tournament_or_404),
    bracket_service: BracketService = Depends(get_bracket_service),
):
    return _match_or_404(bracket_service, tournament.id, match_id)


@router.put("/{tournament_id}/matches/{match_id}", response_model=MatchModel, summary="Record the result of a match")
async def record_match_result_endpoint(
    payload: MatchResultPayload,
    match_id: str = Path(..., description="The ID of the match"),
    tournament: TournamentConfig = Depends(get_tournament_or_404),
    current_user_id: str = Depends(get_current_user_id),
    bracket_service: BracketService = Depends(get_bracket_service),
):
    """
    Records a match result or status change. The organizer and the captains
    of the two seated teams may report.

    - **winner_team_id**: must be one of the two seated teams.
    - **status**: scheduled, ongoing, completed or cancelled.

    The winner is copied into its slot of the next-round match.
    """
    match = _match_or_404(bracket_service, tournament.id, match_id)
    if not bracket_service.can_report_result(tournament, match, current_user_id):
        raise HTTPException(status_code=403, detail="User is not authorized to record results for this match")
    try:
        return bracket_service.record_match_result(
            tournament_id=tournament.id,
            match_id=match_id,
            winner_team_id=payload.winner_team_id,
            status=payload.status,
        )
    except BracketError as e:
        raise bracket_http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{tournament_id}/matches/{match_id}/games", response_model=MatchModel, summary="Record a game of a series")
async def record_game_endpoint(
    payload: GameResultPayload,
    match_id: str = Path(..., description="The ID of the match"),
    tournament: TournamentConfig = Depends(get_tournament_or_404),
    current_user_id: str = Depends(get_current_user_id),
    bracket_service: BracketService = Depends(get_bracket_service),
):
    """
    Adds one finished game. The match completes once a team has won enough
    games for its series format.
    """
    match = _match_or_404(bracket_service, tournament.id, match_id)
    if not bracket_service.can_report_result(tournament, match, current_user_id):
        raise HTTPException(status_code=403, detail="User is not authorized to record results for this match")
    try:
        return bracket_service.record_game(tournament.id, match_id, payload.winner_team_id)
    except BracketError as e:
        raise bracket_http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{tournament_id}/matches/{match_id}/advance-bye", response_model=MatchModel, summary="Advance a bye")
async def advance_bye_endpoint(
    match_id: str = Path(..., description="The ID of the match"),
    current_tournament: TournamentConfig = Depends(get_tournament_if_organizer),
    bracket_service: BracketService = Depends(get_bracket_service),
):
    """
    Moves the only team of a bye match into the next round and closes the
    bye as cancelled. Organizer only.
    """
    try:
        return bracket_service.advance_bye(current_tournament.id, match_id)
    except BracketError as e:
        raise bracket_http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{tournament_id}/matches/{match_id}/create-lobby", response_model=LobbyModel, summary="Create a Dota 2 lobby")
async def create_lobby_endpoint(
    match_id: str = Path(..., description="The ID of the match"),
    tournament: TournamentConfig = Depends(get_tournament_or_404),
    current_user_id: str = Depends(get_current_user_id),
    bracket_service: BracketService = Depends(get_bracket_service),
):
    """
    Returns lobby settings (name, password, game mode) for a captain of
    either team and marks the match as ongoing.
    """
    try:
        return bracket_service.create_lobby(tournament.id, match_id, current_user_id)
    except BracketError as e:
        raise bracket_http_error(e)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
