from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path
from pydantic import BaseModel, Field

from dota_cup.models.friend_model import FriendView
from dota_cup.models.team_model import TeamModel
from dota_cup.routes.dependencies import (
    get_current_user_id,
    get_friends_service,
    get_team_service,
)
from dota_cup.services.friends_service import FriendsService
from dota_cup.services.team_service import TeamService

router = APIRouter()


class TeamCreationRequest(BaseModel):
    name: str = Field(..., min_length=3, max_length=20, description="Team name, unique")
    tag: str = Field(..., min_length=2, max_length=5, description="Short tag shown in the bracket, unique")


def _team_or_404(service: TeamService, team_id: str) -> TeamModel:
    team = service.get_team(team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    return team


@router.get("/my", response_model=List[TeamModel], summary="List the current user's teams")
async def my_teams(
    current_user_id: str = Depends(get_current_user_id),
    service: TeamService = Depends(get_team_service),
):
    return service.get_user_teams(current_user_id)


@router.post("", response_model=TeamModel, status_code=201, summary="Create a team")
async def create_team(
    payload: TeamCreationRequest,
    current_user_id: str = Depends(get_current_user_id),
    service: TeamService = Depends(get_team_service),
):
    """
    Creates a team with the current user as captain. The captain needs a
    linked Steam account.
    """
    try:
        return service.create_team(payload.name, payload.tag, current_user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{team_id}", response_model=TeamModel, summary="Get a team")
async def get_team(
    team_id: str = Path(..., description="The ID of the team"),
    service: TeamService = Depends(get_team_service),
):
    return _team_or_404(service, team_id)


@router.get("/{team_id}/inviteable-friends", response_model=List[FriendView], summary="Friends who can be invited")
async def inviteable_friends(
    team_id: str = Path(..., description="The ID of the team"),
    current_user_id: str = Depends(get_current_user_id),
    service: TeamService = Depends(get_team_service),
    friends_service: FriendsService = Depends(get_friends_service),
):
    team = _team_or_404(service, team_id)
    if team.captain_id != current_user_id:
        raise HTTPException(status_code=403, detail="Only the team captain can invite players")
    return friends_service.get_inviteable_friends(current_user_id, team)


@router.delete("/{team_id}", response_model=TeamModel, summary="Disband a team")
async def delete_team(
    team_id: str = Path(..., description="The ID of the team"),
    current_user_id: str = Depends(get_current_user_id),
    service: TeamService = Depends(get_team_service),
):
    _team_or_404(service, team_id)
    try:
        return service.delete_team(team_id, current_user_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{team_id}/members/{user_id}", response_model=TeamModel, summary="Remove a team member")
async def remove_member(
    team_id: str = Path(..., description="The ID of the team"),
    user_id: str = Path(..., description="The ID of the member to remove"),
    current_user_id: str = Depends(get_current_user_id),
    service: TeamService = Depends(get_team_service),
):
    _team_or_404(service, team_id)
    try:
        return service.remove_member(team_id, user_id, current_user_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
