from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path
from pydantic import BaseModel, Field

from dota_cup.models.team_model import TeamInvite
from dota_cup.routes.dependencies import get_current_user_id, get_team_invite_service
from dota_cup.services.team_invite_service import TeamInviteService

router = APIRouter()


class InviteRequest(BaseModel):
    """Payload for inviting a player to a team."""
    team_id: str = Field(..., description="Team the player is invited to")
    user_id: str = Field(..., description="User ID of the invited player")
    message: Optional[str] = Field(None, max_length=200, description="Optional note for the player")


def _handle(action):
    try:
        return action()
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/invite", response_model=TeamInvite, status_code=201, summary="Invite a player to a team")
async def invite_player(
    payload: InviteRequest,
    current_user_id: str = Depends(get_current_user_id),
    service: TeamInviteService = Depends(get_team_invite_service),
):
    """
    Only the captain can invite. The player needs a linked Steam account and
    the invite expires after a week.
    """
    return _handle(lambda: service.invite_player(payload.team_id, payload.user_id, current_user_id, payload.message))


@router.post("/{invite_id}/accept", response_model=TeamInvite, summary="Accept a team invite")
async def accept_invite(
    invite_id: str = Path(..., description="The ID of the invite"),
    current_user_id: str = Depends(get_current_user_id),
    service: TeamInviteService = Depends(get_team_invite_service),
):
    return _handle(lambda: service.accept_invite(invite_id, current_user_id))


@router.post("/{invite_id}/reject", response_model=TeamInvite, summary="Reject a team invite")
async def reject_invite(
    invite_id: str = Path(..., description="The ID of the invite"),
    current_user_id: str = Depends(get_current_user_id),
    service: TeamInviteService = Depends(get_team_invite_service),
):
    return _handle(lambda: service.reject_invite(invite_id, current_user_id))


@router.get("/my-invites", response_model=List[TeamInvite], summary="Pending invites for the current user")
async def my_invites(
    current_user_id: str = Depends(get_current_user_id),
    service: TeamInviteService = Depends(get_team_invite_service),
):
    return service.get_user_invites(current_user_id)


@router.get("/team/{team_id}", response_model=List[TeamInvite], summary="Invites sent by a team")
async def team_invites(
    team_id: str = Path(..., description="The ID of the team"),
    current_user_id: str = Depends(get_current_user_id),
    service: TeamInviteService = Depends(get_team_invite_service),
):
    return _handle(lambda: service.get_team_invites(team_id, current_user_id))


@router.delete("/{invite_id}", response_model=TeamInvite, summary="Cancel a sent invite")
async def cancel_invite(
    invite_id: str = Path(..., description="The ID of the invite"),
    current_user_id: str = Depends(get_current_user_id),
    service: TeamInviteService = Depends(get_team_invite_service),
):
    return _handle(lambda: service.cancel_invite(invite_id, current_user_id))
