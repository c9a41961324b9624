from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from pydantic import BaseModel, Field

from dota_cup.models.friend_model import Friendship, FriendView
from dota_cup.models.user_model import PublicUser
from dota_cup.routes.dependencies import get_current_user_id, get_friends_service, get_user_service
from dota_cup.services.friends_service import FriendsService
from dota_cup.services.user_service import UserService

router = APIRouter()


class FriendRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=20, description="Username of the player to add")


@router.post("/request", response_model=Friendship, status_code=201, summary="Send a friend request")
async def send_request(
    payload: FriendRequest,
    current_user_id: str = Depends(get_current_user_id),
    service: FriendsService = Depends(get_friends_service),
):
    try:
        return service.send_request(current_user_id, payload.username)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{friendship_id}/accept", response_model=Friendship, summary="Accept a friend request")
async def accept_request(
    friendship_id: str = Path(..., description="The ID of the friend request"),
    current_user_id: str = Depends(get_current_user_id),
    service: FriendsService = Depends(get_friends_service),
):
    try:
        return service.accept_request(current_user_id, friendship_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{friendship_id}/reject", response_model=Friendship, summary="Reject a friend request")
async def reject_request(
    friendship_id: str = Path(..., description="The ID of the friend request"),
    current_user_id: str = Depends(get_current_user_id),
    service: FriendsService = Depends(get_friends_service),
):
    try:
        return service.reject_request(current_user_id, friendship_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/list", response_model=List[FriendView], summary="List friends")
async def list_friends(
    current_user_id: str = Depends(get_current_user_id),
    service: FriendsService = Depends(get_friends_service),
):
    return service.get_friends(current_user_id)


@router.get("/requests", response_model=List[FriendView], summary="List incoming friend requests")
async def incoming_requests(
    current_user_id: str = Depends(get_current_user_id),
    service: FriendsService = Depends(get_friends_service),
):
    return service.get_incoming_requests(current_user_id)


@router.get("/search", response_model=List[PublicUser], summary="Search players by username")
async def search_players(
    q: str = Query(..., min_length=2, description="Part of a username"),
    limit: int = Query(10, ge=1, le=50),
    current_user_id: str = Depends(get_current_user_id),
    user_service: UserService = Depends(get_user_service),
):
    users = user_service.search_users(q, limit=limit, exclude_user_id=current_user_id)
    return [PublicUser(**u.model_dump(exclude={"hashed_password"})) for u in users]


@router.delete("/{friend_id}", status_code=204, summary="Remove a friend")
async def remove_friend(
    friend_id: str = Path(..., description="User ID of the friend"),
    current_user_id: str = Depends(get_current_user_id),
    service: FriendsService = Depends(get_friends_service),
):
    try:
        service.remove_friend(current_user_id, friend_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
