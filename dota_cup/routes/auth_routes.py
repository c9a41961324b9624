import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, EmailStr, Field

from dota_cup.core.config import settings
from dota_cup.core.exceptions import UpstreamError
from dota_cup.models.user_model import PublicUser, SteamConnection, UserModel
from dota_cup.routes.dependencies import (
    get_current_user,
    get_current_user_id,
    get_steam_service,
    get_user_service,
)
from dota_cup.services.steam_service import SteamService
from dota_cup.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter()


class RegisterRequest(BaseModel):
    email: EmailStr = Field(..., description="Email address used to sign in")
    username: str = Field(..., min_length=3, max_length=20, description="Public player name")
    password: str = Field(..., min_length=6, description="At least 6 characters")


class LoginRequest(BaseModel):
    login: str = Field(..., description="Email or username")
    password: str


class SteamConnectRequest(BaseModel):
    steam_id: str = Field(..., pattern=r"^\d{17}$", description="SteamID64 of the account to link")


def to_public(user: UserModel) -> PublicUser:
    return PublicUser(**user.model_dump(exclude={"hashed_password"}))


async def link_steam_account(
    user_id: str, steam_id: str, steam_service: SteamService, user_service: UserService
) -> UserModel:
    verification = await steam_service.verify_player(steam_id)
    profile = verification.profile
    connection = SteamConnection(
        steam_id=steam_id,
        username=profile.username if profile else steam_id,
        avatar=profile.avatar if profile else None,
        profile_url=profile.profile_url if profile else None,
        is_verified=verification.is_eligible,
        rank_tier=verification.rank_tier,
        rank_name=verification.rank_name,
        total_matches=verification.total_matches,
    )
    return user_service.connect_steam_account(user_id, connection)


@router.post("/register", response_model=PublicUser, status_code=201, summary="Register a new account")
async def register(
    request: Request,
    payload: RegisterRequest,
    service: UserService = Depends(get_user_service),
):
    """
    Creates a player account and signs it in.

    - **email** and **username** must be unique.
    - **password** must be at least 6 characters.
    """
    try:
        user = service.register_user(payload.email, payload.username, payload.password)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    request.session["user_id"] = user.id
    return to_public(user)


@router.post("/login", response_model=PublicUser, summary="Sign in with email or username")
async def login(
    request: Request,
    payload: LoginRequest,
    service: UserService = Depends(get_user_service),
):
    user = service.authenticate_user(payload.login, payload.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid login or password")
    request.session["user_id"] = user.id
    return to_public(user)


@router.post("/logout", summary="Log out the current user")
async def logout(request: Request):
    """
    Clears the current user's session, effectively logging them out.
    """
    request.session.clear()
    return JSONResponse(content={"message": "Successfully logged out."})


@router.get("/user", response_model=PublicUser, summary="Get current authenticated user details")
async def me(user: UserModel = Depends(get_current_user)):
    return to_public(user)


@router.get("/check-username/{username}", summary="Check whether a username is free")
async def check_username(username: str, service: UserService = Depends(get_user_service)):
    if len(username) < 3:
        return {"available": False, "message": "Username must be at least 3 characters long."}
    return {"available": service.is_username_available(username)}


@router.post("/steam/connect", response_model=PublicUser, summary="Link a Steam account")
async def connect_steam(
    payload: SteamConnectRequest,
    current_user_id: str = Depends(get_current_user_id),
    steam_service: SteamService = Depends(get_steam_service),
    user_service: UserService = Depends(get_user_service),
):
    """
    Looks the account up on Steam and OpenDota and links it to the current user.
    The connection is marked verified when the rank and match count are eligible.
    """
    try:
        user = await link_steam_account(current_user_id, payload.steam_id, steam_service, user_service)
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return to_public(user)


@router.delete("/steam/disconnect/{steam_id}", response_model=PublicUser, summary="Unlink a Steam account")
async def disconnect_steam(
    steam_id: str,
    current_user_id: str = Depends(get_current_user_id),
    user_service: UserService = Depends(get_user_service),
):
    try:
        user = user_service.disconnect_steam_account(current_user_id, steam_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return to_public(user)


@router.get("/steam", summary="Start Steam OpenID sign-in")
async def steam_login(steam_service: SteamService = Depends(get_steam_service)):
    """
    Redirects to the Steam sign-in page. Steam sends the user back to
    `/auth/steam/return`.
    """
    return_to = f"{settings.BACKEND_URL}/auth/steam/return"
    return RedirectResponse(url=steam_service.login_url(return_to, settings.BACKEND_URL))


@router.get("/steam/return", name="auth_steam_return", summary="Handle the Steam OpenID callback")
async def steam_return(
    request: Request,
    steam_service: SteamService = Depends(get_steam_service),
    user_service: UserService = Depends(get_user_service),
):
    """
    Verifies the Steam assertion. A signed-in user gets the account linked;
    otherwise the user owning that Steam account is signed in. Unknown Steam
    accounts are sent to registration.
    """
    try:
        steam_id = await steam_service.verify_login(request.query_params)
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))
    if not steam_id:
        return RedirectResponse(url=f"{settings.FRONTEND_URL}/login?error=steam_auth_failed", status_code=303)

    current_user_id = request.session.get("user_id")
    if current_user_id:
        try:
            await link_steam_account(current_user_id, steam_id, steam_service, user_service)
        except (UpstreamError, ValueError) as e:
            logger.warning("Could not link Steam account %s to %s: %s", steam_id, current_user_id, e)
            return RedirectResponse(url=f"{settings.FRONTEND_URL}/profile?error=steam_link_failed", status_code=303)
        return RedirectResponse(url=f"{settings.FRONTEND_URL}/profile?steam=linked", status_code=303)

    owner = user_service.find_user_by_steam_id(steam_id)
    if owner:
        request.session["user_id"] = owner.id
        return RedirectResponse(url=f"{settings.FRONTEND_URL}/", status_code=303)

    request.session["pending_steam_id"] = steam_id
    return RedirectResponse(url=f"{settings.FRONTEND_URL}/register?steam=pending", status_code=303)
