import logging

from fastapi import APIRouter, Depends, HTTPException, Path

from dota_cup.core.exceptions import UpstreamError
from dota_cup.core.ranks import (
    ineligibility_message,
    is_rank_eligible,
    rank_display_name,
    steam_id_to_account_id,
)
from dota_cup.models.player_model import PlayerVerification, SteamProfile
from dota_cup.routes.dependencies import get_opendota_service, get_steam_service
from dota_cup.services.opendota_service import OpenDotaService
from dota_cup.services.steam_service import SteamService

logger = logging.getLogger(__name__)

router = APIRouter()


def _account_id(steam_id: str) -> str:
    try:
        return steam_id_to_account_id(steam_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/verify/{steam_id}", response_model=PlayerVerification, summary="Verify a player's eligibility")
async def verify_player(
    steam_id: str = Path(..., pattern=r"^\d{17}$", description="SteamID64 of the player"),
    steam_service: SteamService = Depends(get_steam_service),
):
    """
    Combines the Steam profile with OpenDota rank and match data. Players
    with hidden match data come back with `has_rank_data` false and a message.
    """
    try:
        return await steam_service.verify_player(steam_id)
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/profile/{steam_id}", response_model=SteamProfile, summary="Steam profile only")
async def player_profile(
    steam_id: str = Path(..., pattern=r"^\d{17}$", description="SteamID64 of the player"),
    steam_service: SteamService = Depends(get_steam_service),
):
    try:
        return await steam_service.get_player_profile(steam_id)
    except UpstreamError as e:
        if e.status_code == 404:
            raise HTTPException(status_code=404, detail="Player not found on Steam")
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/stats/{steam_id}", summary="Rank and win/loss stats from OpenDota")
async def player_stats(
    steam_id: str = Path(..., pattern=r"^\d{17}$", description="SteamID64 of the player"),
    opendota: OpenDotaService = Depends(get_opendota_service),
):
    account_id = _account_id(steam_id)
    try:
        player = await opendota.get_player(account_id)
        if player is None:
            raise HTTPException(status_code=404, detail="Player not found on OpenDota")
        win_loss = await opendota.get_win_loss(account_id)
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))

    total = win_loss["win"] + win_loss["lose"]
    rank_tier = player.get("rank_tier")
    return {
        "steam_id": steam_id,
        "account_id": account_id,
        "rank_tier": rank_tier,
        "rank_name": rank_display_name(rank_tier),
        "leaderboard_rank": player.get("leaderboard_rank"),
        "wins": win_loss["win"],
        "losses": win_loss["lose"],
        "total_matches": total,
        "win_rate": round(win_loss["win"] / total * 100, 2) if total else 0.0,
    }


@router.post("/refresh/{steam_id}", summary="Ask OpenDota to refresh a player's data")
async def refresh_player(
    steam_id: str = Path(..., pattern=r"^\d{17}$", description="SteamID64 of the player"),
    opendota: OpenDotaService = Depends(get_opendota_service),
):
    try:
        refreshed = await opendota.refresh_player(_account_id(steam_id))
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"steam_id": steam_id, "refreshed": refreshed}


@router.get("/check/{steam_id}", summary="Quick rank eligibility check")
async def check_player(
    steam_id: str = Path(..., pattern=r"^\d{17}$", description="SteamID64 of the player"),
    opendota: OpenDotaService = Depends(get_opendota_service),
):
    try:
        player = await opendota.get_player(_account_id(steam_id))
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))
    rank_tier = player.get("rank_tier") if player else None
    return {
        "steam_id": steam_id,
        "rank_tier": rank_tier,
        "rank_name": rank_display_name(rank_tier),
        "is_eligible": is_rank_eligible(rank_tier),
        "message": ineligibility_message(rank_tier),
    }
