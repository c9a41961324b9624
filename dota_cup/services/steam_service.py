import logging
import re
from typing import Mapping, Optional
from urllib.parse import urlencode

import httpx

from dota_cup.core.config import settings
from dota_cup.core.exceptions import UpstreamError
from dota_cup.core.ranks import (
    ineligibility_message,
    is_rank_eligible,
    medal_name,
    rank_display_name,
    rank_stars,
    steam_id_to_account_id,
)
from dota_cup.models.player_model import PlayerVerification, SteamProfile
from dota_cup.services.opendota_service import OpenDotaService

logger = logging.getLogger(__name__)

STEAM_API_URL = "https://api.steampowered.com"
STEAM_OPENID_URL = "https://steamcommunity.com/openid/login"
OPENID_NS = "http://specs.openid.net/auth/2.0"
OPENID_IDENTIFIER_SELECT = "http://specs.openid.net/auth/2.0/identifier_select"
CLAIMED_ID_RE = re.compile(r"^https?://steamcommunity\.com/openid/id/(\d{17})$")
REQUEST_TIMEOUT = 10.0


class SteamService:
    """Steam Web API profile lookups, Steam OpenID sign-in and player verification."""

    def __init__(
        self,
        api_key: str = settings.STEAM_API_KEY,
        opendota_service: Optional[OpenDotaService] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.opendota_service = opendota_service or OpenDotaService(transport=transport)
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=REQUEST_TIMEOUT, transport=self.transport)

    async def get_player_profile(self, steam_id: str) -> SteamProfile:
        if not self.api_key:
            raise UpstreamError("Steam", "STEAM_API_KEY is not configured")
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{STEAM_API_URL}/ISteamUser/GetPlayerSummaries/v0002/",
                    params={"key": self.api_key, "steamids": steam_id},
                )
        except httpx.HTTPError as e:
            logger.error("Steam profile lookup for %s failed: %s", steam_id, e)
            raise UpstreamError("Steam", str(e))
        if response.status_code != 200:
            raise UpstreamError("Steam", f"profile lookup returned {response.status_code}", response.status_code)

        players = response.json().get("response", {}).get("players", [])
        if not players:
            raise UpstreamError("Steam", f"player {steam_id} not found", 404)
        player = players[0]
        return SteamProfile(
            steam_id=player.get("steamid", steam_id),
            username=player.get("personaname", ""),
            avatar=player.get("avatarfull"),
            avatar_small=player.get("avatar"),
            avatar_medium=player.get("avatarmedium"),
            profile_url=player.get("profileurl"),
        )

    def login_url(self, return_to: str, realm: str) -> str:
        params = {
            "openid.ns": OPENID_NS,
            "openid.mode": "checkid_setup",
            "openid.return_to": return_to,
            "openid.realm": realm,
            "openid.identity": OPENID_IDENTIFIER_SELECT,
            "openid.claimed_id": OPENID_IDENTIFIER_SELECT,
        }
        return f"{STEAM_OPENID_URL}?{urlencode(params)}"

    async def verify_login(self, params: Mapping[str, str]) -> Optional[str]:
        """
        Confirms an OpenID assertion with Steam.

        Returns the SteamID64 of the signed-in account, or None when the
        assertion is missing, malformed or rejected.
        """
        if params.get("openid.mode") != "id_res":
            return None
        match = CLAIMED_ID_RE.match(params.get("openid.claimed_id", ""))
        if not match:
            return None

        payload = dict(params)
        payload["openid.mode"] = "check_authentication"
        try:
            async with self._client() as client:
                response = await client.post(STEAM_OPENID_URL, data=payload)
        except httpx.HTTPError as e:
            logger.error("Steam OpenID verification failed: %s", e)
            raise UpstreamError("Steam", str(e))
        if response.status_code != 200 or "is_valid:true" not in response.text:
            logger.warning("Steam rejected OpenID assertion for %s", match.group(1))
            return None
        return match.group(1)

    async def verify_player(
        self,
        steam_id: str,
        max_rank_tier: Optional[int] = None,
        min_matches: Optional[int] = None,
    ) -> PlayerVerification:
        max_rank_tier = max_rank_tier if max_rank_tier is not None else settings.MAX_ELIGIBLE_RANK_TIER
        min_matches = min_matches if min_matches is not None else settings.MIN_RANKED_MATCHES

        profile = await self.get_player_profile(steam_id)
        account_id = steam_id_to_account_id(steam_id)
        player = await self.opendota_service.get_player(account_id)
        if player is None:
            return PlayerVerification(
                steam_id=steam_id,
                account_id=account_id,
                profile=profile,
                message=(
                    "OpenDota has no data for this account. Enable 'Expose Public Match Data' "
                    "in the Dota 2 settings and play a match."
                ),
            )

        rank_tier = player.get("rank_tier")
        win_loss = await self.opendota_service.get_win_loss(account_id)
        wins, losses = win_loss["win"], win_loss["lose"]
        total = wins + losses
        meets_rank = is_rank_eligible(rank_tier, max_rank_tier)
        meets_matches = total >= min_matches

        message = ineligibility_message(rank_tier, max_rank_tier)
        if message is None and not meets_matches:
            message = f"At least {min_matches} matches are required, the account has {total}."

        return PlayerVerification(
            steam_id=steam_id,
            account_id=account_id,
            profile=profile,
            rank_tier=rank_tier,
            rank_name=rank_display_name(rank_tier),
            medal=medal_name(rank_tier),
            stars=rank_stars(rank_tier),
            total_matches=total,
            wins=wins,
            losses=losses,
            win_rate=round(wins / total * 100, 2) if total else 0.0,
            has_rank_data=rank_tier is not None,
            meets_rank=meets_rank,
            meets_matches=meets_matches,
            is_eligible=meets_rank and meets_matches,
            message=message,
        )
