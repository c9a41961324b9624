"""
Dota 2 medal helpers.

OpenDota reports a player's medal as a two digit ``rank_tier``: the tens digit
is the medal (1 = Herald ... 8 = Immortal) and the units digit the number of
stars. Immortal players report 80 without stars.
"""
from typing import Optional

from dota_cup.core.config import settings

STEAM_ID64_BASE = 76561197960265728
MIN_ELIGIBLE_RANK_TIER = 11

MEDALS = {
    1: "Herald",
    2: "Guardian",
    3: "Crusader",
    4: "Archon",
    5: "Legend",
    6: "Ancient",
    7: "Divine",
    8: "Immortal",
}

ROMAN = {1: "I", 2: "II", 3: "III", 4: "IV", 5: "V"}


def steam_id_to_account_id(steam_id: str) -> str:
    """Converts a SteamID64 into the 32-bit account id used by OpenDota."""
    try:
        return str(int(steam_id) - STEAM_ID64_BASE)
    except ValueError:
        raise ValueError(f"Invalid SteamID64: {steam_id}")


def medal_name(rank_tier: Optional[int]) -> str:
    if not rank_tier:
        return "Unranked"
    medal = MEDALS.get(min(rank_tier // 10, 8))
    if medal is None:
        return "Unknown"
    return medal


def rank_stars(rank_tier: Optional[int]) -> int:
    if not rank_tier or rank_tier >= 80:
        return 0
    return rank_tier % 10


def rank_display_name(rank_tier: Optional[int]) -> str:
    name = medal_name(rank_tier)
    stars = rank_stars(rank_tier)
    if stars in ROMAN:
        return f"{name} {ROMAN[stars]}"
    return name


def is_rank_eligible(rank_tier: Optional[int], max_rank_tier: Optional[int] = None) -> bool:
    if not rank_tier:
        return False
    upper = max_rank_tier if max_rank_tier is not None else settings.MAX_ELIGIBLE_RANK_TIER
    return MIN_ELIGIBLE_RANK_TIER <= rank_tier <= upper


def ineligibility_message(rank_tier: Optional[int], max_rank_tier: Optional[int] = None) -> Optional[str]:
    """Returns a human readable reason, or None when the rank is accepted."""
    upper = max_rank_tier if max_rank_tier is not None else settings.MAX_ELIGIBLE_RANK_TIER
    if not rank_tier:
        return "Player has no ranked medal yet. Finish the calibration matches in Dota 2."
    if rank_tier < MIN_ELIGIBLE_RANK_TIER:
        return "Rank is too low to take part in tournaments."
    if rank_tier > upper:
        return (
            f"Rank {rank_display_name(rank_tier)} is too high. "
            f"The highest accepted rank is {rank_display_name(upper)}."
        )
    return None
