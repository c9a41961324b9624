"""Integer arithmetic for single-elimination round layout."""
from dota_cup.bracket.errors import InsufficientTeams
from dota_cup.models.tournament_model import MatchRules

SLOT_A = "a"
SLOT_B = "b"


def round_count(team_count: int) -> int:
    """ceil(log2(team_count)) without floating point."""
    if team_count < 2:
        raise InsufficientTeams(team_count)
    return (team_count - 1).bit_length()


def matches_in_round(team_count: int, round_number: int) -> int:
    """ceil(team_count / 2**round_number)."""
    if round_number < 1 or round_number > round_count(team_count):
        raise ValueError(f"Round {round_number} is outside the bracket for {team_count} teams.")
    return -(-team_count // 2 ** round_number)


def next_match_position(position: int) -> int:
    return (position + 1) // 2


def slot_for_position(position: int) -> str:
    """Odd positions feed slot A of the next match, even positions slot B."""
    return SLOT_A if position % 2 == 1 else SLOT_B


def series_type_for_round(rules: MatchRules, round_number: int, total_rounds: int) -> str:
    if round_number == total_rounds:
        return rules.final_series_type
    return rules.series_type
