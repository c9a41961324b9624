import random
from typing import List, Optional, Sequence

from dota_cup.bracket.errors import InvalidSeeding
from dota_cup.bracket.rounds import round_count
from dota_cup.models.bracket_model import BracketTeam
from dota_cup.models.tournament_model import SeedingStrategy


def _generate_bracket_order(bracket_size: int) -> List[int]:
    """
    Standard bracket order for a power-of-two field.

    For 8 teams: [1, 8, 4, 5, 2, 7, 3, 6], so the top two seeds can only
    meet in the final.
    """
    if bracket_size == 2:
        return [1, 2]
    upper_half = _generate_bracket_order(bracket_size // 2)
    lower_half = [bracket_size + 1 - seed for seed in upper_half]
    result = []
    for u, l in zip(upper_half, lower_half):
        result.extend([u, l])
    return result


def _leaves_under(team_count: int, round_number: int, position: int) -> int:
    """How many round-one slots feed match ``position`` of ``round_number``."""
    span = 2 ** round_number
    return max(0, min(position * span, team_count) - (position - 1) * span)


def _bye_aware_order(team_count: int) -> List[int]:
    """
    Seed order for a field that is not a power of two.

    Walks the bracket from the final down. At every match the best seed
    goes to the side fed by fewer slots, which is the side holding the
    structural byes, and the remaining seeds alternate the way the standard
    order does (1 and 4 on one side, 2 and 3 on the other). For 5 teams
    this gives [2, 5, 3, 4, 1], so seed 1 takes the bye.
    """

    def place(round_number: int, position: int, seeds: List[int]) -> List[int]:
        if round_number == 0:
            return seeds
        first = (round_number - 1, 2 * position - 1)
        second = (round_number - 1, 2 * position)
        first_size = _leaves_under(team_count, *first)
        second_size = _leaves_under(team_count, *second)
        if second_size == 0:
            return place(*first, seeds)

        if second_size < first_size:
            top, rest, top_size = second, first, second_size
        else:
            top, rest, top_size = first, second, first_size
        top_seeds: List[int] = []
        rest_seeds: List[int] = []
        for i, seed in enumerate(seeds):
            rest_full = len(rest_seeds) >= len(seeds) - top_size
            if rest_full or (i % 4 in (0, 3) and len(top_seeds) < top_size):
                top_seeds.append(seed)
            else:
                rest_seeds.append(seed)
        placed = {top: place(*top, top_seeds), rest: place(*rest, rest_seeds)}
        return placed[first] + placed[second]

    return place(round_count(team_count), 1, list(range(1, team_count + 1)))


def rank_teams(teams: Sequence[BracketTeam]) -> List[BracketTeam]:
    """Highest rating first; unrated teams keep registration order at the end."""
    return sorted(teams, key=lambda t: (t.rating is None, -(t.rating or 0)))


def random_seeding(teams: Sequence[BracketTeam], rng: Optional[random.Random] = None) -> List[BracketTeam]:
    seeded = list(teams)
    (rng or random).shuffle(seeded)
    return seeded


def ranked_seeding(teams: Sequence[BracketTeam]) -> List[BracketTeam]:
    ranked = rank_teams(teams)
    n = len(ranked)
    if n & (n - 1) == 0:
        order = _generate_bracket_order(n)
    else:
        order = _bye_aware_order(n)
    return [ranked[seed - 1] for seed in order]


def manual_seeding(teams: Sequence[BracketTeam], team_ids: Optional[Sequence[str]]) -> List[BracketTeam]:
    if not team_ids:
        raise InvalidSeeding("Manual seeding requires an explicit team order.")
    by_id = {team.id: team for team in teams}
    if len(team_ids) != len(set(team_ids)):
        raise InvalidSeeding("Manual seeding lists a team more than once.")
    if set(team_ids) != set(by_id):
        raise InvalidSeeding("Manual seeding must list every registered team exactly once.")
    return [by_id[team_id] for team_id in team_ids]


def seed_teams(
    teams: Sequence[BracketTeam],
    strategy: str = SeedingStrategy.RANDOM,
    rng: Optional[random.Random] = None,
    manual_order: Optional[Sequence[str]] = None,
) -> List[BracketTeam]:
    """Returns the teams in the order they fill round-one slots."""
    strategy = SeedingStrategy(strategy)
    if strategy == SeedingStrategy.RANKED:
        return ranked_seeding(teams)
    if strategy == SeedingStrategy.MANUAL:
        return manual_seeding(teams, manual_order)
    return random_seeding(teams, rng)
