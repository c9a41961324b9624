import logging
import random
from typing import Dict, List, Optional, Sequence, Tuple

from dota_cup.bracket.rounds import (
    matches_in_round,
    next_match_position,
    round_count,
    series_type_for_round,
)
from dota_cup.bracket.seeding import seed_teams
from dota_cup.models.bracket_model import BracketModel, BracketTeam, MatchModel, MatchStatus
from dota_cup.models.tournament_model import SeedingStrategy, TournamentConfig

logger = logging.getLogger(__name__)


def _seat(team: BracketTeam) -> BracketTeam:
    """Copies the bracket-relevant part of a registration into a slot."""
    return BracketTeam(**team.model_dump(include=set(BracketTeam.model_fields)))


def generate_bracket(
    tournament: TournamentConfig,
    teams: Sequence[BracketTeam],
    *,
    rng: Optional[random.Random] = None,
    manual_order: Optional[Sequence[str]] = None,
) -> BracketModel:
    """
    Builds a fresh single-elimination bracket for ``teams``.

    Every round is created up front with empty slots and linked forward;
    only round one is seated. An odd field leaves the last round-one match
    with team A only. Storing the bracket and moving the tournament to
    ongoing is left to the caller.
    """
    total_rounds = round_count(len(teams))
    match_rules = tournament.rules.match_rules
    # an explicit order always wins over the configured strategy
    strategy = SeedingStrategy.MANUAL if manual_order else match_rules.seeding
    seeded = seed_teams(teams, strategy, rng=rng, manual_order=manual_order)

    by_slot: Dict[Tuple[int, int], MatchModel] = {}
    matches: List[MatchModel] = []
    for round_number in range(1, total_rounds + 1):
        for position in range(1, matches_in_round(len(teams), round_number) + 1):
            match = MatchModel(
                tournament_id=tournament.id,
                round_number=round_number,
                position=position,
                status=MatchStatus.SCHEDULED,
                series_type=series_type_for_round(match_rules, round_number, total_rounds),
            )
            by_slot[(round_number, position)] = match
            matches.append(match)

    for match in matches:
        if match.round_number < total_rounds:
            target = by_slot[(match.round_number + 1, next_match_position(match.position))]
            match.next_match_id = target.id

    for match in (m for m in matches if m.round_number == 1):
        index = 2 * match.position - 2
        if index < len(seeded):
            match.team_a = _seat(seeded[index])
        if index + 1 < len(seeded):
            match.team_b = _seat(seeded[index + 1])

    bracket = BracketModel(
        tournament_id=tournament.id,
        rounds=list(range(1, total_rounds + 1)),
        matches=matches,
    )
    logger.info(
        "Generated bracket %s for tournament %s: %d teams, %d rounds, %d matches",
        bracket.id, tournament.id, len(teams), total_rounds, len(matches),
    )
    return bracket
