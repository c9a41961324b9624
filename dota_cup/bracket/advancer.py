"""
Result recording and winner propagation.

All checks run before the bracket is touched, so a rejected call leaves the
bracket exactly as it was.
"""
import logging
from typing import Optional, Tuple

from dota_cup.bracket.errors import (
    InvalidTransition,
    InvalidWinner,
    MatchNotFound,
    TeamsNotSeated,
)
from dota_cup.bracket.rounds import SLOT_A, slot_for_position
from dota_cup.models.bracket_model import (
    BracketModel,
    GameModel,
    MatchModel,
    MatchStatus,
    max_games,
    utcnow,
    wins_needed,
)

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    MatchStatus.SCHEDULED: {MatchStatus.ONGOING, MatchStatus.COMPLETED, MatchStatus.CANCELLED},
    MatchStatus.ONGOING: {MatchStatus.COMPLETED, MatchStatus.CANCELLED},
    MatchStatus.COMPLETED: set(),
    MatchStatus.CANCELLED: set(),
}

# (next match, slot) the winner is copied into, or None for the final
Propagation = Optional[Tuple[MatchModel, str]]


def _require_match(bracket: BracketModel, match_id: str) -> MatchModel:
    match = bracket.get_match(match_id)
    if match is None:
        raise MatchNotFound(match_id)
    return match


def _slot_team(match: MatchModel, slot: str):
    return match.team_a if slot == SLOT_A else match.team_b


def _set_slot(match: MatchModel, slot: str, team):
    if slot == SLOT_A:
        match.team_a = team
    else:
        match.team_b = team


def _plan_propagation(bracket: BracketModel, match: MatchModel, team_id: str) -> Propagation:
    if match.next_match_id is None:
        return None
    next_match = _require_match(bracket, match.next_match_id)
    slot = slot_for_position(match.position)
    occupant = _slot_team(next_match, slot)
    if occupant is not None and occupant.id != team_id and next_match.status != MatchStatus.SCHEDULED:
        raise InvalidTransition(
            f"Match {next_match.id} already started with team {occupant.id} in slot {slot}."
        )
    return next_match, slot


def _propagate(match: MatchModel, team_id: str, plan: Propagation, now):
    if plan is None:
        return
    next_match, slot = plan
    _set_slot(next_match, slot, match.team_by_id(team_id).model_copy(deep=True))
    next_match.updated_at = now


def _plan_result(
    bracket: BracketModel,
    match: MatchModel,
    winner_team_id: Optional[str],
    status: Optional[str],
) -> Tuple[Optional[MatchStatus], Propagation]:
    """Validates a result. Returns (target status, propagation); target is None for a no-op."""
    if winner_team_id is not None:
        if not match.is_ready:
            raise TeamsNotSeated(f"Match {match.id} needs both teams seated before a winner is recorded.")
        if winner_team_id not in match.seated_team_ids:
            raise InvalidWinner(match.id, winner_team_id)

    if status is not None:
        try:
            target = MatchStatus(status)
        except ValueError:
            raise InvalidTransition(f"Unknown match status '{status}'.")
    else:
        target = MatchStatus.COMPLETED if winner_team_id else MatchStatus.SCHEDULED

    if winner_team_id is not None and target != MatchStatus.COMPLETED:
        raise InvalidTransition(f"A winner can only be recorded with status '{MatchStatus.COMPLETED.value}'.")
    if winner_team_id is None and target == MatchStatus.COMPLETED:
        raise InvalidTransition(f"Match {match.id} cannot be completed without a winner.")

    current = MatchStatus(match.status)
    if current == MatchStatus.COMPLETED:
        if target == MatchStatus.COMPLETED and winner_team_id == match.winner_team_id:
            return None, None
        raise InvalidTransition(f"Match {match.id} is already completed.")
    if current == target:
        return None, None
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(f"Match {match.id} cannot move from '{current.value}' to '{target.value}'.")
    if target == MatchStatus.ONGOING and not match.is_ready:
        raise TeamsNotSeated(f"Match {match.id} cannot start before both teams are seated.")

    plan = None
    if winner_team_id is not None:
        plan = _plan_propagation(bracket, match, winner_team_id)
    return target, plan


def _apply_result(
    bracket: BracketModel,
    match: MatchModel,
    target: MatchStatus,
    winner_team_id: Optional[str],
    plan: Propagation,
):
    now = utcnow()
    match.status = target.value
    if target == MatchStatus.ONGOING and match.started_at is None:
        match.started_at = now
    if target == MatchStatus.COMPLETED:
        match.winner_team_id = winner_team_id
        match.completed_at = now
        _propagate(match, winner_team_id, plan, now)
    match.updated_at = now
    bracket.updated_at = now


def record_result(
    bracket: BracketModel,
    match_id: str,
    winner_team_id: Optional[str] = None,
    status: Optional[str] = None,
) -> BracketModel:
    """
    Applies a result to one match and copies the winner into the next round.

    With no explicit status a winner means completed and no winner means
    scheduled. Recording the same completed winner again is a no-op.
    """
    match = _require_match(bracket, match_id)
    target, plan = _plan_result(bracket, match, winner_team_id, status)
    if target is None:
        return bracket
    _apply_result(bracket, match, target, winner_team_id, plan)
    logger.info(
        "Match %s (round %d, position %d) -> %s, winner %s",
        match.id, match.round_number, match.position, target.value, winner_team_id,
    )
    return bracket


def start_match(bracket: BracketModel, match_id: str) -> BracketModel:
    return record_result(bracket, match_id, status=MatchStatus.ONGOING.value)


def series_score(match: MatchModel) -> dict:
    score = {team_id: 0 for team_id in match.seated_team_ids}
    for game in match.games:
        if game.winner_team_id in score:
            score[game.winner_team_id] += 1
    return score


def record_game(bracket: BracketModel, match_id: str, winner_team_id: str) -> BracketModel:
    """
    Appends one finished game to a series.

    The first game starts the match. When a team reaches the wins its series
    needs, the match is completed and the winner moves on.
    """
    match = _require_match(bracket, match_id)
    if not match.is_ready:
        raise TeamsNotSeated(f"Match {match.id} needs both teams seated before games are played.")
    if winner_team_id not in match.seated_team_ids:
        raise InvalidWinner(match.id, winner_team_id)
    if match.status not in (MatchStatus.SCHEDULED, MatchStatus.ONGOING):
        raise InvalidTransition(f"Match {match.id} is {MatchStatus(match.status).value}; no more games can be recorded.")
    if len(match.games) >= max_games(match.series_type):
        raise InvalidTransition(f"Match {match.id} already has every game of its series.")

    wins = series_score(match)[winner_team_id] + 1
    if wins >= wins_needed(match.series_type):
        target, plan = _plan_result(bracket, match, winner_team_id, MatchStatus.COMPLETED.value)
        winner = winner_team_id
    else:
        target, plan = _plan_result(bracket, match, None, MatchStatus.ONGOING.value)
        winner = None

    now = utcnow()
    match.games.append(
        GameModel(
            game_number=len(match.games) + 1,
            winner_team_id=winner_team_id,
            status=MatchStatus.COMPLETED,
            started_at=match.started_at or now,
            completed_at=now,
        )
    )
    if target is not None:
        _apply_result(bracket, match, target, winner, plan)
    else:
        match.updated_at = now
        bracket.updated_at = now
    logger.info("Match %s game %d won by %s", match.id, len(match.games), winner_team_id)
    return bracket


def _has_live_feeder(bracket: BracketModel, match: MatchModel, slot: str) -> bool:
    if match.round_number == 1:
        return False
    feeder_position = 2 * match.position - (1 if slot == SLOT_A else 0)
    feeder = bracket.match_at(match.round_number - 1, feeder_position)
    return feeder is not None and feeder.status != MatchStatus.CANCELLED


def advance_bye(bracket: BracketModel, match_id: str) -> BracketModel:
    """
    Moves the lone team of a bye match into the next round.

    The bye itself is closed as cancelled with no winner, since a completed
    match always has both teams seated.
    """
    match = _require_match(bracket, match_id)
    if match.status != MatchStatus.SCHEDULED:
        raise InvalidTransition(f"Match {match.id} is {MatchStatus(match.status).value}; only scheduled byes can be advanced.")
    if not match.is_bye:
        raise TeamsNotSeated(f"Match {match.id} is not a bye: exactly one team must be seated.")

    empty_slot = "b" if match.team_a is not None else "a"
    if _has_live_feeder(bracket, match, empty_slot):
        raise TeamsNotSeated(f"Match {match.id} is still waiting for its opponent.")
    if match.next_match_id is None:
        raise InvalidTransition("The final cannot be decided by a bye.")

    team_id = match.seated_team_ids[0]
    plan = _plan_propagation(bracket, match, team_id)

    now = utcnow()
    _propagate(match, team_id, plan, now)
    match.status = MatchStatus.CANCELLED.value
    match.updated_at = now
    bracket.updated_at = now
    logger.info("Bye match %s advanced team %s", match.id, team_id)
    return bracket
