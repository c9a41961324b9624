import random
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from dota_cup.bracket.errors import (
    BracketLocked,
    InsufficientTeams,
    InvalidTransition,
    MatchNotFound,
    TeamsNotSeated,
)
from dota_cup.models.bracket_model import MatchStatus
from dota_cup.models.tournament_model import TournamentConfig, TournamentStatus
from dota_cup.services.bracket_service import LOBBY_PASSWORD_ALPHABET, LOBBY_PASSWORD_LENGTH, BracketService


@pytest.fixture
def bracket_service(tmp_path, tournament_service, user_service):
    return BracketService(
        brackets_file_path=str(tmp_path / "brackets.json"),
        tournament_service=tournament_service,
        user_service=user_service,
        rng=random.Random(7),
    )


@pytest.fixture
def cup(tournament_service, organizer, make_roster):
    """A tournament with four registered teams; returns it with the captains by tag."""
    tournament = tournament_service.create_tournament(
        TournamentConfig(name="Friday Cup", organizer_id=organizer.id)
    )
    captains = {}
    for tag in ("AA", "BB", "CC", "DD"):
        team, captain = make_roster(tag)
        tournament_service.register_team(tournament.id, team.id, captain.id)
        captains[team.id] = captain
    return tournament_service.get_tournament_by_id(tournament.id), captains


def team_ids(tournament):
    return [t.id for t in tournament.teams]


class TestCreateBracket:

    def test_generate_starts_tournament(self, bracket_service, tournament_service, cup):
        tournament, _ = cup
        bracket = bracket_service.create_bracket_for_tournament(tournament.id)

        assert bracket.tournament_id == tournament.id
        assert bracket.rounds == [1, 2]
        assert len(bracket.matches) == 3
        assert tournament_service.get_tournament_by_id(tournament.id).status == TournamentStatus.ONGOING
        stored = bracket_service.get_bracket_by_tournament_id(tournament.id)
        assert stored.model_dump(mode="json") == bracket.model_dump(mode="json")

    def test_manual_order(self, bracket_service, cup):
        tournament, _ = cup
        order = list(reversed(team_ids(tournament)))
        bracket = bracket_service.create_bracket_for_tournament(tournament.id, manual_order=order)
        first = bracket.match_at(1, 1)
        assert [first.team_a.id, first.team_b.id] == order[:2]

    def test_second_generation_is_locked(self, bracket_service, cup):
        tournament, _ = cup
        bracket_service.create_bracket_for_tournament(tournament.id)
        with pytest.raises(BracketLocked):
            bracket_service.create_bracket_for_tournament(tournament.id)

    def test_concurrent_generation_builds_one_bracket(self, bracket_service, cup):
        tournament, _ = cup
        start = threading.Barrier(2)

        def generate():
            start.wait()
            try:
                return bracket_service.create_bracket_for_tournament(tournament.id)
            except BracketLocked as e:
                return e

        with ThreadPoolExecutor(max_workers=2) as pool:
            results = list(pool.map(lambda _: generate(), range(2)))

        built = [r for r in results if not isinstance(r, BracketLocked)]
        assert len(built) == 1
        assert sum(isinstance(r, BracketLocked) for r in results) == 1
        stored = bracket_service.get_bracket_by_tournament_id(tournament.id)
        assert stored.id == built[0].id

    def test_needs_two_teams(self, bracket_service, tournament_service, organizer):
        tournament = tournament_service.create_tournament(
            TournamentConfig(name="Empty Cup", organizer_id=organizer.id)
        )
        with pytest.raises(InsufficientTeams):
            bracket_service.create_bracket_for_tournament(tournament.id)
        assert bracket_service.get_bracket_by_tournament_id(tournament.id) is None
        assert tournament_service.get_tournament_by_id(tournament.id).status == TournamentStatus.REGISTRATION

    def test_unknown_tournament(self, bracket_service):
        with pytest.raises(ValueError, match="not found"):
            bracket_service.create_bracket_for_tournament("missing")

    def test_cancelled_tournament(self, bracket_service, tournament_service, organizer, cup):
        tournament, _ = cup
        tournament_service.cancel_tournament(tournament.id, organizer.id)
        with pytest.raises(ValueError):
            bracket_service.create_bracket_for_tournament(tournament.id)


class TestRegenerate:

    def test_regenerate_before_play(self, bracket_service, cup):
        tournament, _ = cup
        bracket_service.create_bracket_for_tournament(tournament.id)
        order = team_ids(tournament)
        bracket = bracket_service.regenerate_bracket(tournament.id, manual_order=order)
        assert bracket.match_at(1, 1).team_a.id == order[0]
        assert bracket_service.get_bracket_by_tournament_id(tournament.id).id == bracket.id

    def test_regenerate_after_a_result_is_locked(self, bracket_service, cup):
        tournament, _ = cup
        bracket = bracket_service.create_bracket_for_tournament(tournament.id)
        first = bracket.match_at(1, 1)
        bracket_service.record_match_result(tournament.id, first.id, first.team_a.id)
        with pytest.raises(BracketLocked):
            bracket_service.regenerate_bracket(tournament.id)


class TestResults:

    def test_result_is_persisted_and_propagated(self, bracket_service, cup):
        tournament, _ = cup
        bracket = bracket_service.create_bracket_for_tournament(tournament.id)
        first = bracket.match_at(1, 1)

        match = bracket_service.record_match_result(tournament.id, first.id, first.team_b.id)

        assert match.status == MatchStatus.COMPLETED
        stored = bracket_service.get_bracket_by_tournament_id(tournament.id)
        assert stored.final_match.team_a.id == first.team_b.id

    def test_failed_result_is_not_saved(self, bracket_service, cup):
        tournament, _ = cup
        bracket = bracket_service.create_bracket_for_tournament(tournament.id)
        first = bracket.match_at(1, 1)
        with pytest.raises(InvalidTransition):
            bracket_service.record_match_result(tournament.id, first.id, status="completed")
        stored = bracket_service.get_bracket_by_tournament_id(tournament.id)
        assert stored.model_dump(mode="json") == bracket.model_dump(mode="json")

    def test_unknown_match(self, bracket_service, cup):
        tournament, _ = cup
        bracket_service.create_bracket_for_tournament(tournament.id)
        with pytest.raises(MatchNotFound):
            bracket_service.record_match_result(tournament.id, "missing", "AA")
        assert bracket_service.get_match(tournament.id, "missing") is None

    def test_results_need_a_running_tournament(self, bracket_service, cup):
        tournament, _ = cup
        with pytest.raises(ValueError):
            bracket_service.record_match_result(tournament.id, "any", "AA")

    def test_final_completes_tournament(self, bracket_service, tournament_service, cup):
        tournament, _ = cup
        bracket = bracket_service.create_bracket_for_tournament(tournament.id)
        for match in bracket.matches_in_round(1):
            bracket_service.record_match_result(tournament.id, match.id, match.team_a.id)
        final = bracket_service.get_bracket_by_tournament_id(tournament.id).final_match

        # the final defaults to a best of three
        for _ in range(2):
            bracket_service.record_game(tournament.id, final.id, final.team_a.id)

        stored = bracket_service.get_bracket_by_tournament_id(tournament.id)
        assert stored.champion_id == final.team_a.id
        assert tournament_service.get_tournament_by_id(tournament.id).status == TournamentStatus.COMPLETED

        # reporting the same final again is harmless
        again = bracket_service.record_match_result(tournament.id, final.id, final.team_a.id)
        assert again.winner_team_id == final.team_a.id


class TestAdvanceBye:

    def test_three_team_bye(self, bracket_service, tournament_service, organizer, make_roster):
        tournament = tournament_service.create_tournament(
            TournamentConfig(name="Odd Cup", organizer_id=organizer.id)
        )
        for tag in ("AA", "BB", "CC"):
            team, captain = make_roster(tag)
            tournament_service.register_team(tournament.id, team.id, captain.id)
        order = [t.id for t in tournament_service.get_registered_teams(tournament.id)]
        bracket = bracket_service.create_bracket_for_tournament(tournament.id, manual_order=order)

        bye = bracket.match_at(1, 2)
        match = bracket_service.advance_bye(tournament.id, bye.id)

        assert match.status == MatchStatus.CANCELLED
        stored = bracket_service.get_bracket_by_tournament_id(tournament.id)
        assert stored.final_match.team_b.id == order[2]


class TestLobby:

    def test_captain_creates_lobby(self, bracket_service, cup):
        tournament, captains = cup
        bracket = bracket_service.create_bracket_for_tournament(tournament.id)
        first = bracket.match_at(1, 1)
        captain = captains[first.team_a.id]

        lobby = bracket_service.create_lobby(tournament.id, first.id, captain.id)

        assert lobby.lobby_name == f"{first.team_a.tag} vs {first.team_b.tag} - Friday Cup"
        assert len(lobby.password) == LOBBY_PASSWORD_LENGTH
        assert all(ch in LOBBY_PASSWORD_ALPHABET for ch in lobby.password)
        assert lobby.created_by == captain.id
        assert any(lobby.password in line for line in lobby.instructions)
        stored = bracket_service.get_match(tournament.id, first.id)
        assert stored.status == MatchStatus.ONGOING
        assert stored.lobby.password == lobby.password

    def test_other_captains_cannot_create_lobby(self, bracket_service, cup):
        tournament, captains = cup
        bracket = bracket_service.create_bracket_for_tournament(tournament.id)
        first = bracket.match_at(1, 1)
        second = bracket.match_at(1, 2)
        outsider = captains[second.team_a.id]
        with pytest.raises(PermissionError):
            bracket_service.create_lobby(tournament.id, first.id, outsider.id)

    def test_lobby_needs_both_teams(self, bracket_service, cup):
        tournament, captains = cup
        bracket = bracket_service.create_bracket_for_tournament(tournament.id)
        first = bracket.match_at(1, 1)
        bracket_service.record_match_result(tournament.id, first.id, first.team_a.id)
        captain = captains[first.team_a.id]
        with pytest.raises(TeamsNotSeated):
            bracket_service.create_lobby(tournament.id, bracket.final_match.id, captain.id)

    def test_who_can_report(self, bracket_service, organizer, cup):
        tournament, captains = cup
        bracket = bracket_service.create_bracket_for_tournament(tournament.id)
        first = bracket.match_at(1, 1)
        outsider = captains[bracket.match_at(1, 2).team_a.id]
        assert bracket_service.can_report_result(tournament, first, organizer.id)
        assert bracket_service.can_report_result(tournament, first, captains[first.team_b.id].id)
        assert not bracket_service.can_report_result(tournament, first, outsider.id)
