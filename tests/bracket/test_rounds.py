import math

import pytest

from dota_cup.bracket.errors import InsufficientTeams
from dota_cup.bracket.rounds import (
    matches_in_round,
    next_match_position,
    round_count,
    series_type_for_round,
    slot_for_position,
)
from dota_cup.models.tournament_model import MatchRules


class TestRoundCount:

    @pytest.mark.parametrize("team_count, expected", [
        (2, 1), (3, 2), (4, 2), (5, 3), (8, 3), (9, 4), (16, 4), (17, 5), (128, 7),
    ])
    def test_known_values(self, team_count, expected):
        assert round_count(team_count) == expected

    def test_matches_float_formula(self):
        for n in range(2, 300):
            assert round_count(n) == math.ceil(math.log2(n))

    @pytest.mark.parametrize("team_count", [0, 1, -3])
    def test_rejects_fewer_than_two_teams(self, team_count):
        with pytest.raises(InsufficientTeams):
            round_count(team_count)


class TestMatchesInRound:

    def test_five_teams(self):
        assert [matches_in_round(5, r) for r in (1, 2, 3)] == [3, 2, 1]

    def test_eight_teams(self):
        assert [matches_in_round(8, r) for r in (1, 2, 3)] == [4, 2, 1]

    def test_last_round_always_has_one_match(self):
        for n in range(2, 100):
            assert matches_in_round(n, round_count(n)) == 1

    def test_round_outside_bracket(self):
        with pytest.raises(ValueError):
            matches_in_round(4, 3)
        with pytest.raises(ValueError):
            matches_in_round(4, 0)


class TestLinkage:

    @pytest.mark.parametrize("position, expected", [(1, 1), (2, 1), (3, 2), (4, 2), (7, 4)])
    def test_next_match_position(self, position, expected):
        assert next_match_position(position) == expected

    def test_slot_parity(self):
        assert slot_for_position(1) == "a"
        assert slot_for_position(2) == "b"
        assert slot_for_position(3) == "a"

    def test_series_type_policy(self):
        rules = MatchRules(series_type="bo1", final_series_type="bo5")
        assert series_type_for_round(rules, 1, 3) == "bo1"
        assert series_type_for_round(rules, 2, 3) == "bo1"
        assert series_type_for_round(rules, 3, 3) == "bo5"
