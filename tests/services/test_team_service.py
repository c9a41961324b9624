import pytest

from dota_cup.core.config import settings
from dota_cup.services.team_service import TeamService


class TestCreateTeam:

    def test_create_team(self, team_service: TeamService, make_player):
        captain = make_player("captain")
        team = team_service.create_team("  Team Secret ", "sec", captain.id)
        assert team.name == "Team Secret"
        assert team.tag == "SEC"
        assert team.captain_id == captain.id
        assert len(team.members) == 1
        assert team.members[0].is_captain
        assert team.members[0].steam_id == captain.steam_connection.steam_id
        assert team_service.get_team(team.id) == team

    def test_captain_needs_steam(self, team_service: TeamService, make_player):
        captain = make_player("nosteam", steam=False)
        with pytest.raises(ValueError, match="Steam"):
            team_service.create_team("Team Liquid", "TL", captain.id)

    def test_name_and_tag_are_unique(self, team_service: TeamService, make_player):
        team_service.create_team("Team Liquid", "TL", make_player("one").id)
        with pytest.raises(ValueError, match="already exists"):
            team_service.create_team("team liquid", "LIQ", make_player("two").id)
        with pytest.raises(ValueError, match="already taken"):
            team_service.create_team("Liquid Two", "tl", make_player("three").id)

    def test_disbanded_team_frees_name(self, team_service: TeamService, make_player):
        captain = make_player("one")
        team = team_service.create_team("Team Liquid", "TL", captain.id)
        team_service.delete_team(team.id, captain.id)
        assert team_service.get_team(team.id) is None
        team_service.create_team("Team Liquid", "TL", make_player("two").id)

    @pytest.mark.parametrize("name, tag", [("ab", "TAG"), ("Valid Name", "X"), ("Valid Name", "TOOLONG")])
    def test_length_limits(self, team_service: TeamService, make_player, name, tag):
        with pytest.raises(ValueError):
            team_service.create_team(name, tag, make_player("cap").id)


class TestMembers:

    def test_add_and_remove_member(self, team_service: TeamService, make_player):
        captain = make_player("captain")
        player = make_player("player")
        team = team_service.create_team("Navi", "NAVI", captain.id)

        team = team_service.add_member(team.id, player.id)
        assert team.is_member(player.id)
        assert [t.id for t in team_service.get_user_teams(player.id)] == [team.id]

        team = team_service.remove_member(team.id, player.id, captain.id)
        assert not team.is_member(player.id)

    def test_duplicate_member(self, team_service: TeamService, make_player):
        captain = make_player("captain")
        team = team_service.create_team("Navi", "NAVI", captain.id)
        with pytest.raises(ValueError, match="already a member"):
            team_service.add_member(team.id, captain.id)

    def test_team_full(self, team_service: TeamService, make_player):
        captain = make_player("captain")
        team = team_service.create_team("Navi", "NAVI", captain.id)
        for i in range(settings.MAX_TEAM_SIZE - 1):
            team_service.add_member(team.id, make_player(f"player{i}").id)
        with pytest.raises(ValueError, match="full"):
            team_service.add_member(team.id, make_player("extra").id)

    def test_only_captain_removes(self, team_service: TeamService, make_player):
        captain = make_player("captain")
        player = make_player("player")
        team = team_service.create_team("Navi", "NAVI", captain.id)
        team_service.add_member(team.id, player.id)
        with pytest.raises(PermissionError):
            team_service.remove_member(team.id, captain.id, player.id)
        with pytest.raises(ValueError, match="captain cannot be removed"):
            team_service.remove_member(team.id, captain.id, captain.id)

    def test_only_captain_deletes(self, team_service: TeamService, make_player):
        captain = make_player("captain")
        team = team_service.create_team("Navi", "NAVI", captain.id)
        with pytest.raises(PermissionError):
            team_service.delete_team(team.id, make_player("other").id)


class TestRating:

    def test_refresh_picks_up_new_rank(self, team_service: TeamService, user_service, make_player):
        captain = make_player("captain", rank_tier=30)
        team = team_service.create_team("Navi", "NAVI", captain.id)
        connection = captain.steam_connection.model_copy(update={"rank_tier": 50})
        user_service.connect_steam_account(captain.id, connection)

        team = team_service.refresh_member_profiles(team.id)
        assert team.members[0].rank_tier == 50

    def test_team_rating_averages_ranked_members(self, team_service: TeamService, make_player):
        captain = make_player("captain", rank_tier=40)
        team = team_service.create_team("Navi", "NAVI", captain.id)
        team = team_service.add_member(team.id, make_player("player1", rank_tier=51).id)
        team = team_service.add_member(team.id, make_player("player2", rank_tier=None).id)
        assert TeamService.team_rating(team) == 45.5
