import pytest

from dota_cup.models.user_model import SteamConnection
from dota_cup.services.team_service import TeamService
from dota_cup.services.tournament_service import TournamentService
from dota_cup.services.user_service import UserService


@pytest.fixture
def user_service(tmp_path):
    return UserService(data_file_path=str(tmp_path / "users.json"))


@pytest.fixture
def team_service(tmp_path, user_service):
    return TeamService(data_file_path=str(tmp_path / "teams.json"), user_service=user_service)


@pytest.fixture
def make_player(user_service):
    """Registers a user and, unless told otherwise, links a ranked Steam account."""
    counter = {"n": 0}

    def _make(username, rank_tier=45, steam=True, total_matches=None):
        counter["n"] += 1
        user = user_service.register_user(f"{username.lower()}@example.com", username, "secret123")
        if steam:
            user = user_service.connect_steam_account(
                user.id,
                SteamConnection(
                    steam_id=str(76561198000000000 + counter["n"]),
                    username=username,
                    rank_tier=rank_tier,
                    total_matches=total_matches,
                ),
            )
        return user

    return _make


@pytest.fixture
def tournament_service(tmp_path, user_service, team_service):
    return TournamentService(
        data_file_path=str(tmp_path / "tournaments.json"),
        user_service=user_service,
        team_service=team_service,
    )


@pytest.fixture
def organizer(make_player):
    return make_player("organizer")


@pytest.fixture
def make_roster(team_service, make_player):
    """Creates a two player team whose captain is named after the tag."""
    def _make(tag, rank_tier=45):
        captain = make_player(f"{tag.lower()}_captain", rank_tier=rank_tier)
        team = team_service.create_team(f"Team {tag}", tag, captain.id)
        team = team_service.add_member(team.id, make_player(f"{tag.lower()}_carry", rank_tier=rank_tier).id)
        return team, captain

    return _make
