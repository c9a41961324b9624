import pytest

from dota_cup.models.friend_model import FriendshipStatus
from dota_cup.services.friends_service import FriendsService


@pytest.fixture
def friends_service(tmp_path, user_service):
    return FriendsService(data_file_path=str(tmp_path / "friendships.json"), user_service=user_service)


class TestFriendRequests:

    def test_request_and_accept(self, friends_service, make_player):
        alice = make_player("alice")
        bob = make_player("bobby")

        request = friends_service.send_request(alice.id, "BOBBY")
        assert request.status == FriendshipStatus.PENDING
        assert [r.username for r in friends_service.get_incoming_requests(bob.id)] == ["alice"]

        friends_service.accept_request(bob.id, request.id)
        friends = friends_service.get_friends(alice.id)
        assert [f.username for f in friends] == ["bobby"]
        assert friends[0].steam_id == bob.steam_connection.steam_id
        assert [f.username for f in friends_service.get_friends(bob.id)] == ["alice"]

    def test_only_addressee_can_answer(self, friends_service, make_player):
        alice = make_player("alice")
        make_player("bobby")
        request = friends_service.send_request(alice.id, "bobby")
        with pytest.raises(ValueError):
            friends_service.accept_request(alice.id, request.id)

    def test_cannot_befriend_self(self, friends_service, make_player):
        alice = make_player("alice")
        with pytest.raises(ValueError, match="yourself"):
            friends_service.send_request(alice.id, "alice")

    def test_unknown_user(self, friends_service, make_player):
        alice = make_player("alice")
        with pytest.raises(ValueError, match="not found"):
            friends_service.send_request(alice.id, "ghost")

    def test_duplicate_request_either_direction(self, friends_service, make_player):
        alice = make_player("alice")
        bob = make_player("bobby")
        friends_service.send_request(alice.id, "bobby")
        with pytest.raises(ValueError, match="pending"):
            friends_service.send_request(bob.id, "alice")

    def test_rejected_request_can_be_sent_again(self, friends_service, make_player):
        alice = make_player("alice")
        bob = make_player("bobby")
        first = friends_service.send_request(alice.id, "bobby")
        friends_service.reject_request(bob.id, first.id)

        second = friends_service.send_request(alice.id, "bobby")
        assert second.id == first.id
        assert second.status == FriendshipStatus.PENDING
        assert len(friends_service.store.load()) == 1


class TestFriendList:

    def test_remove_friend(self, friends_service, make_player):
        alice = make_player("alice")
        bob = make_player("bobby")
        request = friends_service.send_request(alice.id, "bobby")
        friends_service.accept_request(bob.id, request.id)

        friends_service.remove_friend(bob.id, alice.id)
        assert friends_service.get_friends(alice.id) == []
        with pytest.raises(ValueError):
            friends_service.remove_friend(bob.id, alice.id)

    def test_inviteable_friends(self, friends_service, team_service, make_player):
        captain = make_player("captain")
        teammate = make_player("teammate")
        free_agent = make_player("freeagent")
        casual = make_player("casual", steam=False)
        for friend in (teammate, free_agent, casual):
            request = friends_service.send_request(captain.id, friend.username)
            friends_service.accept_request(friend.id, request.id)
        team = team_service.create_team("Gaimin", "GG", captain.id)
        team = team_service.add_member(team.id, teammate.id)

        inviteable = friends_service.get_inviteable_friends(captain.id, team)
        assert [f.username for f in inviteable] == ["freeagent"]
