import json

import pytest

from dota_cup.models.user_model import SteamConnection
from dota_cup.services.user_service import UserService


class TestUserService:

    def test_register_user_success(self, user_service: UserService):
        created_user = user_service.register_user("test@example.com", "Tester", "secret123")
        assert created_user.email == "test@example.com"
        assert created_user.id is not None
        assert created_user.hashed_password != "secret123"

        # Verify it's saved
        with open(user_service.data_file_path, "r") as f:
            users_in_file = json.load(f)
        assert len(users_in_file) == 1
        assert users_in_file[0]["username"] == "Tester"

    def test_register_duplicate_email(self, user_service: UserService):
        user_service.register_user("duplicate@example.com", "first", "secret123")
        with pytest.raises(ValueError, match="already exists"):
            user_service.register_user("Duplicate@example.com", "second", "secret123")

    def test_register_duplicate_username(self, user_service: UserService):
        user_service.register_user("one@example.com", "Puppey", "secret123")
        with pytest.raises(ValueError, match="already taken"):
            user_service.register_user("two@example.com", "puppey", "secret123")

    def test_register_short_password(self, user_service: UserService):
        with pytest.raises(ValueError, match="at least 6"):
            user_service.register_user("short@example.com", "shorty", "abc")

    def test_authenticate_by_email_or_username(self, user_service: UserService):
        user = user_service.register_user("login@example.com", "loginer", "secret123")
        assert user_service.authenticate_user("login@example.com", "secret123").id == user.id
        assert user_service.authenticate_user("LOGINER", "secret123").id == user.id

    def test_authenticate_wrong_password(self, user_service: UserService):
        user_service.register_user("login@example.com", "loginer", "secret123")
        assert user_service.authenticate_user("loginer", "wrong-pass") is None
        assert user_service.authenticate_user("nobody", "secret123") is None

    def test_get_user_not_found(self, user_service: UserService):
        assert user_service.get_user_by_id("missing") is None
        assert user_service.is_username_available("missing")

    def test_search_users(self, user_service: UserService):
        me = user_service.register_user("a@example.com", "miracle", "secret123")
        user_service.register_user("b@example.com", "miracle_fan", "secret123")
        user_service.register_user("c@example.com", "kuroky", "secret123")

        found = user_service.search_users("MIRA", exclude_user_id=me.id)
        assert [u.username for u in found] == ["miracle_fan"]
        assert user_service.search_users("   ") == []


class TestSteamAccounts:

    def test_connect_and_find(self, user_service: UserService):
        user = user_service.register_user("s@example.com", "steamer", "secret123")
        updated = user_service.connect_steam_account(
            user.id, SteamConnection(steam_id="76561198000000001", username="steamer", rank_tier=42)
        )
        assert updated.has_steam
        assert updated.steam_connection.rank_tier == 42
        assert user_service.find_user_by_steam_id("76561198000000001").id == user.id

    def test_reconnect_replaces_connection(self, user_service: UserService):
        user = user_service.register_user("s@example.com", "steamer", "secret123")
        user_service.connect_steam_account(user.id, SteamConnection(steam_id="76561198000000001", username="old"))
        updated = user_service.connect_steam_account(
            user.id, SteamConnection(steam_id="76561198000000001", username="new")
        )
        assert len(updated.steam_connections) == 1
        assert updated.steam_connection.username == "new"

    def test_steam_account_cannot_be_shared(self, user_service: UserService):
        first = user_service.register_user("a@example.com", "first", "secret123")
        second = user_service.register_user("b@example.com", "second", "secret123")
        connection = SteamConnection(steam_id="76561198000000001", username="shared")
        user_service.connect_steam_account(first.id, connection)
        with pytest.raises(ValueError, match="already linked"):
            user_service.connect_steam_account(second.id, connection)
        assert not user_service.get_user_by_id(second.id).has_steam

    def test_disconnect(self, user_service: UserService):
        user = user_service.register_user("s@example.com", "steamer", "secret123")
        user_service.connect_steam_account(user.id, SteamConnection(steam_id="76561198000000001", username="x"))
        updated = user_service.disconnect_steam_account(user.id, "76561198000000001")
        assert not updated.has_steam
        with pytest.raises(ValueError, match="not linked"):
            user_service.disconnect_steam_account(user.id, "76561198000000001")
